"""
User collection entities.

Entities representing what a user curates: favorites, watchlist entries,
ratings, tracked shows, custom lists, RSS subscriptions and browsing history.
Each record type has a closed field set; loosely-shaped payloads are
validated into these types at the storage boundaries.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from cinescope.core.value_objects import MediaKey, MediaType


@dataclass
class CollectionItem:
    """
    Favorite or watchlist entry.

    Attributes:
        media_id: TMDB media ID
        media_type: Movie or TV show
        title: Display title
        poster_path: Poster path or URL (nullable)
    """

    media_id: int
    media_type: MediaType
    title: str
    poster_path: Optional[str] = None

    @property
    def key(self) -> MediaKey:
        return MediaKey(self.media_id, self.media_type)


@dataclass
class RatingItem:
    """
    Rating given by the user to a media.

    Attributes:
        media_id: TMDB media ID
        media_type: Movie or TV show
        title: Display title
        value: Rating value (1-10 in the UI, TMDB accepts 0.5-10.0)
        poster_path: Poster path or URL (nullable)
    """

    media_id: int
    media_type: MediaType
    title: str
    value: float
    poster_path: Optional[str] = None

    @property
    def key(self) -> MediaKey:
        return MediaKey(self.media_id, self.media_type)


@dataclass
class ShowMeta:
    """Display metadata supplied by the caller when an episode changes state."""

    name: str
    poster_path: Optional[str] = None


@dataclass
class TrackedShow:
    """
    TV show followed in the episode tracker.

    Attributes:
        show_id: TMDB show ID
        name: Show name
        poster_path: Poster path or URL
        last_updated: Epoch milliseconds, bumped on every episode-state change
    """

    show_id: int
    name: str
    poster_path: Optional[str] = None
    last_updated: int = 0


@dataclass
class ListItem:
    """Item of a custom list."""

    media_id: int
    media_type: MediaType
    title: str
    poster_path: Optional[str] = None
    added_at: str = ""

    @property
    def key(self) -> MediaKey:
        return MediaKey(self.media_id, self.media_type)


@dataclass
class UserList:
    """
    Custom list.

    Guest lists carry a client-generated timestamp ID and never get a
    server ID. Authenticated lists keep the account list they mirror.

    Attributes:
        id: List ID (Profile Store ID, or timestamp for guests)
        name: List name
        description: Optional description
        count: Number of items
        items: Lazily populated items (None until loaded)
        remote_list_id: Account Service list ID, when mirrored
    """

    id: int
    name: str
    description: Optional[str] = None
    count: int = 0
    items: Optional[list[ListItem]] = None
    remote_list_id: Optional[int] = None


@dataclass
class RSSFeedSubscription:
    """
    RSS feed subscription, unique per owner by URL.

    Attributes:
        id: Client-generated UUID
        name: Feed display name
        url: Feed URL
        description: Optional description
        category: Optional category ("News", ...)
        added_at: ISO timestamp of subscription
    """

    id: str
    name: str
    url: str
    description: Optional[str] = None
    category: Optional[str] = None
    added_at: Optional[str] = None


@dataclass
class HistoryItem:
    """Recently viewed media."""

    item_id: Union[int, str]
    title: str
    media_type: MediaType
    poster_path: Optional[str] = None
    timestamp: int = 0


class PendingAction(Enum):
    """Mutation recorded in a pending-write queue.

    Valeurs:
        TRACK / UNTRACK: show-level tracking
        WATCH / UNWATCH: episode-level toggles (optional episode queue)
    """

    TRACK = "track"
    UNTRACK = "untrack"
    WATCH = "watch"
    UNWATCH = "unwatch"


@dataclass
class PendingWrite:
    """
    Mutation whose remote write has not been confirmed yet.

    Attributes:
        entity_id: Show ID or episode key
        action: Mutation to replay
        metadata: Entity snapshot taken at write time
    """

    entity_id: Union[int, str]
    action: PendingAction
    metadata: dict[str, Any] = field(default_factory=dict)
