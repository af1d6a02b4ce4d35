"""
Business entities representing core domain concepts.

Entities are mutable objects with identity that persist over time.
They encapsulate business rules and behavior.

Exports:
- Session, AccountUser, Profile: authentication state
- CollectionItem, RatingItem: favorites, watchlist and ratings
- TrackedShow, ShowMeta: episode tracker
- UserList, ListItem: custom lists
- RSSFeedSubscription: RSS subscriptions
- HistoryItem: browsing history
- PendingWrite, PendingAction: pending-write fallback queue
"""

from cinescope.core.entities.collections import (
    CollectionItem,
    HistoryItem,
    ListItem,
    PendingAction,
    PendingWrite,
    RatingItem,
    RSSFeedSubscription,
    ShowMeta,
    TrackedShow,
    UserList,
)
from cinescope.core.entities.session import AccountUser, Profile, Session

__all__ = [
    "Session",
    "AccountUser",
    "Profile",
    "CollectionItem",
    "RatingItem",
    "TrackedShow",
    "ShowMeta",
    "UserList",
    "ListItem",
    "RSSFeedSubscription",
    "HistoryItem",
    "PendingWrite",
    "PendingAction",
]
