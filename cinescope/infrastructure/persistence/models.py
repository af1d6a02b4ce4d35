"""
Modeles SQLModel du Profile Store.

Ces modeles representent les tables de la base relationnelle par utilisateur.
Ils sont distincts des entites de domaine (dataclass dans core/entities/)
selon l'architecture hexagonale.

Tables:
- profiles: Profil du compte (user_id = ID du compte TMDB)
- favorites, watchlist, ratings: Collections de medias
- tracked_shows, watched_episodes: Suivi d'episodes
- user_lists, list_items: Listes personnalisees
- rss_feeds: Abonnements RSS
- history: Historique de consultation

Chaque table porte une contrainte d'unicite sur sa cle naturelle : les
upserts (INSERT ... ON CONFLICT) s'appuient dessus.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProfileModel(SQLModel, table=True):
    """Profil d'un utilisateur connecte."""

    __tablename__ = "profiles"

    id: int = Field(primary_key=True)  # ID du compte TMDB
    username: str
    avatar_url: Optional[str] = None
    updated_at: datetime = Field(default_factory=_utcnow)


class FavoriteModel(SQLModel, table=True):
    """Favori d'un utilisateur."""

    __tablename__ = "favorites"
    __table_args__ = (
        UniqueConstraint("user_id", "media_id", "media_type", name="uq_favorites_user_media"),
    )

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    media_id: int
    media_type: str  # "movie" ou "tv"
    title: str = ""
    poster_path: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)


class WatchlistModel(SQLModel, table=True):
    """Element de watchlist d'un utilisateur."""

    __tablename__ = "watchlist"
    __table_args__ = (
        UniqueConstraint("user_id", "media_id", "media_type", name="uq_watchlist_user_media"),
    )

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    media_id: int
    media_type: str
    title: str = ""
    poster_path: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)


class RatingModel(SQLModel, table=True):
    """Note donnee par un utilisateur."""

    __tablename__ = "ratings"
    __table_args__ = (
        UniqueConstraint("user_id", "media_id", "media_type", name="uq_ratings_user_media"),
    )

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    media_id: int
    media_type: str
    title: str = ""
    poster_path: str | None = None
    rating: float
    created_at: datetime = Field(default_factory=_utcnow)


class TrackedShowModel(SQLModel, table=True):
    """Serie suivie dans le tracker d'episodes."""

    __tablename__ = "tracked_shows"
    __table_args__ = (UniqueConstraint("user_id", "show_id", name="uq_tracked_shows_user_show"),)

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    show_id: int
    show_name: str = ""
    poster_path: str | None = None
    last_updated: datetime = Field(default_factory=_utcnow, index=True)


class WatchedEpisodeModel(SQLModel, table=True):
    """
    Episode vu.

    Les lignes survivent a l'arret du suivi de la serie : l'historique
    de visionnage est conserve.
    """

    __tablename__ = "watched_episodes"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "show_id",
            "season_number",
            "episode_number",
            name="uq_watched_episodes_user_episode",
        ),
    )

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    show_id: int = Field(index=True)
    season_number: int
    episode_number: int
    watched_at: datetime = Field(default_factory=_utcnow)


class UserListModel(SQLModel, table=True):
    """Liste personnalisee."""

    __tablename__ = "user_lists"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    name: str
    description: str | None = None
    remote_list_id: int | None = Field(default=None, index=True)  # ID de la liste TMDB
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class ListItemModel(SQLModel, table=True):
    """Element d'une liste personnalisee."""

    __tablename__ = "list_items"
    __table_args__ = (
        UniqueConstraint("list_id", "media_id", "media_type", name="uq_list_items_list_media"),
    )

    id: int | None = Field(default=None, primary_key=True)
    list_id: int = Field(foreign_key="user_lists.id", index=True)
    media_id: int
    media_type: str
    title: str = ""
    poster_path: str | None = None
    added_at: datetime = Field(default_factory=_utcnow)


class RSSFeedModel(SQLModel, table=True):
    """Abonnement RSS (url unique par utilisateur)."""

    __tablename__ = "rss_feeds"
    __table_args__ = (UniqueConstraint("user_id", "url", name="uq_rss_feeds_user_url"),)

    id: str = Field(primary_key=True)  # UUID genere cote client
    user_id: int = Field(index=True)
    name: str
    url: str
    description: str | None = None
    category: str | None = None
    added_at: datetime = Field(default_factory=_utcnow)


class HistoryModel(SQLModel, table=True):
    """Consultation recente (une ligne par media)."""

    __tablename__ = "history"
    __table_args__ = (UniqueConstraint("user_id", "item_id", name="uq_history_user_item"),)

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    item_id: str  # ID TMDB stocke en texte
    title: str = ""
    poster_path: str | None = None
    media_type: str
    viewed_at: datetime = Field(default_factory=_utcnow, index=True)
