"""
Formats des enregistrements du stockage local.

Les instantanes invites sont des tableaux JSON compacts dont la forme est
figee (les cles et noms de champs doivent rester lisibles d'une version de
l'application a l'autre) :
- favoris / watchlist : {id, media_type, title, poster}
- notes : idem + rating
- series suivies : {id, name, poster, lastUpdated}
- episodes vus : ["1399:1:1", ...]
- listes : {id, name, description, count, items}
- flux RSS : {id, name, url, description, category, added_at}
- historique : {id, title, poster, type, timestamp}
- ecritures en attente : {entityId, entityMetadata, action}

Chaque enregistrement est valide par un modele pydantic a la lecture ;
un enregistrement malforme est ignore avec un avertissement, une valeur
illisible est traitee comme un instantane vide.
"""

import json
from typing import Any, Iterable, Optional, TypeVar, Union

from loguru import logger
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from cinescope.core.entities import (
    CollectionItem,
    HistoryItem,
    ListItem,
    PendingAction,
    PendingWrite,
    RatingItem,
    RSSFeedSubscription,
    TrackedShow,
    UserList,
)
from cinescope.core.exceptions import LocalStoreError
from cinescope.core.ports.local_store import ILocalStore
from cinescope.core.value_objects import EpisodeKey, MediaType

R = TypeVar("R", bound=BaseModel)


class _Record(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class MediaRecord(_Record):
    """Favori ou element de watchlist."""

    id: int
    media_type: MediaType
    title: str = ""
    poster: Optional[str] = None

    @classmethod
    def from_item(cls, item: CollectionItem) -> "MediaRecord":
        return cls(
            id=item.media_id,
            media_type=item.media_type,
            title=item.title,
            poster=item.poster_path,
        )

    def to_item(self) -> CollectionItem:
        return CollectionItem(
            media_id=self.id,
            media_type=self.media_type,
            title=self.title,
            poster_path=self.poster,
        )


class RatingRecord(MediaRecord):
    """Note d'un media."""

    rating: float

    @classmethod
    def from_item(cls, item: RatingItem) -> "RatingRecord":
        return cls(
            id=item.media_id,
            media_type=item.media_type,
            title=item.title,
            poster=item.poster_path,
            rating=item.value,
        )

    def to_item(self) -> RatingItem:
        return RatingItem(
            media_id=self.id,
            media_type=self.media_type,
            title=self.title,
            value=self.rating,
            poster_path=self.poster,
        )


class TrackedShowRecord(_Record):
    """Serie suivie."""

    id: int
    name: str = ""
    poster: Optional[str] = None
    last_updated: int = Field(default=0, alias="lastUpdated")

    @classmethod
    def from_show(cls, show: TrackedShow) -> "TrackedShowRecord":
        return cls(
            id=show.show_id,
            name=show.name,
            poster=show.poster_path,
            last_updated=show.last_updated,
        )

    def to_show(self) -> TrackedShow:
        return TrackedShow(
            show_id=self.id,
            name=self.name,
            poster_path=self.poster,
            last_updated=self.last_updated,
        )


class ListItemRecord(_Record):
    id: int
    media_type: MediaType
    title: str = ""
    poster: Optional[str] = None
    added_at: str = ""


class UserListRecord(_Record):
    """Liste personnalisee invite (elements toujours embarques)."""

    id: int
    name: str
    description: Optional[str] = None
    count: int = 0
    items: list[ListItemRecord] = Field(default_factory=list)

    @classmethod
    def from_list(cls, user_list: UserList) -> "UserListRecord":
        return cls(
            id=user_list.id,
            name=user_list.name,
            description=user_list.description,
            count=user_list.count,
            items=[
                ListItemRecord(
                    id=item.media_id,
                    media_type=item.media_type,
                    title=item.title,
                    poster=item.poster_path,
                    added_at=item.added_at,
                )
                for item in user_list.items or []
            ],
        )

    def to_list(self) -> UserList:
        return UserList(
            id=self.id,
            name=self.name,
            description=self.description,
            count=self.count,
            items=[
                ListItem(
                    media_id=item.id,
                    media_type=item.media_type,
                    title=item.title,
                    poster_path=item.poster,
                    added_at=item.added_at,
                )
                for item in self.items
            ],
        )


class RSSFeedRecord(_Record):
    """Abonnement RSS ; l'ancien champ addedAt est accepte en lecture."""

    id: str
    name: str
    url: str
    description: Optional[str] = None
    category: Optional[str] = None
    added_at: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("added_at", "addedAt")
    )

    @classmethod
    def from_feed(cls, feed: RSSFeedSubscription) -> "RSSFeedRecord":
        return cls(
            id=feed.id,
            name=feed.name,
            url=feed.url,
            description=feed.description,
            category=feed.category,
            added_at=feed.added_at,
        )

    def to_feed(self) -> RSSFeedSubscription:
        return RSSFeedSubscription(
            id=self.id,
            name=self.name,
            url=self.url,
            description=self.description,
            category=self.category,
            added_at=self.added_at,
        )


class HistoryRecord(_Record):
    """Consultation recente."""

    id: Union[int, str]
    title: str = ""
    poster: Optional[str] = None
    type: MediaType
    timestamp: int = 0

    @classmethod
    def from_item(cls, item: HistoryItem) -> "HistoryRecord":
        return cls(
            id=item.item_id,
            title=item.title,
            poster=item.poster_path,
            type=item.media_type,
            timestamp=item.timestamp,
        )

    def to_item(self) -> HistoryItem:
        return HistoryItem(
            item_id=self.id,
            title=self.title,
            media_type=self.type,
            poster_path=self.poster,
            timestamp=self.timestamp,
        )


class PendingWriteRecord(_Record):
    """Ecriture en attente de confirmation distante."""

    entity_id: Union[int, str] = Field(alias="entityId")
    entity_metadata: dict[str, Any] = Field(default_factory=dict, alias="entityMetadata")
    action: PendingAction

    @classmethod
    def from_write(cls, write: PendingWrite) -> "PendingWriteRecord":
        return cls(
            entity_id=write.entity_id,
            entity_metadata=write.metadata,
            action=write.action,
        )

    def to_write(self) -> PendingWrite:
        return PendingWrite(
            entity_id=self.entity_id,
            action=self.action,
            metadata=dict(self.entity_metadata),
        )


# --- Lecture / ecriture ---


def dumps(value: Any) -> str:
    """Serialisation JSON compacte (sans espaces)."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def load_json(store: ILocalStore, key: str) -> Optional[Any]:
    """
    Lit et decode la valeur d'une cle.

    Returns:
        La valeur decodee, ou None si absente ou illisible
    """
    try:
        raw = store.get_item(key)
    except LocalStoreError as e:
        logger.warning(f"Stockage local illisible pour {key}: {e}")
        return None
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning(f"JSON invalide sous la cle {key}, instantane ignore: {e}")
        return None


def read_records(store: ILocalStore, key: str, model: type[R]) -> list[R]:
    """
    Lit un tableau d'enregistrements valides.

    Les elements malformes sont ignores individuellement.

    Args:
        store: Stockage local
        key: Cle de l'instantane
        model: Modele pydantic de l'enregistrement

    Returns:
        Liste des enregistrements valides (vide si absente ou illisible)
    """
    data = load_json(store, key)
    if data is None:
        return []
    if not isinstance(data, list):
        logger.warning(f"Instantane {key} n'est pas un tableau, ignore")
        return []

    records = []
    for raw in data:
        try:
            records.append(model.model_validate(raw))
        except ValidationError as e:
            logger.warning(
                f"Enregistrement malforme ignore sous {key}: {e.error_count()} erreur(s)"
            )
    return records


def write_records(store: ILocalStore, key: str, records: Iterable[BaseModel]) -> None:
    """Ecrit un tableau d'enregistrements en JSON compact."""
    payload = [record.model_dump(mode="json", by_alias=True) for record in records]
    store.set_item(key, dumps(payload))


def read_episode_keys(store: ILocalStore, key: str) -> set[EpisodeKey]:
    """Lit l'ensemble des episodes vus ("showId:saison:episode")."""
    data = load_json(store, key)
    if data is None:
        return set()
    if not isinstance(data, list):
        logger.warning(f"Instantane {key} n'est pas un tableau, ignore")
        return set()

    keys = set()
    for raw in data:
        try:
            keys.add(EpisodeKey.parse(str(raw)))
        except ValueError:
            logger.warning(f"Cle d'episode malformee ignoree: {raw!r}")
    return keys


def write_episode_keys(store: ILocalStore, key: str, keys: Iterable[EpisodeKey]) -> None:
    ordered = sorted(keys, key=lambda k: (k.show_id, k.season, k.episode))
    store.set_item(key, dumps([str(k) for k in ordered]))
