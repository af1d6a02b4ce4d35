"""
Implementations SQLModel des collections de medias.

Les tables favorites, watchlist et ratings ont la meme forme (cle naturelle
user_id + media_id + media_type) ; une classe de base porte la logique
commune, chaque sous-classe fixe le modele et la conversion d'entite.
"""

from abc import abstractmethod
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Iterable, TypeVar

from sqlmodel import Session, SQLModel, select

from cinescope.core.entities import CollectionItem, RatingItem
from cinescope.core.ports.profile_store import IMediaCollectionRepository
from cinescope.core.value_objects import MediaKey, MediaType
from cinescope.infrastructure.persistence.models import (
    FavoriteModel,
    RatingModel,
    WatchlistModel,
)
from cinescope.infrastructure.persistence.repositories.sql_helpers import (
    transaction,
    upsert_rows,
)

T = TypeVar("T", CollectionItem, RatingItem)

_CONFLICT_COLUMNS = ("user_id", "media_id", "media_type")


class _SQLModelMediaRepository(IMediaCollectionRepository[T]):
    """
    Base des repositories de collections de medias.

    Les sous-classes definissent :
    - model : table cible
    - update_columns : colonnes ecrasees lors d'un upsert en conflit
    - _to_entity / _to_row : conversions
    """

    model: type[SQLModel]
    update_columns: tuple[str, ...] = ("title", "poster_path")

    def __init__(self, session: Session) -> None:
        """
        Initialise le repository avec une session SQLModel.

        Args :
            session : Session SQLModel active pour les operations DB
        """
        self._session = session

    @abstractmethod
    def _to_entity(self, model: Any) -> T:
        """Convertit une ligne de la table en entite."""

    def _to_row(self, user_id: int, item: T, created_at: datetime) -> dict[str, Any]:
        return {
            "user_id": user_id,
            "media_id": item.media_id,
            "media_type": item.media_type.value,
            "title": item.title,
            "poster_path": item.poster_path,
            "created_at": created_at,
        }

    def list_for_user(self, user_id: int) -> list[T]:
        """Liste la collection, plus recents en premier."""
        statement = (
            select(self.model)
            .where(self.model.user_id == user_id)
            .order_by(self.model.created_at.desc(), self.model.id.desc())
        )
        return [self._to_entity(model) for model in self._session.exec(statement).all()]

    def upsert(self, user_id: int, items: Iterable[T], ignore_conflicts: bool = False) -> int:
        """Insere ou met a jour des elements (dedoublonnes par cle)."""
        now = datetime.now(timezone.utc)
        rows = {item.key: self._to_row(user_id, item, now) for item in items}
        with transaction(self._session):
            return upsert_rows(
                self._session,
                self.model,
                rows.values(),
                conflict_columns=_CONFLICT_COLUMNS,
                update_columns=self.update_columns,
                ignore_conflicts=ignore_conflicts,
            )

    def delete(self, user_id: int, key: MediaKey) -> bool:
        """Supprime un element par cle."""
        statement = select(self.model).where(
            self.model.user_id == user_id,
            self.model.media_id == key.media_id,
            self.model.media_type == key.media_type.value,
        )
        model = self._session.exec(statement).first()
        if model is None:
            return False
        with transaction(self._session):
            self._session.delete(model)
        return True

    def delete_many(self, user_id: int, keys: Iterable[MediaKey]) -> int:
        """Supprime plusieurs elements, groupes par type de media."""
        ids_by_type: dict[MediaType, set[int]] = defaultdict(set)
        for key in keys:
            ids_by_type[key.media_type].add(key.media_id)
        if not ids_by_type:
            return 0

        deleted = 0
        with transaction(self._session):
            for media_type, media_ids in ids_by_type.items():
                statement = select(self.model).where(
                    self.model.user_id == user_id,
                    self.model.media_type == media_type.value,
                    self.model.media_id.in_(media_ids),
                )
                for model in self._session.exec(statement).all():
                    self._session.delete(model)
                    deleted += 1
        return deleted


class SQLModelFavoriteRepository(_SQLModelMediaRepository[CollectionItem]):
    """Repository SQLModel des favoris."""

    model = FavoriteModel

    def _to_entity(self, model: FavoriteModel) -> CollectionItem:
        return CollectionItem(
            media_id=model.media_id,
            media_type=MediaType(model.media_type),
            title=model.title,
            poster_path=model.poster_path,
        )


class SQLModelWatchlistRepository(_SQLModelMediaRepository[CollectionItem]):
    """Repository SQLModel de la watchlist."""

    model = WatchlistModel

    def _to_entity(self, model: WatchlistModel) -> CollectionItem:
        return CollectionItem(
            media_id=model.media_id,
            media_type=MediaType(model.media_type),
            title=model.title,
            poster_path=model.poster_path,
        )


class SQLModelRatingRepository(_SQLModelMediaRepository[RatingItem]):
    """Repository SQLModel des notes."""

    model = RatingModel
    update_columns = ("title", "poster_path", "rating")

    def _to_entity(self, model: RatingModel) -> RatingItem:
        return RatingItem(
            media_id=model.media_id,
            media_type=MediaType(model.media_type),
            title=model.title,
            value=model.rating,
            poster_path=model.poster_path,
        )

    def _to_row(self, user_id: int, item: RatingItem, created_at: datetime) -> dict[str, Any]:
        row = super()._to_row(user_id, item, created_at)
        row["rating"] = item.value
        return row
