"""
Implementation SQLModel du repository de l'historique de consultation.

Les IDs de media sont stockes en texte : l'historique invite peut contenir
des IDs numeriques ou textuels.
"""

from typing import Iterable, Union

from sqlmodel import Session, select

from cinescope.core.entities import HistoryItem
from cinescope.core.ports.profile_store import IHistoryRepository
from cinescope.core.value_objects import MediaType
from cinescope.infrastructure.persistence.models import HistoryModel
from cinescope.infrastructure.persistence.repositories.sql_helpers import (
    transaction,
    upsert_rows,
)
from cinescope.utils.helpers import datetime_to_ms, ms_to_datetime, now_ms


def _restore_item_id(value: str) -> Union[int, str]:
    return int(value) if value.isdigit() else value


class SQLModelHistoryRepository(IHistoryRepository):
    """Repository SQLModel de l'historique (une ligne par media)."""

    def __init__(self, session: Session) -> None:
        """
        Initialise le repository avec une session SQLModel.

        Args :
            session : Session SQLModel active pour les operations DB
        """
        self._session = session

    def _to_entity(self, model: HistoryModel) -> HistoryItem:
        return HistoryItem(
            item_id=_restore_item_id(model.item_id),
            title=model.title,
            media_type=MediaType(model.media_type),
            poster_path=model.poster_path,
            timestamp=datetime_to_ms(model.viewed_at),
        )

    def list_for_user(self, user_id: int, limit: int = 0) -> list[HistoryItem]:
        """Historique, plus recent en premier."""
        statement = (
            select(HistoryModel)
            .where(HistoryModel.user_id == user_id)
            .order_by(HistoryModel.viewed_at.desc())
        )
        if limit > 0:
            statement = statement.limit(limit)
        return [self._to_entity(model) for model in self._session.exec(statement).all()]

    def upsert(
        self, user_id: int, items: Iterable[HistoryItem], ignore_conflicts: bool = False
    ) -> int:
        """Enregistre des consultations ; une nouvelle consultation remonte l'element."""
        rows = {
            str(item.item_id): {
                "user_id": user_id,
                "item_id": str(item.item_id),
                "title": item.title,
                "poster_path": item.poster_path,
                "media_type": item.media_type.value,
                "viewed_at": ms_to_datetime(item.timestamp or now_ms()),
            }
            for item in items
        }
        with transaction(self._session):
            return upsert_rows(
                self._session,
                HistoryModel,
                rows.values(),
                conflict_columns=("user_id", "item_id"),
                update_columns=("title", "poster_path", "media_type", "viewed_at"),
                ignore_conflicts=ignore_conflicts,
            )

    def clear(self, user_id: int) -> int:
        """Vide l'historique de l'utilisateur."""
        models = self._session.exec(
            select(HistoryModel).where(HistoryModel.user_id == user_id)
        ).all()
        with transaction(self._session):
            for model in models:
                self._session.delete(model)
        return len(models)
