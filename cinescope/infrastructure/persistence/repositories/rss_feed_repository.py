"""
Implementation SQLModel du repository des abonnements RSS.
"""

from datetime import datetime, timezone

from loguru import logger
from sqlmodel import Session, select

from cinescope.core.entities import RSSFeedSubscription
from cinescope.core.ports.profile_store import IRSSFeedRepository
from cinescope.infrastructure.persistence.models import RSSFeedModel
from cinescope.infrastructure.persistence.repositories.sql_helpers import (
    transaction,
    upsert_rows,
)
from cinescope.utils.helpers import datetime_to_iso, iso_to_datetime


class SQLModelRSSFeedRepository(IRSSFeedRepository):
    """Repository SQLModel des abonnements RSS (url unique par utilisateur)."""

    def __init__(self, session: Session) -> None:
        """
        Initialise le repository avec une session SQLModel.

        Args :
            session : Session SQLModel active pour les operations DB
        """
        self._session = session

    def _to_entity(self, model: RSSFeedModel) -> RSSFeedSubscription:
        return RSSFeedSubscription(
            id=model.id,
            name=model.name,
            url=model.url,
            description=model.description,
            category=model.category,
            added_at=datetime_to_iso(model.added_at),
        )

    def list_for_user(self, user_id: int) -> list[RSSFeedSubscription]:
        statement = (
            select(RSSFeedModel)
            .where(RSSFeedModel.user_id == user_id)
            .order_by(RSSFeedModel.added_at.desc())
        )
        return [self._to_entity(model) for model in self._session.exec(statement).all()]

    def upsert(self, user_id: int, feed: RSSFeedSubscription) -> None:
        """Cree ou met a jour l'abonnement a une url."""
        added_at = datetime.now(timezone.utc)
        if feed.added_at:
            try:
                added_at = iso_to_datetime(feed.added_at)
            except ValueError:
                logger.warning(f"Date d'abonnement invalide ignoree: {feed.added_at!r}")
        with transaction(self._session):
            upsert_rows(
                self._session,
                RSSFeedModel,
                [
                    {
                        "id": feed.id,
                        "user_id": user_id,
                        "name": feed.name,
                        "url": feed.url,
                        "description": feed.description,
                        "category": feed.category,
                        "added_at": added_at,
                    }
                ],
                conflict_columns=("user_id", "url"),
                update_columns=("name", "description", "category"),
            )

    def delete(self, user_id: int, feed_id: str) -> bool:
        statement = select(RSSFeedModel).where(
            RSSFeedModel.user_id == user_id,
            RSSFeedModel.id == feed_id,
        )
        model = self._session.exec(statement).first()
        if model is None:
            return False
        with transaction(self._session):
            self._session.delete(model)
        return True
