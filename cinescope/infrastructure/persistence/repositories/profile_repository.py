"""
Implementation SQLModel du repository des profils.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Session, select

from cinescope.core.entities import Profile
from cinescope.core.ports.profile_store import IProfileRepository
from cinescope.infrastructure.persistence.models import ProfileModel
from cinescope.infrastructure.persistence.repositories.sql_helpers import (
    transaction,
    upsert_rows,
)


class SQLModelProfileRepository(IProfileRepository):
    """Repository SQLModel des profils (cle : ID du compte)."""

    def __init__(self, session: Session) -> None:
        """
        Initialise le repository avec une session SQLModel.

        Args :
            session : Session SQLModel active pour les operations DB
        """
        self._session = session

    def upsert(self, profile: Profile) -> None:
        """Cree ou met a jour le profil."""
        with transaction(self._session):
            upsert_rows(
                self._session,
                ProfileModel,
                [
                    {
                        "id": profile.user_id,
                        "username": profile.username,
                        "avatar_url": profile.avatar_url,
                        "updated_at": datetime.now(timezone.utc),
                    }
                ],
                conflict_columns=("id",),
                update_columns=("username", "avatar_url", "updated_at"),
            )

    def get(self, user_id: int) -> Optional[Profile]:
        """Recupere un profil par ID de compte."""
        model = self._session.exec(select(ProfileModel).where(ProfileModel.id == user_id)).first()
        if model is None:
            return None
        return Profile(user_id=model.id, username=model.username, avatar_url=model.avatar_url)
