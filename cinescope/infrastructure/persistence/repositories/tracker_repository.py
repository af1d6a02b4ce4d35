"""
Implementation SQLModel du repository du tracker d'episodes.

Deux tables independantes :
- tracked_shows : series suivies, triees par derniere activite
- watched_episodes : episodes vus, conserves meme apres l'arret du suivi
"""

from collections import defaultdict
from typing import Iterable

from sqlmodel import Session, select

from cinescope.core.entities import TrackedShow
from cinescope.core.ports.profile_store import ITrackerRepository
from cinescope.core.value_objects import EpisodeKey
from cinescope.infrastructure.persistence.models import TrackedShowModel, WatchedEpisodeModel
from cinescope.infrastructure.persistence.repositories.sql_helpers import (
    transaction,
    upsert_rows,
)
from cinescope.utils.helpers import datetime_to_ms, ms_to_datetime, now_ms


class SQLModelTrackerRepository(ITrackerRepository):
    """
    Repository SQLModel du suivi d'episodes.

    Convertit last_updated entre millisecondes epoch (domaine) et
    datetime UTC (base).
    """

    def __init__(self, session: Session) -> None:
        """
        Initialise le repository avec une session SQLModel.

        Args :
            session : Session SQLModel active pour les operations DB
        """
        self._session = session

    def _to_entity(self, model: TrackedShowModel) -> TrackedShow:
        return TrackedShow(
            show_id=model.show_id,
            name=model.show_name,
            poster_path=model.poster_path,
            last_updated=datetime_to_ms(model.last_updated),
        )

    def list_shows(self, user_id: int) -> list[TrackedShow]:
        """Series suivies, plus recemment mises a jour en premier."""
        statement = (
            select(TrackedShowModel)
            .where(TrackedShowModel.user_id == user_id)
            .order_by(TrackedShowModel.last_updated.desc())
        )
        return [self._to_entity(model) for model in self._session.exec(statement).all()]

    def list_episodes(self, user_id: int) -> set[EpisodeKey]:
        """Ensemble des episodes vus par l'utilisateur."""
        statement = select(WatchedEpisodeModel).where(WatchedEpisodeModel.user_id == user_id)
        return {
            EpisodeKey(model.show_id, model.season_number, model.episode_number)
            for model in self._session.exec(statement).all()
        }

    def upsert_shows(
        self, user_id: int, shows: Iterable[TrackedShow], ignore_conflicts: bool = False
    ) -> int:
        """Insere ou met a jour des series suivies (nom, affiche, activite)."""
        rows = {
            show.show_id: {
                "user_id": user_id,
                "show_id": show.show_id,
                "show_name": show.name,
                "poster_path": show.poster_path,
                "last_updated": ms_to_datetime(show.last_updated or now_ms()),
            }
            for show in shows
        }
        with transaction(self._session):
            return upsert_rows(
                self._session,
                TrackedShowModel,
                rows.values(),
                conflict_columns=("user_id", "show_id"),
                update_columns=("show_name", "poster_path", "last_updated"),
                ignore_conflicts=ignore_conflicts,
            )

    def delete_show(self, user_id: int, show_id: int) -> bool:
        """Arrete le suivi d'une serie ; les episodes vus restent en base."""
        statement = select(TrackedShowModel).where(
            TrackedShowModel.user_id == user_id,
            TrackedShowModel.show_id == show_id,
        )
        model = self._session.exec(statement).first()
        if model is None:
            return False
        with transaction(self._session):
            self._session.delete(model)
        return True

    def upsert_episodes(self, user_id: int, keys: Iterable[EpisodeKey]) -> int:
        """Marque des episodes comme vus en une seule requete."""
        rows = [
            {
                "user_id": user_id,
                "show_id": key.show_id,
                "season_number": key.season,
                "episode_number": key.episode,
                "watched_at": ms_to_datetime(now_ms()),
            }
            for key in set(keys)
        ]
        with transaction(self._session):
            return upsert_rows(
                self._session,
                WatchedEpisodeModel,
                rows,
                conflict_columns=("user_id", "show_id", "season_number", "episode_number"),
                ignore_conflicts=True,
            )

    def delete_episodes(self, user_id: int, keys: Iterable[EpisodeKey]) -> int:
        """Marque des episodes comme non vus, groupes par saison."""
        episodes_by_season: dict[tuple[int, int], set[int]] = defaultdict(set)
        for key in keys:
            episodes_by_season[(key.show_id, key.season)].add(key.episode)
        if not episodes_by_season:
            return 0

        deleted = 0
        with transaction(self._session):
            for (show_id, season), episodes in episodes_by_season.items():
                statement = select(WatchedEpisodeModel).where(
                    WatchedEpisodeModel.user_id == user_id,
                    WatchedEpisodeModel.show_id == show_id,
                    WatchedEpisodeModel.season_number == season,
                    WatchedEpisodeModel.episode_number.in_(episodes),
                )
                for model in self._session.exec(statement).all():
                    self._session.delete(model)
                    deleted += 1
        return deleted
