"""
Synchroniseur du tracker d'episodes.

Deux etats orthogonaux :
- les series suivies (Non suivie <-> Suivie, cycle libre)
- les episodes vus, ensemble de cles "showId:saison:episode"

Arreter le suivi d'une serie conserve ses episodes vus.

Ecritures distantes :
- Episodes : ecriture relancee puis, en cas d'echec, simple log. Une file
  dediee (cine_pending_watched_episodes) peut etre activee par configuration.
- Series : l'intention est enregistree dans la file d'attente AVANT l'appel
  distant, et retiree seulement apres succes ; la file est rejouee au
  prochain chargement connecte.
- Saisons : une seule ecriture groupee, jamais d'annulation partielle.
"""

from typing import Iterable, Optional

from cinescope.adapters.local_storage.records import (
    TrackedShowRecord,
    read_episode_keys,
    read_records,
    write_episode_keys,
    write_records,
)
from cinescope.core.entities import (
    PendingAction,
    PendingWrite,
    Session,
    ShowMeta,
    TrackedShow,
)
from cinescope.core.ports.local_store import ILocalStore
from cinescope.core.ports.profile_store import ITrackerRepository
from cinescope.core.value_objects import EpisodeKey
from cinescope.services.pending_writes import PendingWriteQueue
from cinescope.services.session_state import SessionState
from cinescope.services.sync.base import BaseSynchronizer, remote
from cinescope.utils.constants import TRACKER_EPISODES_KEY, TRACKER_SHOWS_KEY
from cinescope.utils.helpers import now_ms


def _show_metadata(show: TrackedShow) -> dict:
    return {"name": show.name, "poster": show.poster_path, "lastUpdated": show.last_updated}


class TrackerSynchronizer(BaseSynchronizer):
    """
    Synchroniseur des series suivies et des episodes vus.

    Example:
        tracker = TrackerSynchronizer(state, store, repo, pending_shows)
        await tracker.load()
        await tracker.toggle_watched(1399, 1, 1, ShowMeta("Game of Thrones"))
        tracker.is_watched(1399, 1, 1)  # True
    """

    name = "tracker"

    def __init__(
        self,
        session_state: SessionState,
        local_store: ILocalStore,
        repository: ITrackerRepository,
        pending_shows: PendingWriteQueue,
        pending_episodes: Optional[PendingWriteQueue] = None,
        **retry_options,
    ) -> None:
        """
        Initialise le synchroniseur.

        Args:
            session_state: Session courante
            local_store: Stockage local du mode invite
            repository: Tables tracked_shows / watched_episodes
            pending_shows: File des suivis de series non confirmes
            pending_episodes: File des episodes non confirmes (None = desactivee)
            **retry_options: max_retries / base_delay
        """
        super().__init__(session_state, local_store, **retry_options)
        self._repository = repository
        self._pending_shows = pending_shows
        self._pending_episodes = pending_episodes
        self._episodes: set[EpisodeKey] = set()
        self._shows: dict[int, TrackedShow] = {}

    # --- Lectures ---

    def is_watched(self, show_id: int, season: int, episode: int) -> bool:
        return EpisodeKey(show_id, season, episode) in self._episodes

    def is_tracked(self, show_id: int) -> bool:
        return show_id in self._shows

    @property
    def shows(self) -> list[TrackedShow]:
        """Series suivies, derniere activite en premier."""
        return sorted(self._shows.values(), key=lambda s: s.last_updated, reverse=True)

    @property
    def watched_episodes(self) -> set[EpisodeKey]:
        return set(self._episodes)

    def watched_count(self, show_id: int) -> int:
        return sum(1 for key in self._episodes if key.show_id == show_id)

    # --- Chargement / persistance ---

    def _load_local(self) -> None:
        self._episodes = read_episode_keys(self._local_store, TRACKER_EPISODES_KEY)
        records = read_records(self._local_store, TRACKER_SHOWS_KEY, TrackedShowRecord)
        self._shows = {record.id: record.to_show() for record in records}

    async def _replay_pending(self, session: Session) -> None:
        await self.flush_pending(session.user_id)

    async def _load_remote(self, session: Session) -> None:
        shows = self._repository.list_shows(session.user_id)
        episodes = self._repository.list_episodes(session.user_id)
        self._shows = {show.show_id: show for show in shows}
        self._episodes = episodes

    def _persist_local(self) -> None:
        write_episode_keys(self._local_store, TRACKER_EPISODES_KEY, self._episodes)
        write_records(
            self._local_store,
            TRACKER_SHOWS_KEY,
            (TrackedShowRecord.from_show(show) for show in self.shows),
        )

    def _reset(self) -> None:
        self._episodes = set()
        self._shows = {}

    async def refresh_from_server(self) -> None:
        """Recharge depuis le Profile Store (retour de visibilite)."""
        if self.is_authenticated:
            await self.load()

    # --- Files d'attente ---

    async def flush_pending(self, user_id: int) -> int:
        """Rejoue les ecritures en attente du proprietaire."""
        replayed = await self._pending_shows.flush(user_id, self._replay)
        if self._pending_episodes is not None:
            replayed += await self._pending_episodes.flush(user_id, self._replay)
        return replayed

    async def _replay(self, user_id: int, write: PendingWrite) -> None:
        if write.action is PendingAction.TRACK:
            show = TrackedShow(
                show_id=int(write.entity_id),
                name=write.metadata.get("name", ""),
                poster_path=write.metadata.get("poster"),
                last_updated=write.metadata.get("lastUpdated") or now_ms(),
            )
            self._repository.upsert_shows(user_id, [show])
        elif write.action is PendingAction.UNTRACK:
            self._repository.delete_show(user_id, int(write.entity_id))
        elif write.action is PendingAction.WATCH:
            self._repository.upsert_episodes(user_id, [EpisodeKey.parse(str(write.entity_id))])
        elif write.action is PendingAction.UNWATCH:
            self._repository.delete_episodes(user_id, [EpisodeKey.parse(str(write.entity_id))])

    async def _write_queued(
        self,
        queue: Optional[PendingWriteQueue],
        write: PendingWrite,
        remote_call,
        description: str,
    ) -> bool:
        """Enregistre l'intention, ecrit, et retire l'intention apres succes."""
        if queue is not None:
            queue.save(write.entity_id, write.metadata, write.action)
        ok = await self.write_through(remote_call, description)
        if ok and queue is not None:
            queue.discard(write)
        elif queue is not None:
            self._log.info(f"{description} conserve dans {queue.key}")
        return ok

    # --- Episodes ---

    def _touch_show(self, show_id: int, show_meta: Optional[ShowMeta]) -> Optional[TrackedShow]:
        if show_meta is None:
            return None
        show = TrackedShow(
            show_id=show_id,
            name=show_meta.name,
            poster_path=show_meta.poster_path,
            last_updated=now_ms(),
        )
        self._shows[show_id] = show
        return show

    async def toggle_watched(
        self,
        show_id: int,
        season: int,
        episode: int,
        show_meta: Optional[ShowMeta] = None,
    ) -> bool:
        """
        Inverse l'etat vu d'un episode.

        Passer un episode a "vu" avec show_meta suit la serie et met a jour
        sa derniere activite.

        Returns:
            Le nouvel etat (True = vu)
        """
        key = EpisodeKey(show_id, season, episode)
        watched = key not in self._episodes
        show = None
        if watched:
            self._episodes.add(key)
            show = self._touch_show(show_id, show_meta)
        else:
            self._episodes.discard(key)
        self._changed()

        session = self.session
        if session is None:
            return watched

        user_id = session.user_id

        async def call() -> None:
            if watched:
                if show is not None:
                    self._repository.upsert_shows(user_id, [show])
                self._repository.upsert_episodes(user_id, [key])
            else:
                self._repository.delete_episodes(user_id, [key])

        write = PendingWrite(
            entity_id=str(key),
            action=PendingAction.WATCH if watched else PendingAction.UNWATCH,
            metadata={"name": show.name, "poster": show.poster_path} if show else {},
        )
        state = "vu" if watched else "non vu"
        await self._write_queued(self._pending_episodes, write, call, f"episode {key} -> {state}")
        return watched

    async def mark_season_watched(
        self,
        show_id: int,
        season: int,
        episodes: Iterable[int],
        show_meta: Optional[ShowMeta] = None,
    ) -> int:
        """
        Marque une saison comme vue en une seule ecriture groupee.

        Returns:
            Nombre d'episodes nouvellement marques
        """
        keys = {EpisodeKey(show_id, season, number) for number in episodes}
        added = keys - self._episodes
        self._episodes |= keys
        show = self._touch_show(show_id, show_meta)
        self._changed()

        session = self.session
        if session is not None and keys:
            user_id = session.user_id

            async def call() -> None:
                if show is not None:
                    self._repository.upsert_shows(user_id, [show])
                self._repository.upsert_episodes(user_id, keys)

            await self.write_through(call, f"saison {season} de {show_id} -> vue")
        return len(added)

    async def mark_season_unwatched(
        self, show_id: int, season: int, episodes: Iterable[int]
    ) -> int:
        """
        Marque une saison comme non vue en une seule suppression groupee.

        Returns:
            Nombre d'episodes retires
        """
        keys = {EpisodeKey(show_id, season, number) for number in episodes}
        removed = keys & self._episodes
        self._episodes -= keys
        self._changed()

        session = self.session
        if session is not None and keys:
            await self.write_through(
                remote(self._repository.delete_episodes, session.user_id, keys),
                f"saison {season} de {show_id} -> non vue",
            )
        return len(removed)

    # --- Series ---

    async def track_show(self, show_id: int, meta: ShowMeta) -> bool:
        """
        Suit une serie.

        Returns:
            True si l'ecriture distante a abouti (ou mode invite) ; sinon
            l'intention reste dans la file d'attente
        """
        show = TrackedShow(
            show_id=show_id,
            name=meta.name,
            poster_path=meta.poster_path,
            last_updated=now_ms(),
        )
        self._shows[show_id] = show
        self._changed()

        session = self.session
        if session is None:
            return True
        write = PendingWrite(
            entity_id=show_id, action=PendingAction.TRACK, metadata=_show_metadata(show)
        )
        return await self._write_queued(
            self._pending_shows,
            write,
            remote(self._repository.upsert_shows, session.user_id, [show]),
            f"suivi de la serie {show_id}",
        )

    async def untrack_show(self, show_id: int) -> bool:
        """
        Arrete le suivi d'une serie ; ses episodes vus sont conserves.

        Returns:
            False si la serie n'etait pas suivie ou si l'ecriture distante a echoue
        """
        snapshot = self._shows.pop(show_id, None)
        if snapshot is None:
            return False
        self._changed()

        session = self.session
        if session is None:
            return True
        write = PendingWrite(
            entity_id=show_id, action=PendingAction.UNTRACK, metadata=_show_metadata(snapshot)
        )
        return await self._write_queued(
            self._pending_shows,
            write,
            remote(self._repository.delete_show, session.user_id, show_id),
            f"arret du suivi de la serie {show_id}",
        )
