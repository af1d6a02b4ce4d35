"""
Synchroniseur de l'historique de consultation.

Une entree par media, la plus recente en tete, plafonnee (50 par defaut).
Une nouvelle consultation d'un media deja present le remonte en tete.
"""

from typing import Optional, Union

from cinescope.adapters.local_storage.records import HistoryRecord, read_records, write_records
from cinescope.core.entities import HistoryItem, Session
from cinescope.core.ports.local_store import ILocalStore
from cinescope.core.ports.profile_store import IHistoryRepository
from cinescope.core.value_objects import MediaType
from cinescope.services.session_state import SessionState
from cinescope.services.sync.base import BaseSynchronizer, remote
from cinescope.utils.constants import HISTORY_KEY
from cinescope.utils.helpers import now_ms


class HistorySynchronizer(BaseSynchronizer):
    """Historique de consultation (cle invite cine_history)."""

    name = "historique"

    def __init__(
        self,
        session_state: SessionState,
        local_store: ILocalStore,
        repository: IHistoryRepository,
        max_items: int = 50,
        **retry_options,
    ) -> None:
        super().__init__(session_state, local_store, **retry_options)
        self._repository = repository
        self._max_items = max_items
        self._items: list[HistoryItem] = []

    @property
    def items(self) -> list[HistoryItem]:
        return list(self._items)

    def _load_local(self) -> None:
        records = read_records(self._local_store, HISTORY_KEY, HistoryRecord)
        self._set_items(record.to_item() for record in records)

    async def _load_remote(self, session: Session) -> None:
        self._set_items(self._repository.list_for_user(session.user_id, limit=self._max_items))

    def _persist_local(self) -> None:
        write_records(
            self._local_store, HISTORY_KEY, (HistoryRecord.from_item(i) for i in self._items)
        )

    def _reset(self) -> None:
        self._items = []

    def _set_items(self, items) -> None:
        seen: set[str] = set()
        ordered = []
        for item in items:
            if str(item.item_id) not in seen:
                seen.add(str(item.item_id))
                ordered.append(item)
        self._items = ordered[: self._max_items]

    async def add(
        self,
        item_id: Union[int, str],
        title: str,
        media_type: MediaType,
        poster_path: Optional[str] = None,
    ) -> HistoryItem:
        """Enregistre une consultation (horodatee maintenant) en tete de l'historique."""
        item = HistoryItem(
            item_id=item_id,
            title=title,
            media_type=media_type,
            poster_path=poster_path,
            timestamp=now_ms(),
        )
        session = self.session
        await self.apply_optimistic(
            mutator=lambda: self._set_items([item] + self._items),
            compensator=None,
            remote_call=remote(self._repository.upsert, session.user_id, [item])
            if session
            else None,
            description=f"consultation de {item_id}",
        )
        return item

    async def clear(self) -> bool:
        """Vide l'historique."""
        session = self.session
        self._items = []
        if session is None:
            self._local_store.remove_item(HISTORY_KEY)
            self._notify()
            return True
        self._notify()
        return await self.write_through(
            remote(self._repository.clear, session.user_id), "vidage de l'historique"
        )
