"""
Synchroniseur des listes personnalisees.

Mode invite : les listes (avec leurs elements) sont stockees sous cine_lists,
avec un ID genere a partir de l'horodatage ; elles ne sont jamais fusionnees
au compte a la connexion.

Mode connecte : la liste est d'abord creee sur le compte TMDB (au mieux),
puis dans le Profile Store avec l'ID distant. Les elements sont charges a
la demande (get_list_details).
"""

from typing import Optional, Union

from cinescope.adapters.local_storage.records import (
    UserListRecord,
    read_records,
    write_records,
)
from cinescope.core.entities import CollectionItem, ListItem, Session, UserList
from cinescope.core.exceptions import AccountServiceError, ProfileStoreError
from cinescope.core.ports.account_service import IAccountService
from cinescope.core.ports.local_store import ILocalStore
from cinescope.core.ports.profile_store import IListRepository
from cinescope.core.value_objects import MediaKey
from cinescope.services.session_state import SessionState
from cinescope.services.sync.base import BaseSynchronizer, remote
from cinescope.utils.constants import LISTS_KEY
from cinescope.utils.helpers import now_iso, now_ms


class ListsSynchronizer(BaseSynchronizer):
    """
    Synchroniseur des listes personnalisees.

    Le compteur d'elements est maintenu en memoire (+1 a l'ajout, plancher
    a 0 au retrait) ; les elements ne sont connus qu'une fois charges.
    """

    name = "listes"

    def __init__(
        self,
        session_state: SessionState,
        local_store: ILocalStore,
        repository: IListRepository,
        account: IAccountService,
        **retry_options,
    ) -> None:
        super().__init__(session_state, local_store, **retry_options)
        self._repository = repository
        self._account = account
        self._lists: list[UserList] = []

    @property
    def lists(self) -> list[UserList]:
        return list(self._lists)

    def get(self, list_id: int) -> Optional[UserList]:
        for user_list in self._lists:
            if user_list.id == list_id:
                return user_list
        return None

    # --- Chargement / persistance ---

    def _load_local(self) -> None:
        records = read_records(self._local_store, LISTS_KEY, UserListRecord)
        self._lists = [record.to_list() for record in records]

    async def _load_remote(self, session: Session) -> None:
        self._lists = self._repository.list_for_user(session.user_id)

    def _persist_local(self) -> None:
        write_records(
            self._local_store, LISTS_KEY, (UserListRecord.from_list(lst) for lst in self._lists)
        )

    def _reset(self) -> None:
        self._lists = []

    # --- Compte TMDB (au mieux) ---

    async def _account_call(self, description: str, operation) -> Optional[object]:
        if not self._account.enabled:
            return None
        try:
            return await operation()
        except AccountServiceError as e:
            self._log.warning(f"{description} sur le compte impossible: {e}")
            return None

    # --- Mutations ---

    async def create_list(self, name: str, description: Optional[str] = None) -> Optional[UserList]:
        """
        Cree une liste.

        Returns:
            La liste creee, ou None si le Profile Store a refuse l'ecriture
        """
        session = self.session
        if session is None:
            created = UserList(id=now_ms(), name=name, description=description, items=[])
            self._lists.insert(0, created)
            self._changed()
            return created

        remote_list_id = await self._account_call(
            "creation de liste",
            lambda: self._account.create_list(session.session_token, name, description or ""),
        )
        result: list[UserList] = []

        async def call() -> None:
            result.append(
                self._repository.create(session.user_id, name, description, remote_list_id)
            )

        if not await self.write_through(call, f"creation de la liste {name!r}"):
            return None
        created = result[-1]
        self._lists.insert(0, created)
        self._changed()
        return created

    async def delete_list(self, list_id: int) -> bool:
        """Supprime une liste (jamais annule)."""
        target = self.get(list_id)
        if target is None:
            return False
        session = self.session
        if session is not None and target.remote_list_id is not None:
            await self._account_call(
                "suppression de liste",
                lambda: self._account.delete_list(session.session_token, target.remote_list_id),
            )
        return await self.apply_optimistic(
            mutator=lambda: self._lists.remove(target),
            compensator=None,
            remote_call=remote(self._repository.delete, session.user_id, list_id)
            if session
            else None,
            description=f"suppression de la liste {list_id}",
        )

    async def add_to_list(
        self, list_id: int, item: Union[ListItem, CollectionItem]
    ) -> bool:
        """
        Ajoute un media a une liste (annule si l'ecriture echoue).

        Returns:
            False si la liste est inconnue, le media deja present, ou l'ecriture refusee
        """
        target = self.get(list_id)
        if target is None:
            return False
        if target.items is not None and any(i.key == item.key for i in target.items):
            return False

        entry = ListItem(
            media_id=item.media_id,
            media_type=item.media_type,
            title=item.title,
            poster_path=item.poster_path,
            added_at=getattr(item, "added_at", "") or now_iso(),
        )

        def mutate() -> None:
            target.count += 1
            if target.items is not None:
                target.items.append(entry)

        def compensate() -> None:
            target.count = max(0, target.count - 1)
            if target.items is not None:
                target.items = [i for i in target.items if i.key != entry.key]

        session = self.session
        remote_call = None
        if session is not None:

            async def remote_call() -> None:
                self._repository.add_items(list_id, [entry])
                if target.remote_list_id is not None:
                    await self._account_call(
                        "ajout a la liste",
                        lambda: self._account.add_to_list(
                            session.session_token, target.remote_list_id, entry.media_id
                        ),
                    )

        return await self.apply_optimistic(
            mutate, compensate, remote_call, f"ajout de {entry.media_id} a la liste {list_id}"
        )

    async def remove_from_list(self, list_id: int, key: MediaKey) -> bool:
        """Retire un media d'une liste (jamais annule, compteur plancher a 0)."""
        target = self.get(list_id)
        if target is None:
            return False

        def mutate() -> None:
            target.count = max(0, target.count - 1)
            if target.items is not None:
                target.items = [i for i in target.items if i.key != key]

        session = self.session
        remote_call = None
        if session is not None:

            async def remote_call() -> None:
                self._repository.remove_item(list_id, key)
                if target.remote_list_id is not None:
                    await self._account_call(
                        "retrait de la liste",
                        lambda: self._account.remove_from_list(
                            session.session_token, target.remote_list_id, key.media_id
                        ),
                    )

        return await self.apply_optimistic(
            mutate, None, remote_call, f"retrait de {key.media_id} de la liste {list_id}"
        )

    async def get_list_details(self, list_id: int) -> Optional[UserList]:
        """
        Liste avec ses elements.

        La version en memoire est retournee si ses elements sont complets ;
        sinon, en mode connecte, la liste est relue depuis le Profile Store.
        """
        cached = self.get(list_id)
        if cached is not None and cached.items is not None and len(cached.items) == cached.count:
            return cached

        session = self.session
        if session is None:
            return cached

        fresh = self._repository.get(session.user_id, list_id)
        if fresh is None:
            return cached
        self._lists = [fresh if lst.id == list_id else lst for lst in self._lists]
        if cached is None:
            self._lists.insert(0, fresh)
        self._notify()
        return fresh

    async def import_remote_lists(self) -> tuple[int, int]:
        """
        Importe les listes du compte TMDB dans le Profile Store.

        Une liste deja associee (remote_list_id) est mise a jour et completee ;
        une nouvelle liste est creee avec ses elements.

        Returns:
            (listes importees, listes mises a jour)
        """
        session = self.session
        if session is None or not self._account.enabled:
            return 0, 0

        imported = updated = 0
        for remote_list in await self._account.get_lists(session.user_id, session.session_token):
            details = await self._account.get_list_details(remote_list.id)
            items = details.items if details and details.items else []
            try:
                existing = self._repository.find_by_remote_id(session.user_id, remote_list.id)
                if existing is not None:
                    self._repository.update(existing.id, remote_list.name, remote_list.description)
                    self._repository.add_items(existing.id, items)
                    updated += 1
                else:
                    created = self._repository.create(
                        session.user_id,
                        remote_list.name,
                        remote_list.description,
                        remote_list_id=remote_list.id,
                    )
                    self._repository.add_items(created.id, items)
                    imported += 1
            except ProfileStoreError as e:
                self._log.warning(f"Import de la liste {remote_list.id} impossible: {e}")

        self._log.info(f"{imported} importee(s), {updated} mise(s) a jour")
        await self.load()
        return imported, updated
