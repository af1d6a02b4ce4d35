"""
Synchroniseurs des collections de medias : favoris, watchlist, notes.

Les trois collections ont la meme structure (cle media_id + media_type).
En mode connecte, chaque mutation est ecrite dans le Profile Store puis
repercutee au mieux sur le compte TMDB ; un echec du compte est seulement
journalise, la fusion suivante le repousse.

Politique d'annulation :
- add : annule si l'ecriture dans le Profile Store echoue
- remove, rate : jamais annules
"""

from abc import abstractmethod
from typing import Callable, Generic, Optional, TypeVar

from cinescope.adapters.local_storage.records import (
    MediaRecord,
    RatingRecord,
    read_records,
    write_records,
)
from cinescope.core.entities import CollectionItem, RatingItem, Session
from cinescope.core.exceptions import AccountServiceError
from cinescope.core.ports.account_service import IAccountService
from cinescope.core.ports.local_store import ILocalStore
from cinescope.core.ports.profile_store import IMediaCollectionRepository
from cinescope.core.value_objects import MediaKey
from cinescope.services.session_state import SessionState
from cinescope.services.sync.base import BaseSynchronizer
from cinescope.utils.constants import (
    FAVORITES_KEY,
    RATINGS_KEY,
    TMDB_MAX_RATING,
    TMDB_MIN_RATING,
    WATCHLIST_KEY,
)

T = TypeVar("T", CollectionItem, RatingItem)


class MediaCollectionSynchronizer(BaseSynchronizer, Generic[T]):
    """
    Synchroniseur generique d'une collection de medias.

    L'etat est une liste ordonnee (plus recents en premier) sans doublon
    de cle, doublee d'un index par cle.

    Attributes:
        local_key: Cle de l'instantane invite
        record_model: Format JSON de l'instantane
    """

    local_key: str
    record_model: type[MediaRecord] = MediaRecord

    def __init__(
        self,
        session_state: SessionState,
        local_store: ILocalStore,
        repository: IMediaCollectionRepository[T],
        account: Optional[IAccountService] = None,
        **retry_options,
    ) -> None:
        """
        Initialise le synchroniseur.

        Args:
            session_state: Session courante
            local_store: Stockage local du mode invite
            repository: Table du Profile Store
            account: Service de compte pour le miroir (optionnel)
            **retry_options: max_retries / base_delay
        """
        super().__init__(session_state, local_store, **retry_options)
        self._repository = repository
        self._account = account
        self._items: list[T] = []
        self._index: dict[MediaKey, T] = {}

    @property
    def items(self) -> list[T]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def is_member(self, key: MediaKey) -> bool:
        return key in self._index

    def get(self, key: MediaKey) -> Optional[T]:
        return self._index.get(key)

    # --- Chargement / persistance ---

    def _load_local(self) -> None:
        records = read_records(self._local_store, self.local_key, self.record_model)
        self._set_items(record.to_item() for record in records)

    async def _load_remote(self, session: Session) -> None:
        self._set_items(self._repository.list_for_user(session.user_id))

    def _persist_local(self) -> None:
        write_records(
            self._local_store,
            self.local_key,
            (self.record_model.from_item(item) for item in self._items),
        )

    def _reset(self) -> None:
        self._items = []
        self._index = {}

    def _set_items(self, items) -> None:
        unique: dict[MediaKey, T] = {}
        for item in items:
            unique.setdefault(item.key, item)
        self._items = list(unique.values())
        self._index = unique

    def _insert(self, item: T) -> None:
        self._items = [item] + [i for i in self._items if i.key != item.key]
        self._index[item.key] = item

    def _discard(self, key: MediaKey) -> None:
        if self._index.pop(key, None) is not None:
            self._items = [i for i in self._items if i.key != key]

    # --- Miroir compte ---

    @abstractmethod
    async def _mirror(self, session: Session, key: MediaKey, present: bool) -> None:
        """Repercute l'appartenance sur le compte TMDB."""

    def _remote_upsert(self, session: Session, item: T) -> Callable:
        async def call() -> None:
            self._repository.upsert(session.user_id, [item])
            await self._mirror_best_effort(session, item.key, True)

        return call

    def _remote_delete(self, session: Session, key: MediaKey) -> Callable:
        async def call() -> None:
            self._repository.delete(session.user_id, key)
            await self._mirror_best_effort(session, key, False)

        return call

    async def _mirror_best_effort(self, session: Session, key: MediaKey, present: bool) -> None:
        if self._account is None or not self._account.enabled:
            return
        try:
            await self._mirror(session, key, present)
        except AccountServiceError as e:
            self._log.warning(f"Miroir compte impossible pour {key.media_id}: {e}")

    # --- Mutations ---

    async def add(self, item: T) -> bool:
        """
        Ajoute un element (annule si l'ecriture distante echoue).

        Returns:
            True si l'element est dans la collection a l'issue de l'appel
        """
        if self.is_member(item.key):
            return True
        session = self.session
        return await self.apply_optimistic(
            mutator=lambda: self._insert(item),
            compensator=lambda: self._discard(item.key),
            remote_call=self._remote_upsert(session, item) if session else None,
            description=f"ajout de {item.media_type.value} {item.media_id}",
        )

    async def remove(self, key: MediaKey) -> bool:
        """
        Retire un element (jamais annule).

        Returns:
            True si l'ecriture distante a abouti (ou mode invite)
        """
        if not self.is_member(key):
            return False
        session = self.session
        return await self.apply_optimistic(
            mutator=lambda: self._discard(key),
            compensator=None,
            remote_call=self._remote_delete(session, key) if session else None,
            description=f"retrait de {key.media_type.value} {key.media_id}",
        )

    async def toggle(self, item: T) -> bool:
        """Ajoute ou retire ; retourne la nouvelle appartenance."""
        if self.is_member(item.key):
            await self.remove(item.key)
            return False
        return await self.add(item)


class FavoritesSynchronizer(MediaCollectionSynchronizer[CollectionItem]):
    """Favoris (cle invite cine_favorites)."""

    name = "favoris"
    local_key = FAVORITES_KEY

    async def _mirror(self, session: Session, key: MediaKey, present: bool) -> None:
        await self._account.mark_favorite(
            session.user_id, session.session_token, key.media_type, key.media_id, present
        )


class WatchlistSynchronizer(MediaCollectionSynchronizer[CollectionItem]):
    """Watchlist (cle invite cine_watchlist)."""

    name = "watchlist"
    local_key = WATCHLIST_KEY

    async def _mirror(self, session: Session, key: MediaKey, present: bool) -> None:
        await self._account.set_watchlist(
            session.user_id, session.session_token, key.media_type, key.media_id, present
        )


class RatingsSynchronizer(MediaCollectionSynchronizer[RatingItem]):
    """
    Notes (cle invite cine_ratings).

    rate() cree ou remplace une note sans jamais l'annuler.
    """

    name = "notes"
    local_key = RATINGS_KEY
    record_model = RatingRecord

    def get_value(self, key: MediaKey) -> Optional[float]:
        item = self.get(key)
        return item.value if item else None

    async def rate(
        self,
        key: MediaKey,
        value: float,
        title: Optional[str] = None,
        poster_path: Optional[str] = None,
    ) -> bool:
        """
        Note un media.

        Args:
            key: Media note
            value: Note (0.5 a 10)
            title: Titre (repris de la note existante si absent)
            poster_path: Affiche (reprise de la note existante si absente)

        Raises:
            ValueError: Si la note est hors bornes
        """
        if not TMDB_MIN_RATING <= value <= TMDB_MAX_RATING:
            raise ValueError(f"Note hors bornes: {value}")

        existing = self.get(key)
        item = RatingItem(
            media_id=key.media_id,
            media_type=key.media_type,
            title=title if title is not None else (existing.title if existing else ""),
            value=value,
            poster_path=poster_path if poster_path is not None else (
                existing.poster_path if existing else None
            ),
        )
        session = self.session
        return await self.apply_optimistic(
            mutator=lambda: self._insert(item),
            compensator=None,
            remote_call=self._remote_upsert(session, item) if session else None,
            description=f"note {value} pour {key.media_type.value} {key.media_id}",
        )

    async def _mirror(self, session: Session, key: MediaKey, present: bool) -> None:
        if present:
            item = self.get(key)
            if item is None:
                return
            await self._account.rate(
                session.session_token, key.media_type, key.media_id, item.value
            )
        else:
            await self._account.delete_rating(session.session_token, key.media_type, key.media_id)
