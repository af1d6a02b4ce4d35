"""
Socle commun des synchroniseurs de collections.

Chaque synchroniseur possede l'etat en memoire d'une collection et le
reconcilie avec le stockage local (mode invite) ou le Profile Store
(mode connecte). Le socle fournit :
- load() : chargement depuis la source du mode courant
- la persistance invite apres chaque changement d'etat
- subscribe() : notification des observateurs apres chaque changement
- apply_optimistic() : mutation immediate puis ecriture distante relancee,
  avec compensation optionnelle en cas d'echec
- RemoteWrites : ecritures distantes suivies et annulables
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional, TypeVar

from cinescope.adapters.api.retry import DEFAULT_BASE_DELAY, DEFAULT_MAX_RETRIES, with_retry
from cinescope.core.entities import Session
from cinescope.core.exceptions import RemoteWriteCancelled
from cinescope.core.ports.local_store import ILocalStore
from cinescope.logging_config import sync_logger
from cinescope.services.session_state import SessionState

T = TypeVar("T")

RemoteCall = Callable[[], Awaitable[Any]]
Listener = Callable[[], None]


def remote(fn: Callable[..., T], *args: Any, **kwargs: Any) -> Callable[[], Awaitable[T]]:
    """
    Emballe un appel synchrone (repository) en operation async sans argument.

    Chaque relance rappelle fn avec les memes arguments.
    """

    async def call() -> T:
        return fn(*args, **kwargs)

    return call


class RemoteWrites:
    """
    Ecritures distantes en cours, executees comme taches asyncio.

    L'appelant attend la tache ; cancel_pending() les annule toutes et
    l'appelant recoit alors RemoteWriteCancelled (sauf si c'est lui-meme
    qui est annule, auquel cas CancelledError se propage).
    """

    def __init__(self, log=None) -> None:
        self._tasks: set[asyncio.Task] = set()
        self._log = log or sync_logger("ecritures")

    @property
    def pending_count(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        task = asyncio.ensure_future(operation())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        try:
            return await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            raise RemoteWriteCancelled("Ecriture distante annulee") from None

    def cancel_pending(self) -> int:
        """Annule les ecritures en cours ; retourne le nombre d'annulations."""
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            self._log.info(f"{len(pending)} ecriture(s) distante(s) annulee(s)")
        return len(pending)


class BaseSynchronizer(ABC):
    """
    Synchroniseur d'une collection.

    Les sous-classes implementent :
    - _load_local() : lecture de l'instantane invite
    - _load_remote(session) : lecture depuis le Profile Store
    - _persist_local() : ecriture de l'instantane invite
    - _reset() : vidage de l'etat en memoire

    Attributes:
        name: Nom de la collection (logs)
    """

    name = "collection"

    def __init__(
        self,
        session_state: SessionState,
        local_store: ILocalStore,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay: float = DEFAULT_BASE_DELAY,
    ) -> None:
        """
        Initialise le synchroniseur.

        Args:
            session_state: Session courante (absence = mode invite)
            local_store: Stockage local du mode invite
            max_retries: Relances des ecritures distantes
            base_delay: Delai de base du backoff lineaire (secondes)
        """
        self._session_state = session_state
        self._local_store = local_store
        self._max_retries = max_retries
        self._base_delay = base_delay
        self._log = sync_logger(self.name)
        self._writes = RemoteWrites(self._log)
        self._load_task: Optional[asyncio.Task] = None
        self._load_signature: Optional[tuple] = None
        self._listeners: list[Listener] = []
        self._loading = False

    # --- Etat ---

    @property
    def session(self) -> Optional[Session]:
        return self._session_state.current

    @property
    def is_authenticated(self) -> bool:
        return self._session_state.is_authenticated

    @property
    def is_loading(self) -> bool:
        return self._loading

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Abonne un observateur ; retourne la fonction de desabonnement."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    def _changed(self) -> None:
        """A appeler apres chaque changement d'etat."""
        if not self.is_authenticated:
            self._persist_local()
        self._notify()

    # --- Chargement ---

    async def load(self, replay_pending: bool = True) -> None:
        """
        Charge la collection depuis la source du mode courant.

        Des appels concurrents pour la meme session partagent un seul
        chargement. Un echec de lecture distante laisse la collection vide.

        Args:
            replay_pending: Rejouer les ecritures en attente avant la lecture
                distante (False = lecture seule)
        """
        signature = (self.session, replay_pending)
        task = self._load_task
        if task is None or task.done() or self._load_signature != signature:
            task = asyncio.ensure_future(self._run_load(self.session, replay_pending))
            self._load_task = task
            self._load_signature = signature
        await asyncio.shield(task)

    async def _run_load(self, session: Optional[Session], replay_pending: bool) -> None:
        self._loading = True
        self._notify()
        try:
            if session is None:
                self._load_local()
                self._log.debug("Instantane invite charge")
            else:
                log = self._log.bind(user_id=session.user_id)
                try:
                    if replay_pending:
                        await self._replay_pending(session)
                    await self._load_remote(session)
                    log.debug("Charge depuis le Profile Store")
                except Exception as e:
                    log.warning(f"Chargement distant impossible: {e}")
                    self._reset()
        finally:
            self._loading = False
            self._notify()

    async def _replay_pending(self, session: Session) -> None:
        """Rejoue les ecritures en attente avant un chargement distant."""

    @abstractmethod
    def _load_local(self) -> None: ...

    @abstractmethod
    async def _load_remote(self, session: Session) -> None: ...

    @abstractmethod
    def _persist_local(self) -> None: ...

    @abstractmethod
    def _reset(self) -> None: ...

    # --- Ecritures ---

    async def write_through(self, remote_call: RemoteCall, description: str) -> bool:
        """
        Execute une ecriture distante relancee, comme tache annulable.

        Returns:
            True si l'ecriture a abouti, False apres epuisement des relances
        """
        session = self.session
        log = self._log.bind(user_id=session.user_id) if session else self._log
        try:
            await self._writes.run(
                lambda: with_retry(
                    remote_call, max_retries=self._max_retries, base_delay=self._base_delay
                )
            )
        except RemoteWriteCancelled:
            log.info(f"{description} annule")
            return False
        except Exception as e:
            log.warning(f"{description} abandonne apres relances: {e}")
            return False
        return True

    async def apply_optimistic(
        self,
        mutator: Callable[[], None],
        compensator: Optional[Callable[[], None]],
        remote_call: Optional[RemoteCall],
        description: str = "ecriture",
    ) -> bool:
        """
        Applique une mutation optimiste.

        L'etat en memoire change immediatement ; en mode connecte, l'ecriture
        distante suit. En cas d'echec, le compensateur (s'il existe) annule la
        mutation : la politique d'annulation est choisie par l'action.

        Args:
            mutator: Mutation de l'etat en memoire
            compensator: Annulation de la mutation (None = pas d'annulation)
            remote_call: Ecriture distante (ignoree en mode invite)
            description: Libelle pour les logs

        Returns:
            True si la mutation est acquise
        """
        mutator()
        self._changed()
        if remote_call is None or not self.is_authenticated:
            return True

        if await self.write_through(remote_call, description):
            return True

        if compensator is not None:
            compensator()
            self._changed()
            self._log.info(f"{description} annule localement")
        return False

    def cancel_pending(self) -> int:
        """Annule les ecritures distantes en cours."""
        return self._writes.cancel_pending()
