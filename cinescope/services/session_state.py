"""
Etat de session partage entre les synchroniseurs.

La presence d'une Session signifie le mode connecte ; son absence, le mode
invite. Le SessionManager est le seul a modifier l'etat ; les
synchroniseurs le lisent a chaque operation.
"""

from typing import Callable, Optional

from loguru import logger

from cinescope.core.entities import Session

Listener = Callable[[Optional[Session]], None]


class SessionState:
    """
    Detenteur de la session courante, observable.

    Example:
        state = SessionState()
        unsubscribe = state.subscribe(lambda session: print(session))
        state.set(Session(user_id=7, session_token="abc"))
        unsubscribe()
    """

    def __init__(self, session: Optional[Session] = None) -> None:
        self._session = session
        self._listeners: list[Listener] = []

    @property
    def current(self) -> Optional[Session]:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def set(self, session: Optional[Session]) -> None:
        """Remplace la session courante et notifie les abonnes si elle change."""
        if session == self._session:
            return
        self._session = session
        logger.debug(
            f"Session {'ouverte pour ' + str(session.user_id) if session else 'fermee'}"
        )
        for listener in list(self._listeners):
            listener(session)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Abonne un observateur ; retourne la fonction de desabonnement."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
