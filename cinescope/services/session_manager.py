"""
Gestionnaire de session : transitions invite <-> connecte.

Flux de connexion TMDB :
1. begin_login() cree un jeton de requete et retourne l'URL d'approbation
2. l'utilisateur approuve le jeton sur TMDB
3. complete_login() echange le jeton contre une session, lit le compte,
   ouvre la session, lance la fusion (une fois) puis recharge les collections

La deconnexion invalide la session distante (au mieux) et recharge les
collections en mode invite.
"""

from typing import Callable, Optional, Sequence
from urllib.parse import quote

from loguru import logger

from cinescope.core.entities import AccountUser, Session
from cinescope.core.ports.account_service import IAccountService
from cinescope.services.login_merge import LoginMergeOrchestrator, MergeReport
from cinescope.services.session_state import SessionState
from cinescope.services.sync.base import BaseSynchronizer


class SessionManager:
    """
    Pilote les transitions de session.

    Example:
        manager = SessionManager(account, state, orchestrator, synchronizers)
        url = await manager.begin_login()
        session = await manager.complete_login(request_token)
        await manager.logout()
    """

    def __init__(
        self,
        account: IAccountService,
        session_state: SessionState,
        merge_orchestrator: LoginMergeOrchestrator,
        synchronizers: Sequence[BaseSynchronizer] = (),
        authenticate_url: str = "https://www.themoviedb.org/authenticate",
        redirect_url: Optional[str] = None,
    ) -> None:
        """
        Initialise le gestionnaire.

        Args:
            account: Service de compte TMDB
            session_state: Etat de session partage avec les synchroniseurs
            merge_orchestrator: Fusion a la connexion
            synchronizers: Collections rechargees a chaque transition
            authenticate_url: Page d'approbation des jetons TMDB
            redirect_url: URL de retour apres approbation (optionnelle)
        """
        self._account = account
        self._state = session_state
        self._merge = merge_orchestrator
        self._synchronizers = list(synchronizers)
        self._authenticate_url = authenticate_url.rstrip("/")
        self._redirect_url = redirect_url
        self.last_report: Optional[MergeReport] = None

    @property
    def current(self) -> Optional[Session]:
        return self._state.current

    def subscribe(self, listener: Callable[[Optional[Session]], None]) -> Callable[[], None]:
        """Abonne un observateur aux transitions de session."""
        return self._state.subscribe(listener)

    def authorize_url(self, request_token: str) -> str:
        url = f"{self._authenticate_url}/{request_token}"
        if self._redirect_url:
            url += f"?redirect_to={quote(self._redirect_url, safe='')}"
        return url

    async def begin_login(self) -> Optional[str]:
        """
        Demarre la connexion.

        Returns:
            L'URL d'approbation, ou None si le service de compte est indisponible
        """
        token = await self._account.create_request_token()
        if token is None:
            logger.warning("Creation du jeton de requete TMDB impossible")
            return None
        return self.authorize_url(token)

    async def complete_login(self, request_token: str, approved: bool = True) -> Optional[Session]:
        """
        Termine la connexion apres approbation du jeton.

        Args:
            request_token: Jeton approuve par l'utilisateur
            approved: False si l'utilisateur a refuse l'approbation

        Returns:
            La session ouverte, ou None en cas d'echec
        """
        if not approved:
            logger.info("Connexion refusee par l'utilisateur")
            return None

        session_token = await self._account.create_session(request_token)
        if session_token is None:
            logger.warning("Echange du jeton de requete refuse")
            return None

        account_user = await self._account.get_account_details(session_token)
        if account_user is None:
            logger.warning("Details du compte indisponibles, connexion abandonnee")
            return None

        session = Session(user_id=account_user.id, session_token=session_token)
        await self._adopt(session, account_user)
        logger.info(f"Connecte en tant que {account_user.username} ({account_user.id})")
        return session

    async def resume(self, session: Session) -> MergeReport:
        """Reprend une session existante (fusion si pas encore faite)."""
        return await self._adopt(session, None)

    async def _adopt(self, session: Session, account_user: Optional[AccountUser]) -> MergeReport:
        self._state.set(session)
        self.last_report = await self._merge.merge(session, account_user)
        await self.reload_all()
        return self.last_report

    async def logout(self) -> bool:
        """
        Ferme la session courante.

        Returns:
            False si aucune session n'etait ouverte
        """
        session = self._state.current
        if session is None:
            return False
        if not await self._account.delete_session(session.session_token):
            logger.debug("Invalidation de la session distante non confirmee")
        self._state.set(None)
        await self.reload_all()
        logger.info(f"Deconnexion de l'utilisateur {session.user_id}")
        return True

    async def reload_all(self, replay_pending: bool = True) -> None:
        """
        Recharge toutes les collections depuis la source du mode courant.

        Args:
            replay_pending: False pour une lecture seule (files non rejouees)
        """
        for synchronizer in self._synchronizers:
            await synchronizer.load(replay_pending=replay_pending)
