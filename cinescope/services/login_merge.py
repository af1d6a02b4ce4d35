"""
Orchestrateur de fusion a la connexion.

Execute une seule fois par session authentifiee, il reconcilie le compte
TMDB, le Profile Store et l'instantane invite en cinq etapes, chacune
au mieux (une etape en echec est journalisee, la fusion continue) :

1. Profil : upsert de l'ID, du nom d'utilisateur et de l'avatar
2. Compte -> Profile Store : pour favoris, watchlist et notes, lecture de
   TOUTES les pages (films et series), suppression des lignes absentes du
   compte puis upsert de l'ensemble lu
3. Invite -> Profile Store : insertion des instantanes locaux (favoris,
   watchlist, notes, tracker, historique) sans ecraser l'existant
4. Profile Store -> Compte : chaque favori, element de watchlist et note
   est pousse independamment
5. Effacement des cles invite ; une cle dont l'import a echoue est
   conservee pour la fusion suivante

Les listes ne sont pas fusionnees.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

from cinescope.adapters.local_storage.records import (
    HistoryRecord,
    MediaRecord,
    RatingRecord,
    TrackedShowRecord,
    read_episode_keys,
    read_records,
)
from cinescope.core.entities import AccountUser, Profile, Session
from cinescope.core.exceptions import AccountServiceError
from cinescope.core.ports.account_service import AccountPage, IAccountService
from cinescope.core.ports.local_store import ILocalStore
from cinescope.core.ports.profile_store import (
    IHistoryRepository,
    IMediaCollectionRepository,
    IProfileRepository,
    ITrackerRepository,
)
from cinescope.core.value_objects import MediaType
from cinescope.logging_config import sync_logger
from cinescope.utils.constants import (
    FAVORITES_KEY,
    GUEST_MERGE_KEYS,
    HISTORY_KEY,
    RATINGS_KEY,
    TRACKER_EPISODES_KEY,
    TRACKER_SHOWS_KEY,
    WATCHLIST_KEY,
)

PageFetcher = Callable[[int, str, MediaType, int], Awaitable[AccountPage]]

_log = sync_logger("fusion")


@dataclass
class MergeReport:
    """
    Bilan d'une fusion.

    Attributes:
        user_id: Utilisateur fusionne
        skipped: True si la session avait deja ete fusionnee
        profile_synced: Etape 1 reussie
        pulled: Elements lus sur le compte, par collection
        pruned: Lignes supprimees du Profile Store, par collection
        imported: Elements invite soumis au Profile Store, par collection
        pushed: Elements acceptes par le compte, par collection
        push_failures: Elements refuses ou en erreur, par collection
        guest_keys_cleared: Etape 5 reussie
        kept_keys: Cles invite conservees (import en echec)
        errors: Etapes en echec ("etape:collection: message")
    """

    user_id: int
    skipped: bool = False
    profile_synced: bool = False
    pulled: dict[str, int] = field(default_factory=dict)
    pruned: dict[str, int] = field(default_factory=dict)
    imported: dict[str, int] = field(default_factory=dict)
    pushed: dict[str, int] = field(default_factory=dict)
    push_failures: dict[str, int] = field(default_factory=dict)
    guest_keys_cleared: bool = False
    kept_keys: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class LoginMergeOrchestrator:
    """
    Fusion invite -> compte, une fois par session.

    La garde (verrou asyncio + jetons de session deja traites) garantit
    qu'une session n'est fusionnee qu'une fois, meme si plusieurs
    transitions de connexion arrivent simultanement.

    Example:
        orchestrator = LoginMergeOrchestrator(account, profiles, favorites, ...)
        report = await orchestrator.merge(session)
    """

    def __init__(
        self,
        account: IAccountService,
        local_store: ILocalStore,
        profiles: IProfileRepository,
        favorites: IMediaCollectionRepository,
        watchlist: IMediaCollectionRepository,
        ratings: IMediaCollectionRepository,
        tracker: ITrackerRepository,
        history: IHistoryRepository,
        avatar_base_url: str = "https://image.tmdb.org/t/p/w200",
    ) -> None:
        self._account = account
        self._local_store = local_store
        self._profiles = profiles
        self._favorites = favorites
        self._watchlist = watchlist
        self._ratings = ratings
        self._tracker = tracker
        self._history = history
        self._avatar_base_url = avatar_base_url
        self._lock = asyncio.Lock()
        self._merged_tokens: set[str] = set()

    def has_merged(self, session: Session) -> bool:
        return session.session_token in self._merged_tokens

    async def merge(
        self, session: Session, account_user: Optional[AccountUser] = None
    ) -> MergeReport:
        """
        Execute la fusion pour une session (sans effet si deja faite).

        Args:
            session: Session authentifiee
            account_user: Details du compte (lus sur le compte si absents)

        Returns:
            Le bilan de la fusion
        """
        async with self._lock:
            if self.has_merged(session):
                _log.debug(f"Fusion deja faite pour l'utilisateur {session.user_id}")
                return MergeReport(user_id=session.user_id, skipped=True)
            self._merged_tokens.add(session.session_token)

            report = MergeReport(user_id=session.user_id)
            _log.info(f"Fusion a la connexion pour l'utilisateur {session.user_id}")

            await self._sync_profile(session, account_user, report)
            await self._pull_account_collections(session, report)
            self._import_guest_snapshots(session, report)
            await self._push_to_account(session, report)
            self._clear_guest_keys(report)

            if report.ok:
                _log.info(f"Fusion terminee pour l'utilisateur {session.user_id}")
            else:
                _log.warning(
                    f"Fusion partielle pour l'utilisateur {session.user_id}: "
                    f"{len(report.errors)} etape(s) en echec"
                )
            return report

    def _fail(self, report: MergeReport, step: str, error: Exception) -> None:
        _log.error(f"Fusion, etape {step} en echec: {error}")
        report.errors.append(f"{step}: {error}")

    # --- Etape 1 ---

    async def _sync_profile(
        self, session: Session, account_user: Optional[AccountUser], report: MergeReport
    ) -> None:
        try:
            if account_user is None and self._account.enabled:
                account_user = await self._account.get_account_details(session.session_token)
            if account_user is None:
                _log.debug("Details du compte indisponibles, profil non synchronise")
                return
            self._profiles.upsert(
                Profile(
                    user_id=session.user_id,
                    username=account_user.username,
                    avatar_url=account_user.avatar_url(self._avatar_base_url),
                )
            )
            report.profile_synced = True
        except Exception as e:
            self._fail(report, "profil", e)

    # --- Etape 2 ---

    async def _fetch_all(self, fetch_page: PageFetcher, session: Session) -> list[Any]:
        """Lit toutes les pages, films puis series."""
        items: list[Any] = []
        for media_type in MediaType:
            page = 1
            while True:
                result = await fetch_page(session.user_id, session.session_token, media_type, page)
                items.extend(result.results)
                if page >= result.total_pages:
                    break
                page += 1
        return items

    async def _pull_account_collections(self, session: Session, report: MergeReport) -> None:
        if not self._account.enabled:
            _log.debug("Service de compte desactive, lecture du compte ignoree")
            return

        collections = (
            ("favoris", self._account.get_favorites, self._favorites),
            ("watchlist", self._account.get_watchlist, self._watchlist),
            ("notes", self._account.get_rated, self._ratings),
        )
        for name, fetch_page, repository in collections:
            try:
                fetched = await self._fetch_all(fetch_page, session)
                fetched_keys = {item.key for item in fetched}
                stale = [
                    item.key
                    for item in repository.list_for_user(session.user_id)
                    if item.key not in fetched_keys
                ]
                report.pruned[name] = repository.delete_many(session.user_id, stale)
                repository.upsert(session.user_id, fetched)
                report.pulled[name] = len(fetched)
                _log.debug(f"Fusion {name}: {len(fetched)} lu(s), {len(stale)} supprime(s)")
            except Exception as e:
                self._fail(report, f"compte:{name}", e)

    # --- Etape 3 ---

    def _import_guest_snapshots(self, session: Session, report: MergeReport) -> None:
        user_id = session.user_id
        store = self._local_store

        favorites = [r.to_item() for r in read_records(store, FAVORITES_KEY, MediaRecord)]
        watchlist = [r.to_item() for r in read_records(store, WATCHLIST_KEY, MediaRecord)]
        ratings = [r.to_item() for r in read_records(store, RATINGS_KEY, RatingRecord)]
        shows = [r.to_show() for r in read_records(store, TRACKER_SHOWS_KEY, TrackedShowRecord)]
        episodes = read_episode_keys(store, TRACKER_EPISODES_KEY)
        history = [r.to_item() for r in read_records(store, HISTORY_KEY, HistoryRecord)]

        imports: tuple[tuple[str, str, Callable[[], int]], ...] = (
            (
                "favoris",
                FAVORITES_KEY,
                lambda: self._favorites.upsert(user_id, favorites, ignore_conflicts=True),
            ),
            (
                "watchlist",
                WATCHLIST_KEY,
                lambda: self._watchlist.upsert(user_id, watchlist, ignore_conflicts=True),
            ),
            (
                "notes",
                RATINGS_KEY,
                lambda: self._ratings.upsert(user_id, ratings, ignore_conflicts=True),
            ),
            (
                "series",
                TRACKER_SHOWS_KEY,
                lambda: self._tracker.upsert_shows(user_id, shows, ignore_conflicts=True),
            ),
            (
                "episodes",
                TRACKER_EPISODES_KEY,
                lambda: self._tracker.upsert_episodes(user_id, episodes),
            ),
            (
                "historique",
                HISTORY_KEY,
                lambda: self._history.upsert(user_id, history, ignore_conflicts=True),
            ),
        )
        for name, key, run in imports:
            try:
                report.imported[name] = run()
            except Exception as e:
                self._fail(report, f"invite:{name}", e)
                report.kept_keys.append(key)

    # --- Etape 4 ---

    async def _push_to_account(self, session: Session, report: MergeReport) -> None:
        if not self._account.enabled:
            return

        user_id, token = session.user_id, session.session_token
        pushes: tuple[tuple[str, Callable[[], list], Callable[[Any], Awaitable[bool]]], ...] = (
            (
                "favoris",
                lambda: self._favorites.list_for_user(user_id),
                lambda item: self._account.mark_favorite(
                    user_id, token, item.media_type, item.media_id, True
                ),
            ),
            (
                "watchlist",
                lambda: self._watchlist.list_for_user(user_id),
                lambda item: self._account.set_watchlist(
                    user_id, token, item.media_type, item.media_id, True
                ),
            ),
            (
                "notes",
                lambda: self._ratings.list_for_user(user_id),
                lambda item: self._account.rate(token, item.media_type, item.media_id, item.value),
            ),
        )
        for name, list_items, push in pushes:
            try:
                items = list_items()
            except Exception as e:
                self._fail(report, f"push:{name}", e)
                continue

            pushed = failed = 0
            for item in items:
                try:
                    accepted = await push(item)
                except AccountServiceError as e:
                    _log.warning(f"Push {name} {item.media_id} en echec: {e}")
                    accepted = False
                if accepted:
                    pushed += 1
                else:
                    failed += 1
            report.pushed[name] = pushed
            report.push_failures[name] = failed

    # --- Etape 5 ---

    def _clear_guest_keys(self, report: MergeReport) -> None:
        """Efface les cles invite, sauf celles dont l'import a echoue."""
        try:
            for key in GUEST_MERGE_KEYS:
                if key not in report.kept_keys:
                    self._local_store.remove_item(key)
            report.guest_keys_cleared = True
        except Exception as e:
            self._fail(report, "nettoyage", e)
        if report.kept_keys:
            _log.warning(f"Cles invite conservees pour la prochaine fusion: {report.kept_keys}")
