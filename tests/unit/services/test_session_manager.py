"""
Tests du gestionnaire de session (connexion, reprise, deconnexion).
"""

import pytest

from cinescope.adapters.local_storage import InMemoryLocalStore
from cinescope.core.entities import Session
from cinescope.infrastructure.persistence.repositories import (
    SQLModelFavoriteRepository,
    SQLModelHistoryRepository,
    SQLModelProfileRepository,
    SQLModelRatingRepository,
    SQLModelTrackerRepository,
    SQLModelWatchlistRepository,
)
from cinescope.services.login_merge import LoginMergeOrchestrator
from cinescope.services.session_manager import SessionManager
from cinescope.services.session_state import SessionState
from cinescope.services.sync import FavoritesSynchronizer
from cinescope.utils.constants import FAVORITES_KEY
from tests.fixtures.fake_account import FakeAccountService, movie


@pytest.fixture
def favorites(
    session_state: SessionState,
    local_store: InMemoryLocalStore,
    favorite_repo: SQLModelFavoriteRepository,
    fake_account: FakeAccountService,
    fast_retry,
) -> FavoritesSynchronizer:
    return FavoritesSynchronizer(
        session_state, local_store, favorite_repo, fake_account, **fast_retry
    )


@pytest.fixture
def manager(
    fake_account: FakeAccountService,
    session_state: SessionState,
    local_store: InMemoryLocalStore,
    profile_repo: SQLModelProfileRepository,
    favorite_repo: SQLModelFavoriteRepository,
    watchlist_repo: SQLModelWatchlistRepository,
    rating_repo: SQLModelRatingRepository,
    tracker_repo: SQLModelTrackerRepository,
    history_repo: SQLModelHistoryRepository,
    favorites: FavoritesSynchronizer,
) -> SessionManager:
    orchestrator = LoginMergeOrchestrator(
        fake_account,
        local_store,
        profile_repo,
        favorite_repo,
        watchlist_repo,
        rating_repo,
        tracker_repo,
        history_repo,
    )
    return SessionManager(
        fake_account,
        session_state,
        orchestrator,
        synchronizers=[favorites],
        redirect_url="http://localhost:3000/auth/callback",
    )


class TestAuthorizeUrl:
    def test_with_redirect(self, manager: SessionManager):
        assert manager.authorize_url("abc") == (
            "https://www.themoviedb.org/authenticate/abc"
            "?redirect_to=http%3A%2F%2Flocalhost%3A3000%2Fauth%2Fcallback"
        )

    def test_without_redirect(
        self, fake_account: FakeAccountService, session_state: SessionState
    ):
        manager = SessionManager(fake_account, session_state, merge_orchestrator=None)
        assert manager.authorize_url("abc") == "https://www.themoviedb.org/authenticate/abc"

    @pytest.mark.asyncio
    async def test_begin_login(self, manager: SessionManager):
        url = await manager.begin_login()
        assert url.startswith("https://www.themoviedb.org/authenticate/req-token")


class TestCompleteLogin:
    @pytest.mark.asyncio
    async def test_guest_data_survives_login(
        self,
        manager: SessionManager,
        favorites: FavoritesSynchronizer,
        local_store: InMemoryLocalStore,
        favorite_repo: SQLModelFavoriteRepository,
    ):
        await favorites.add(movie(550, "Fight Club", "/x.jpg"))
        transitions = []
        manager.subscribe(transitions.append)

        session = await manager.complete_login("req-token")

        assert session == Session(7, "sess-7")
        assert manager.current == session
        assert transitions == [session]
        assert manager.last_report.ok
        assert [i.media_id for i in favorites.items] == [550]
        assert [i.media_id for i in favorite_repo.list_for_user(7)] == [550]
        assert local_store.get_item(FAVORITES_KEY) is None

    @pytest.mark.asyncio
    async def test_not_approved(self, manager: SessionManager, fake_account: FakeAccountService):
        assert await manager.complete_login("req-token", approved=False) is None
        assert fake_account.calls == []
        assert manager.current is None

    @pytest.mark.asyncio
    async def test_denied_token(self, manager: SessionManager):
        assert await manager.complete_login("denied") is None
        assert manager.current is None

    @pytest.mark.asyncio
    async def test_missing_account_details(
        self, manager: SessionManager, fake_account: FakeAccountService, monkeypatch
    ):
        async def no_details(session_token):
            return None

        monkeypatch.setattr(fake_account, "get_account_details", no_details)

        assert await manager.complete_login("req-token") is None
        assert manager.current is None


class TestResumeAndLogout:
    @pytest.mark.asyncio
    async def test_resume_merges_once(
        self, manager: SessionManager, fake_account: FakeAccountService
    ):
        session = Session(7, "sess-7")

        first = await manager.resume(session)
        second = await manager.resume(session)

        assert first.skipped is False
        assert second.skipped is True
        assert manager.current == session

    @pytest.mark.asyncio
    async def test_logout_returns_to_guest(
        self,
        manager: SessionManager,
        favorites: FavoritesSynchronizer,
        fake_account: FakeAccountService,
        local_store: InMemoryLocalStore,
    ):
        await manager.complete_login("req-token")
        await favorites.add(movie(550, "Fight Club"))

        assert await manager.logout() is True

        assert manager.current is None
        assert fake_account.deleted_sessions == ["sess-7"]
        assert favorites.items == []
        assert local_store.get_item(FAVORITES_KEY) is None

    @pytest.mark.asyncio
    async def test_logout_without_session(
        self, manager: SessionManager, fake_account: FakeAccountService
    ):
        assert await manager.logout() is False
        assert fake_account.deleted_sessions == []
