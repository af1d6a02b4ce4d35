"""
Tests de l'orchestrateur de fusion a la connexion.

Scenario de reference : un invite ajoute Fight Club a ses favoris puis se
connecte (utilisateur 7) ; le favori se retrouve dans le Profile Store et
les cles invite sont effacees.
"""

import asyncio

import pytest

from cinescope.adapters.local_storage import InMemoryLocalStore
from cinescope.core.entities import AccountUser, RatingItem, Session, ShowMeta
from cinescope.core.exceptions import ProfileStoreError
from cinescope.core.value_objects import EpisodeKey, MediaKey, MediaType
from cinescope.infrastructure.persistence.repositories import (
    SQLModelFavoriteRepository,
    SQLModelHistoryRepository,
    SQLModelProfileRepository,
    SQLModelRatingRepository,
    SQLModelTrackerRepository,
    SQLModelWatchlistRepository,
)
from cinescope.services.login_merge import LoginMergeOrchestrator
from cinescope.services.pending_writes import PendingWriteQueue
from cinescope.services.session_state import SessionState
from cinescope.services.sync import (
    FavoritesSynchronizer,
    HistorySynchronizer,
    RatingsSynchronizer,
    TrackerSynchronizer,
)
from cinescope.utils.constants import (
    FAVORITES_KEY,
    GUEST_MERGE_KEYS,
    LISTS_KEY,
    PENDING_SHOWS_KEY,
    TRACKER_SHOWS_KEY,
)
from tests.fixtures.fake_account import FakeAccountService, movie, show

FIGHT_CLUB_KEY = MediaKey(550, MediaType.MOVIE)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def orchestrator(
    fake_account: FakeAccountService,
    local_store: InMemoryLocalStore,
    profile_repo: SQLModelProfileRepository,
    favorite_repo: SQLModelFavoriteRepository,
    watchlist_repo: SQLModelWatchlistRepository,
    rating_repo: SQLModelRatingRepository,
    tracker_repo: SQLModelTrackerRepository,
    history_repo: SQLModelHistoryRepository,
) -> LoginMergeOrchestrator:
    return LoginMergeOrchestrator(
        account=fake_account,
        local_store=local_store,
        profiles=profile_repo,
        favorites=favorite_repo,
        watchlist=watchlist_repo,
        ratings=rating_repo,
        tracker=tracker_repo,
        history=history_repo,
    )


@pytest.fixture
def guest_favorites(
    session_state: SessionState,
    local_store: InMemoryLocalStore,
    favorite_repo: SQLModelFavoriteRepository,
    fake_account: FakeAccountService,
    fast_retry,
) -> FavoritesSynchronizer:
    return FavoritesSynchronizer(
        session_state, local_store, favorite_repo, fake_account, **fast_retry
    )


def _refuse(*args, **kwargs):
    raise ProfileStoreError("base indisponible")


# ============================================================================
# Scenario de bout en bout
# ============================================================================


class TestGuestToAccount:
    @pytest.mark.asyncio
    async def test_guest_favorite_reaches_profile_store(
        self,
        orchestrator: LoginMergeOrchestrator,
        guest_favorites: FavoritesSynchronizer,
        local_store: InMemoryLocalStore,
        favorite_repo: SQLModelFavoriteRepository,
        profile_repo: SQLModelProfileRepository,
        fake_account: FakeAccountService,
        user_session: Session,
    ):
        await guest_favorites.add(movie(550, "Fight Club", "/x.jpg"))

        report = await orchestrator.merge(user_session)

        assert report.ok
        items = favorite_repo.list_for_user(7)
        assert [(i.media_id, i.title, i.poster_path) for i in items] == [
            (550, "Fight Club", "/x.jpg")
        ]
        assert local_store.get_item(FAVORITES_KEY) is None
        assert report.guest_keys_cleared is True
        assert profile_repo.get(7).username == "tyler"
        assert FIGHT_CLUB_KEY in fake_account.favorites
        assert report.pushed["favoris"] == 1

    @pytest.mark.asyncio
    async def test_all_guest_collections_imported(
        self,
        orchestrator: LoginMergeOrchestrator,
        session_state: SessionState,
        local_store: InMemoryLocalStore,
        rating_repo: SQLModelRatingRepository,
        tracker_repo: SQLModelTrackerRepository,
        history_repo: SQLModelHistoryRepository,
        fake_account: FakeAccountService,
        user_session: Session,
        fast_retry,
    ):
        ratings = RatingsSynchronizer(
            session_state, local_store, rating_repo, fake_account, **fast_retry
        )
        tracker = TrackerSynchronizer(
            session_state,
            local_store,
            tracker_repo,
            PendingWriteQueue(local_store, PENDING_SHOWS_KEY),
            **fast_retry,
        )
        history = HistorySynchronizer(session_state, local_store, history_repo, **fast_retry)
        await ratings.rate(FIGHT_CLUB_KEY, 9, title="Fight Club")
        await tracker.toggle_watched(1399, 1, 1, ShowMeta("Game of Thrones"))
        await history.add("person-12", "Brad Pitt", MediaType.MOVIE)
        local_store.set_item(LISTS_KEY, "[]")

        report = await orchestrator.merge(user_session)

        assert rating_repo.list_for_user(7)[0].value == 9
        assert tracker_repo.list_episodes(7) == {EpisodeKey(1399, 1, 1)}
        assert [s.show_id for s in tracker_repo.list_shows(7)] == [1399]
        assert history_repo.list_for_user(7)[0].item_id == "person-12"
        assert report.imported["notes"] == 1
        for key in GUEST_MERGE_KEYS:
            assert local_store.get_item(key) is None
        assert local_store.get_item(LISTS_KEY) == "[]"


# ============================================================================
# Garde une fois par session
# ============================================================================


class TestOncePerSession:
    @pytest.mark.asyncio
    async def test_second_merge_is_skipped(
        self,
        orchestrator: LoginMergeOrchestrator,
        fake_account: FakeAccountService,
        user_session: Session,
    ):
        first = await orchestrator.merge(user_session)
        calls = len(fake_account.calls)
        second = await orchestrator.merge(user_session)

        assert first.skipped is False
        assert second.skipped is True
        assert len(fake_account.calls) == calls
        assert orchestrator.has_merged(user_session)

    @pytest.mark.asyncio
    async def test_concurrent_merges_run_once(
        self,
        orchestrator: LoginMergeOrchestrator,
        fake_account: FakeAccountService,
        user_session: Session,
    ):
        reports = await asyncio.gather(
            orchestrator.merge(user_session), orchestrator.merge(user_session)
        )

        assert sorted(r.skipped for r in reports) == [False, True]
        assert len(fake_account.calls_to("get_account_details")) == 1

    @pytest.mark.asyncio
    async def test_new_session_merges_again(
        self, orchestrator: LoginMergeOrchestrator, user_session: Session
    ):
        await orchestrator.merge(user_session)
        report = await orchestrator.merge(Session(7, "sess-7-bis"))
        assert report.skipped is False

    @pytest.mark.asyncio
    async def test_repeated_merge_leaves_profile_store_unchanged(
        self,
        orchestrator: LoginMergeOrchestrator,
        guest_favorites: FavoritesSynchronizer,
        session_state: SessionState,
        local_store: InMemoryLocalStore,
        favorite_repo: SQLModelFavoriteRepository,
        watchlist_repo: SQLModelWatchlistRepository,
        rating_repo: SQLModelRatingRepository,
        tracker_repo: SQLModelTrackerRepository,
        fake_account: FakeAccountService,
        fast_retry,
    ):
        fake_account.favorites[MediaKey(13, MediaType.MOVIE)] = movie(13, "Forrest Gump")
        ratings = RatingsSynchronizer(
            session_state, local_store, rating_repo, fake_account, **fast_retry
        )
        tracker = TrackerSynchronizer(
            session_state,
            local_store,
            tracker_repo,
            PendingWriteQueue(local_store, PENDING_SHOWS_KEY),
            **fast_retry,
        )
        await guest_favorites.add(movie(550, "Fight Club", "/x.jpg"))
        await ratings.rate(FIGHT_CLUB_KEY, 8, title="Fight Club")
        await tracker.toggle_watched(1399, 1, 1, ShowMeta("Game of Thrones"))

        def snapshot():
            return (
                sorted((i.media_id, i.media_type.value) for i in favorite_repo.list_for_user(7)),
                sorted((i.media_id, i.media_type.value) for i in watchlist_repo.list_for_user(7)),
                sorted((i.media_id, i.value) for i in rating_repo.list_for_user(7)),
                sorted(s.show_id for s in tracker_repo.list_shows(7)),
                sorted(str(key) for key in tracker_repo.list_episodes(7)),
            )

        first = await orchestrator.merge(Session(7, "a"))
        after_first = snapshot()
        second = await orchestrator.merge(Session(7, "b"))

        assert first.skipped is False and second.skipped is False
        assert after_first == (
            [(13, "movie"), (550, "movie")],
            [],
            [(550, 8.0)],
            [1399],
            ["1399:1:1"],
        )
        assert snapshot() == after_first


# ============================================================================
# Compte -> Profile Store
# ============================================================================


class TestAccountPull:
    @pytest.mark.asyncio
    async def test_reads_every_page_of_both_types(
        self,
        local_store: InMemoryLocalStore,
        profile_repo: SQLModelProfileRepository,
        favorite_repo: SQLModelFavoriteRepository,
        watchlist_repo: SQLModelWatchlistRepository,
        rating_repo: SQLModelRatingRepository,
        tracker_repo: SQLModelTrackerRepository,
        history_repo: SQLModelHistoryRepository,
        user_session: Session,
    ):
        account = FakeAccountService(page_size=2)
        for media_id in range(1, 6):
            item = movie(media_id, f"Film {media_id}")
            account.favorites[item.key] = item
        got = show(1399, "Game of Thrones")
        account.favorites[got.key] = got
        orchestrator = LoginMergeOrchestrator(
            account,
            local_store,
            profile_repo,
            favorite_repo,
            watchlist_repo,
            rating_repo,
            tracker_repo,
            history_repo,
        )

        report = await orchestrator.merge(user_session)

        pages = [(c[1], c[2]) for c in account.calls_to("get_favorites")]
        assert pages == [
            (MediaType.MOVIE, 1),
            (MediaType.MOVIE, 2),
            (MediaType.MOVIE, 3),
            (MediaType.TV, 1),
        ]
        assert report.pulled["favoris"] == 6
        assert len(favorite_repo.list_for_user(7)) == 6

    @pytest.mark.asyncio
    async def test_prunes_rows_missing_from_account(
        self,
        orchestrator: LoginMergeOrchestrator,
        favorite_repo: SQLModelFavoriteRepository,
        fake_account: FakeAccountService,
        user_session: Session,
    ):
        favorite_repo.upsert(7, [movie(550, "Fight Club"), movie(680, "Pulp Fiction")])
        pulp = movie(680, "Pulp Fiction")
        fake_account.favorites[pulp.key] = pulp

        report = await orchestrator.merge(user_session)

        assert report.pruned["favoris"] == 1
        assert [i.media_id for i in favorite_repo.list_for_user(7)] == [680]

    @pytest.mark.asyncio
    async def test_account_ratings_overwrite_profile_store(
        self,
        orchestrator: LoginMergeOrchestrator,
        rating_repo: SQLModelRatingRepository,
        fake_account: FakeAccountService,
        user_session: Session,
    ):
        rating_repo.upsert(7, [RatingItem(550, MediaType.MOVIE, "Fight Club", 4)])
        fake_account.rated[FIGHT_CLUB_KEY] = RatingItem(550, MediaType.MOVIE, "Fight Club", 9)

        await orchestrator.merge(user_session)

        assert rating_repo.list_for_user(7)[0].value == 9

    @pytest.mark.asyncio
    async def test_failed_pull_keeps_existing_rows(
        self,
        orchestrator: LoginMergeOrchestrator,
        favorite_repo: SQLModelFavoriteRepository,
        fake_account: FakeAccountService,
        user_session: Session,
    ):
        favorite_repo.upsert(7, [movie(550, "Fight Club")])
        fake_account.fail_on.add("get_favorites")

        report = await orchestrator.merge(user_session)

        assert "compte:favoris" in report.errors[0]
        assert [i.media_id for i in favorite_repo.list_for_user(7)] == [550]
        assert report.guest_keys_cleared is True

    @pytest.mark.asyncio
    async def test_disabled_account_skips_account_steps(
        self,
        local_store: InMemoryLocalStore,
        profile_repo: SQLModelProfileRepository,
        favorite_repo: SQLModelFavoriteRepository,
        watchlist_repo: SQLModelWatchlistRepository,
        rating_repo: SQLModelRatingRepository,
        tracker_repo: SQLModelTrackerRepository,
        history_repo: SQLModelHistoryRepository,
        user_session: Session,
    ):
        account = FakeAccountService(enabled=False)
        orchestrator = LoginMergeOrchestrator(
            account,
            local_store,
            profile_repo,
            favorite_repo,
            watchlist_repo,
            rating_repo,
            tracker_repo,
            history_repo,
        )

        report = await orchestrator.merge(
            user_session, account_user=AccountUser(7, "tyler", avatar_path="/a.png")
        )

        assert account.calls == []
        assert report.ok
        assert profile_repo.get(7).avatar_url == "https://image.tmdb.org/t/p/w200/a.png"


# ============================================================================
# Profile Store -> Compte et effacement
# ============================================================================


class TestPushAndCleanup:
    @pytest.mark.asyncio
    async def test_refused_pushes_are_counted(
        self,
        orchestrator: LoginMergeOrchestrator,
        guest_favorites: FavoritesSynchronizer,
        fake_account: FakeAccountService,
        user_session: Session,
    ):
        await guest_favorites.add(movie(550, "Fight Club"))
        await guest_favorites.add(movie(680, "Pulp Fiction"))
        fake_account.refuse.add("mark_favorite")

        report = await orchestrator.merge(user_session)

        assert report.pushed["favoris"] == 0
        assert report.push_failures["favoris"] == 2
        assert report.ok

    @pytest.mark.asyncio
    async def test_failed_import_keeps_guest_key(
        self,
        orchestrator: LoginMergeOrchestrator,
        guest_favorites: FavoritesSynchronizer,
        session_state: SessionState,
        local_store: InMemoryLocalStore,
        tracker_repo: SQLModelTrackerRepository,
        fast_retry,
        monkeypatch,
    ):
        tracker = TrackerSynchronizer(
            session_state,
            local_store,
            tracker_repo,
            PendingWriteQueue(local_store, PENDING_SHOWS_KEY),
            **fast_retry,
        )
        await tracker.track_show(1399, ShowMeta("Game of Thrones"))
        await guest_favorites.add(movie(550, "Fight Club"))
        monkeypatch.setattr(tracker_repo, "upsert_shows", _refuse)

        report = await orchestrator.merge(Session(7, "sess-7"))

        assert report.kept_keys == [TRACKER_SHOWS_KEY]
        assert local_store.get_item(TRACKER_SHOWS_KEY) is not None
        assert local_store.get_item(FAVORITES_KEY) is None
        assert not report.ok
