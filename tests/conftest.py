"""
Fixtures pytest partagees pour les tests CineScope.

Ce module contient les fixtures communes utilisees dans les tests:
- Stockage local en memoire (mode invite)
- Profile Store SQLite en memoire et ses repositories
- Etat de session et session authentifiee de test
- Service de compte simule
"""

from typing import Iterator

import pytest
from sqlalchemy import Engine
from sqlmodel import Session as DBSession

from cinescope.adapters.local_storage import InMemoryLocalStore
from cinescope.core.entities import Session
from cinescope.infrastructure.persistence.database import create_db_engine, init_db
from cinescope.infrastructure.persistence.repositories import (
    SQLModelFavoriteRepository,
    SQLModelHistoryRepository,
    SQLModelListRepository,
    SQLModelProfileRepository,
    SQLModelRatingRepository,
    SQLModelRSSFeedRepository,
    SQLModelTrackerRepository,
    SQLModelWatchlistRepository,
)
from cinescope.services.session_state import SessionState
from tests.fixtures.fake_account import FakeAccountService


@pytest.fixture
def fast_retry() -> dict:
    """Relances sans attente (1 appel + 2 relances)."""
    return {"max_retries": 2, "base_delay": 0}


@pytest.fixture
def local_store() -> InMemoryLocalStore:
    """Stockage local vierge."""
    return InMemoryLocalStore()


@pytest.fixture
def db_engine() -> Engine:
    """Profile Store SQLite en memoire, tables creees."""
    engine = create_db_engine("sqlite:///:memory:")
    init_db(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine) -> Iterator[DBSession]:
    with DBSession(db_engine) as session:
        yield session


@pytest.fixture
def session_state() -> SessionState:
    """Etat de session en mode invite."""
    return SessionState()


@pytest.fixture
def user_session() -> Session:
    """Session authentifiee de l'utilisateur 7."""
    return Session(user_id=7, session_token="sess-7")


@pytest.fixture
def fake_account() -> FakeAccountService:
    return FakeAccountService()


@pytest.fixture
def profile_repo(db_session: DBSession) -> SQLModelProfileRepository:
    return SQLModelProfileRepository(db_session)


@pytest.fixture
def favorite_repo(db_session: DBSession) -> SQLModelFavoriteRepository:
    return SQLModelFavoriteRepository(db_session)


@pytest.fixture
def watchlist_repo(db_session: DBSession) -> SQLModelWatchlistRepository:
    return SQLModelWatchlistRepository(db_session)


@pytest.fixture
def rating_repo(db_session: DBSession) -> SQLModelRatingRepository:
    return SQLModelRatingRepository(db_session)


@pytest.fixture
def tracker_repo(db_session: DBSession) -> SQLModelTrackerRepository:
    return SQLModelTrackerRepository(db_session)


@pytest.fixture
def list_repo(db_session: DBSession) -> SQLModelListRepository:
    return SQLModelListRepository(db_session)


@pytest.fixture
def rss_repo(db_session: DBSession) -> SQLModelRSSFeedRepository:
    return SQLModelRSSFeedRepository(db_session)


@pytest.fixture
def history_repo(db_session: DBSession) -> SQLModelHistoryRepository:
    return SQLModelHistoryRepository(db_session)
