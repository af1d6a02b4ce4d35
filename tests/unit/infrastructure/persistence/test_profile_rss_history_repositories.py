"""
Tests des repositories SQLModel du profil, des flux RSS et de l'historique,
et des outils SQL partages (transaction, upsert).
"""

from datetime import datetime, timezone

import pytest
from sqlmodel import Session as DBSession, select

from cinescope.core.entities import HistoryItem, Profile, RSSFeedSubscription
from cinescope.core.exceptions import ProfileStoreError
from cinescope.core.value_objects import MediaType
from cinescope.infrastructure.persistence.models import FavoriteModel
from cinescope.infrastructure.persistence.repositories import (
    SQLModelHistoryRepository,
    SQLModelProfileRepository,
    SQLModelRSSFeedRepository,
)
from cinescope.infrastructure.persistence.repositories.sql_helpers import (
    transaction,
    upsert_rows,
)


class TestProfileRepository:
    def test_upsert_then_update(self, profile_repo: SQLModelProfileRepository):
        profile_repo.upsert(Profile(7, "tyler", None))
        profile_repo.upsert(Profile(7, "tyler_d", "https://img/a.jpg"))

        assert profile_repo.get(7) == Profile(7, "tyler_d", "https://img/a.jpg")

    def test_get_missing(self, profile_repo: SQLModelProfileRepository):
        assert profile_repo.get(404) is None


class TestRSSFeedRepository:
    def _feed(self, feed_id: str, url: str, name: str = "Variety") -> RSSFeedSubscription:
        return RSSFeedSubscription(
            id=feed_id,
            name=name,
            url=url,
            description="News",
            category="News",
            added_at="2024-05-01T10:00:00.000Z",
        )

    def test_upsert_and_list(self, rss_repo: SQLModelRSSFeedRepository):
        feed = self._feed("f1", "https://variety.com/v/film/feed/")

        rss_repo.upsert(7, feed)

        assert rss_repo.list_for_user(7) == [feed]

    def test_same_url_updates_existing_subscription(self, rss_repo: SQLModelRSSFeedRepository):
        rss_repo.upsert(7, self._feed("f1", "https://variety.com/v/film/feed/"))
        rss_repo.upsert(7, self._feed("f2", "https://variety.com/v/film/feed/", "Variety Film"))

        feeds = rss_repo.list_for_user(7)

        assert len(feeds) == 1
        assert feeds[0].id == "f1"
        assert feeds[0].name == "Variety Film"

    def test_delete(self, rss_repo: SQLModelRSSFeedRepository):
        rss_repo.upsert(7, self._feed("f1", "https://a"))

        assert rss_repo.delete(7, "f1") is True
        assert rss_repo.delete(7, "f1") is False
        assert rss_repo.list_for_user(7) == []


class TestHistoryRepository:
    def test_newest_first_with_limit(self, history_repo: SQLModelHistoryRepository):
        history_repo.upsert(
            7,
            [
                HistoryItem(1, "Un", MediaType.MOVIE, None, 1_000),
                HistoryItem(2, "Deux", MediaType.TV, None, 3_000),
                HistoryItem(3, "Trois", MediaType.MOVIE, None, 2_000),
            ],
        )

        assert [i.item_id for i in history_repo.list_for_user(7)] == [2, 3, 1]
        assert [i.item_id for i in history_repo.list_for_user(7, limit=2)] == [2, 3]

    def test_revisit_moves_item_up(self, history_repo: SQLModelHistoryRepository):
        history_repo.upsert(7, [HistoryItem(1, "Un", MediaType.MOVIE, None, 1_000)])
        history_repo.upsert(7, [HistoryItem(2, "Deux", MediaType.MOVIE, None, 2_000)])
        history_repo.upsert(7, [HistoryItem(1, "Un", MediaType.MOVIE, None, 3_000)])

        items = history_repo.list_for_user(7)

        assert [i.item_id for i in items] == [1, 2]
        assert items[0].timestamp == 3_000

    def test_text_ids_preserved(self, history_repo: SQLModelHistoryRepository):
        history_repo.upsert(7, [HistoryItem("person-12", "X", MediaType.MOVIE, None, 1_000)])
        assert history_repo.list_for_user(7)[0].item_id == "person-12"

    def test_clear(self, history_repo: SQLModelHistoryRepository):
        history_repo.upsert(7, [HistoryItem(1, "Un", MediaType.MOVIE, None, 1_000)])
        history_repo.upsert(8, [HistoryItem(1, "Un", MediaType.MOVIE, None, 1_000)])

        assert history_repo.clear(7) == 1
        assert history_repo.list_for_user(7) == []
        assert len(history_repo.list_for_user(8)) == 1


class TestSqlHelpers:
    def test_transaction_wraps_database_errors(self, db_session: DBSession):
        """Une erreur SQL devient ProfileStoreError et la session reste utilisable."""
        row = {"user_id": 7, "media_id": 550, "media_type": "movie", "title": "A"}
        with transaction(db_session):
            db_session.add(FavoriteModel(**row))

        with pytest.raises(ProfileStoreError):
            with transaction(db_session):
                db_session.add(FavoriteModel(**row))

        assert len(db_session.exec(select(FavoriteModel)).all()) == 1
        assert upsert_rows(db_session, FavoriteModel, [], ("user_id",)) == 0

    def test_upsert_rows_do_nothing_without_update_columns(self, db_session: DBSession):
        row = {
            "user_id": 7,
            "media_id": 550,
            "media_type": "movie",
            "title": "A",
            "created_at": datetime.now(timezone.utc),
        }
        with transaction(db_session):
            upsert_rows(db_session, FavoriteModel, [row], ("user_id", "media_id", "media_type"))
        with transaction(db_session):
            upsert_rows(
                db_session,
                FavoriteModel,
                [{**row, "title": "B"}],
                ("user_id", "media_id", "media_type"),
            )

        models = db_session.exec(select(FavoriteModel)).all()
        assert [m.title for m in models] == ["A"]
