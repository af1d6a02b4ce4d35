"""
Synchroniseur des abonnements RSS.

Un abonnement est unique par url. L'ajout est annule si l'ecriture dans le
Profile Store echoue ; le retrait ne l'est jamais.
"""

import uuid
from typing import Optional

from cinescope.adapters.local_storage.records import RSSFeedRecord, read_records, write_records
from cinescope.core.entities import RSSFeedSubscription, Session
from cinescope.core.ports.local_store import ILocalStore
from cinescope.core.ports.profile_store import IRSSFeedRepository
from cinescope.services.session_state import SessionState
from cinescope.services.sync.base import BaseSynchronizer, remote
from cinescope.utils.constants import POPULAR_CINEMA_FEEDS, RSS_FEEDS_KEY
from cinescope.utils.helpers import now_iso


class RSSFeedsSynchronizer(BaseSynchronizer):
    """Abonnements RSS (cle invite cinescope_rss_feeds)."""

    name = "flux RSS"

    def __init__(
        self,
        session_state: SessionState,
        local_store: ILocalStore,
        repository: IRSSFeedRepository,
        **retry_options,
    ) -> None:
        super().__init__(session_state, local_store, **retry_options)
        self._repository = repository
        self._feeds: list[RSSFeedSubscription] = []

    @property
    def feeds(self) -> list[RSSFeedSubscription]:
        return list(self._feeds)

    def is_subscribed(self, url: str) -> bool:
        return any(feed.url == url for feed in self._feeds)

    def suggested_feeds(self) -> list[dict]:
        """Flux cinema populaires auxquels l'utilisateur n'est pas abonne."""
        return [
            dict(feed) for feed in POPULAR_CINEMA_FEEDS if not self.is_subscribed(feed["url"])
        ]

    def _load_local(self) -> None:
        records = read_records(self._local_store, RSS_FEEDS_KEY, RSSFeedRecord)
        self._feeds = [record.to_feed() for record in records]

    async def _load_remote(self, session: Session) -> None:
        self._feeds = self._repository.list_for_user(session.user_id)

    def _persist_local(self) -> None:
        write_records(
            self._local_store, RSS_FEEDS_KEY, (RSSFeedRecord.from_feed(f) for f in self._feeds)
        )

    def _reset(self) -> None:
        self._feeds = []

    async def add_feed(
        self,
        name: str,
        url: str,
        description: Optional[str] = None,
        category: Optional[str] = None,
    ) -> Optional[RSSFeedSubscription]:
        """
        S'abonne a un flux.

        Returns:
            L'abonnement cree, ou None si deja abonne ou si l'ecriture a echoue
        """
        if self.is_subscribed(url):
            self._log.info(f"Deja abonne a {url}")
            return None

        feed = RSSFeedSubscription(
            id=str(uuid.uuid4()),
            name=name,
            url=url,
            description=description,
            category=category,
            added_at=now_iso(),
        )

        def rollback() -> None:
            self._feeds = [f for f in self._feeds if f.url != url]

        session = self.session
        ok = await self.apply_optimistic(
            mutator=lambda: self._feeds.insert(0, feed),
            compensator=rollback,
            remote_call=remote(self._repository.upsert, session.user_id, feed)
            if session
            else None,
            description=f"abonnement a {url}",
        )
        return feed if ok else None

    async def remove_feed(self, feed_id: str) -> bool:
        """Se desabonne d'un flux (jamais annule)."""
        if not any(feed.id == feed_id for feed in self._feeds):
            return False

        def unsubscribe() -> None:
            self._feeds = [f for f in self._feeds if f.id != feed_id]

        session = self.session
        return await self.apply_optimistic(
            mutator=unsubscribe,
            compensator=None,
            remote_call=remote(self._repository.delete, session.user_id, feed_id)
            if session
            else None,
            description=f"desabonnement de {feed_id}",
        )
