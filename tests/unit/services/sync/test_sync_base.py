"""
Tests du socle des synchroniseurs : RemoteWrites, apply_optimistic,
write_through, load et notifications.
"""

import asyncio
from unittest.mock import MagicMock

import pytest

from cinescope.adapters.local_storage import InMemoryLocalStore
from cinescope.core.entities import Session
from cinescope.core.exceptions import RemoteWriteCancelled
from cinescope.services.session_state import SessionState
from cinescope.services.sync.base import BaseSynchronizer, RemoteWrites, remote


class CounterSynchronizer(BaseSynchronizer):
    """Synchroniseur minimal : un compteur entier."""

    name = "compteur"

    def __init__(self, *args, remote_value=5, fail_load=False, **kwargs):
        super().__init__(*args, **kwargs)
        self.value = 0
        self.persisted = []
        self._remote_value = remote_value
        self._fail_load = fail_load
        self.remote_loads = 0
        self.replays = 0

    def _load_local(self) -> None:
        self.value = int(self._local_store.get_item("compteur") or 0)

    async def _replay_pending(self, session: Session) -> None:
        self.replays += 1

    async def _load_remote(self, session: Session) -> None:
        self.remote_loads += 1
        await asyncio.sleep(0)
        if self._fail_load:
            raise RuntimeError("base indisponible")
        self.value = self._remote_value

    def _persist_local(self) -> None:
        self.persisted.append(self.value)
        self._local_store.set_item("compteur", str(self.value))

    def _reset(self) -> None:
        self.value = 0


@pytest.fixture
def counter(session_state: SessionState, local_store: InMemoryLocalStore, fast_retry):
    return CounterSynchronizer(session_state, local_store, **fast_retry)


def _failing_call(calls: list):
    async def call():
        calls.append(1)
        raise RuntimeError("ecriture refusee")

    return call


class TestRemote:
    @pytest.mark.asyncio
    async def test_wraps_sync_call(self):
        fn = MagicMock(return_value=3)

        result = await remote(fn, 1, key="a")()

        assert result == 3
        fn.assert_called_once_with(1, key="a")


class TestRemoteWrites:
    @pytest.mark.asyncio
    async def test_run_returns_result(self):
        writes = RemoteWrites()

        async def operation():
            return "ok"

        assert await writes.run(operation) == "ok"
        assert writes.pending_count == 0

    @pytest.mark.asyncio
    async def test_cancel_pending_raises_remote_write_cancelled(self):
        writes = RemoteWrites()
        started = asyncio.Event()

        async def slow():
            started.set()
            await asyncio.sleep(10)

        waiter = asyncio.ensure_future(writes.run(slow))
        await started.wait()

        assert writes.pending_count == 1
        assert writes.cancel_pending() == 1
        with pytest.raises(RemoteWriteCancelled):
            await waiter

    @pytest.mark.asyncio
    async def test_cancel_without_pending(self):
        assert RemoteWrites().cancel_pending() == 0


class TestApplyOptimistic:
    @pytest.mark.asyncio
    async def test_guest_mutation_persists_locally(
        self, counter: CounterSynchronizer, local_store: InMemoryLocalStore
    ):
        remote_call = MagicMock()

        ok = await counter.apply_optimistic(lambda: setattr(counter, "value", 1), None, remote_call)

        assert ok is True
        assert local_store.get_item("compteur") == "1"
        remote_call.assert_not_called()

    @pytest.mark.asyncio
    async def test_failure_rolls_back_with_compensator(
        self, counter: CounterSynchronizer, session_state: SessionState, user_session: Session
    ):
        session_state.set(user_session)
        calls = []

        ok = await counter.apply_optimistic(
            mutator=lambda: setattr(counter, "value", 1),
            compensator=lambda: setattr(counter, "value", 0),
            remote_call=_failing_call(calls),
        )

        assert ok is False
        assert counter.value == 0
        assert len(calls) == 3
        assert counter.persisted == []

    @pytest.mark.asyncio
    async def test_failure_without_compensator_keeps_mutation(
        self, counter: CounterSynchronizer, session_state: SessionState, user_session: Session
    ):
        session_state.set(user_session)

        ok = await counter.apply_optimistic(
            lambda: setattr(counter, "value", 1), None, _failing_call([])
        )

        assert ok is False
        assert counter.value == 1

    @pytest.mark.asyncio
    async def test_listeners_see_mutation_and_rollback(
        self, counter: CounterSynchronizer, session_state: SessionState, user_session: Session
    ):
        session_state.set(user_session)
        seen = []
        counter.subscribe(lambda: seen.append(counter.value))

        await counter.apply_optimistic(
            lambda: setattr(counter, "value", 1),
            lambda: setattr(counter, "value", 0),
            _failing_call([]),
        )

        assert seen == [1, 0]


class TestWriteThrough:
    @pytest.mark.asyncio
    async def test_retried_until_success(self, counter: CounterSynchronizer):
        attempts = []

        async def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise RuntimeError("temporaire")

        assert await counter.write_through(flaky, "test") is True
        assert len(attempts) == 3

    @pytest.mark.asyncio
    async def test_cancelled_write_returns_false(self, counter: CounterSynchronizer):
        started = asyncio.Event()

        async def slow():
            started.set()
            await asyncio.sleep(10)

        waiter = asyncio.ensure_future(counter.write_through(slow, "lente"))
        await started.wait()
        counter.cancel_pending()

        assert await waiter is False


class TestLoad:
    @pytest.mark.asyncio
    async def test_guest_load_reads_local_store(
        self, counter: CounterSynchronizer, local_store: InMemoryLocalStore
    ):
        local_store.set_item("compteur", "4")

        await counter.load()

        assert counter.value == 4
        assert counter.is_loading is False

    @pytest.mark.asyncio
    async def test_authenticated_load_reads_remote(
        self, counter: CounterSynchronizer, session_state: SessionState, user_session: Session
    ):
        session_state.set(user_session)

        await counter.load()

        assert counter.value == 5

    @pytest.mark.asyncio
    async def test_remote_failure_leaves_collection_empty(
        self,
        session_state: SessionState,
        local_store: InMemoryLocalStore,
        user_session: Session,
        fast_retry,
    ):
        counter = CounterSynchronizer(session_state, local_store, fail_load=True, **fast_retry)
        counter.value = 9
        session_state.set(user_session)

        await counter.load()

        assert counter.value == 0

    @pytest.mark.asyncio
    async def test_loading_flag_notified(self, counter: CounterSynchronizer):
        flags = []
        unsubscribe = counter.subscribe(lambda: flags.append(counter.is_loading))

        await counter.load()
        unsubscribe()
        await counter.load()

        assert flags == [True, False]

    @pytest.mark.asyncio
    async def test_concurrent_loads_share_one_task(
        self, counter: CounterSynchronizer, session_state: SessionState, user_session: Session
    ):
        session_state.set(user_session)

        await asyncio.gather(counter.load(), counter.load(), counter.load())

        assert counter.remote_loads == 1
        assert counter.value == 5

    @pytest.mark.asyncio
    async def test_sequential_loads_run_again(
        self, counter: CounterSynchronizer, session_state: SessionState, user_session: Session
    ):
        session_state.set(user_session)

        await counter.load()
        await counter.load()

        assert counter.remote_loads == 2

    @pytest.mark.asyncio
    async def test_pending_writes_replayed_before_remote_load(
        self, counter: CounterSynchronizer, session_state: SessionState, user_session: Session
    ):
        session_state.set(user_session)

        await counter.load()
        await counter.load(replay_pending=False)

        assert counter.replays == 1
        assert counter.remote_loads == 2
