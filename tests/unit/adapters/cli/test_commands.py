"""
Tests unitaires pour les commandes CLI.

Tests couvrant:
- login-url / login : service de compte requis, echecs de connexion
- resume / logout : transitions de session
- status / flush-pending / import-lists
- application Typer : enregistrement des commandes, version
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import typer
from typer.testing import CliRunner

from cinescope.adapters.cli.commands.collection_commands import (
    _flush_pending_async,
    _import_lists_async,
    _status_async,
)
from cinescope.adapters.cli.commands.session_commands import (
    _login_async,
    _login_url_async,
    _logout_async,
    _resume_async,
)
from cinescope.core.entities import Session
from cinescope.main import app
from cinescope.services.login_merge import MergeReport

_SESSION = "cinescope.adapters.cli.commands.session_commands"
_COLLECTION = "cinescope.adapters.cli.commands.collection_commands"

runner = CliRunner()


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def mock_container():
    """Mock le Container pour les tests.

    Patche Container dans helpers.py car c'est la que le decorateur
    @with_container() l'importe et l'instancie.
    """
    with patch("cinescope.adapters.cli.helpers.Container") as mock_cls:
        container_instance = MagicMock()
        mock_cls.return_value = container_instance
        container_instance.database.init = MagicMock()
        container_instance.config.return_value = MagicMock(account_enabled=True)
        container_instance.account_client.return_value.close = AsyncMock()
        yield container_instance


@pytest.fixture
def manager(mock_container):
    manager = MagicMock()
    manager.begin_login = AsyncMock()
    manager.complete_login = AsyncMock()
    manager.resume = AsyncMock()
    manager.logout = AsyncMock(return_value=True)
    manager.reload_all = AsyncMock()
    manager.last_report = None
    mock_container.session_manager.return_value = manager
    return manager


def _printed(mock_console) -> str:
    return " ".join(str(call) for call in mock_console.print.call_args_list)


# ============================================================================
# Commandes de session
# ============================================================================


class TestLoginCommands:
    @pytest.mark.asyncio
    async def test_login_url_requires_account(self, mock_container, manager):
        mock_container.config.return_value.account_enabled = False

        with patch(f"{_SESSION}.console"):
            with pytest.raises(typer.Exit):
                await _login_url_async()

        manager.begin_login.assert_not_called()
        mock_container.account_client.return_value.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_login_url_prints_url(self, mock_container, manager):
        manager.begin_login.return_value = "https://www.themoviedb.org/authenticate/abc"

        with patch(f"{_SESSION}.console") as mock_console:
            await _login_url_async()

        assert "authenticate/abc" in _printed(mock_console)
        mock_container.database.init.assert_called_once()

    @pytest.mark.asyncio
    async def test_login_failure_exits(self, mock_container, manager):
        manager.complete_login.return_value = None

        with patch(f"{_SESSION}.console"):
            with pytest.raises(typer.Exit):
                await _login_async("denied")

        manager.complete_login.assert_awaited_once_with("denied")

    @pytest.mark.asyncio
    async def test_login_displays_merge_report(self, mock_container, manager):
        manager.complete_login.return_value = Session(7, "sess-7")
        manager.last_report = MergeReport(user_id=7)

        with patch(f"{_SESSION}.console"), \
             patch(f"{_SESSION}.display_merge_report") as mock_display:
            await _login_async("req-token")

        mock_display.assert_called_once_with(manager.last_report)


class TestResumeLogout:
    @pytest.mark.asyncio
    async def test_resume(self, mock_container, manager):
        report = MergeReport(user_id=7, skipped=True)
        manager.resume.return_value = report

        with patch(f"{_SESSION}.display_merge_report") as mock_display:
            await _resume_async(Session(7, "sess-7"))

        manager.resume.assert_awaited_once_with(Session(7, "sess-7"))
        mock_display.assert_called_once_with(report)

    @pytest.mark.asyncio
    async def test_logout_sets_session_before_logout(self, mock_container, manager):
        with patch(f"{_SESSION}.console"):
            await _logout_async(Session(7, "sess-7"))

        mock_container.session_state.return_value.set.assert_called_once_with(
            Session(7, "sess-7")
        )
        manager.logout.assert_awaited_once()


# ============================================================================
# Commandes des collections
# ============================================================================


class TestCollectionCommands:
    @pytest.mark.asyncio
    async def test_status_guest(self, mock_container, manager):
        with patch(f"{_COLLECTION}.display_status") as mock_display:
            await _status_async(None)

        mock_container.session_state.return_value.set.assert_not_called()
        manager.reload_all.assert_awaited_once_with(replay_pending=False)
        mock_display.assert_called_once_with(mock_container, None)

    @pytest.mark.asyncio
    async def test_status_for_user_reads_profile_store(self, mock_container, manager):
        with patch(f"{_COLLECTION}.display_status"):
            await _status_async(7)

        mock_container.session_state.return_value.set.assert_called_once_with(Session(7, ""))

    @pytest.mark.asyncio
    async def test_flush_pending(self, mock_container):
        tracker = MagicMock()
        tracker.flush_pending = AsyncMock(return_value=2)
        mock_container.tracker_sync.return_value = tracker
        mock_container.pending_shows.return_value = []
        mock_container.pending_episodes.return_value = None

        with patch(f"{_COLLECTION}.console") as mock_console:
            await _flush_pending_async(7)

        tracker.flush_pending.assert_awaited_once_with(7)
        assert "2" in _printed(mock_console)
        assert "toujours en attente" not in _printed(mock_console)

    @pytest.mark.asyncio
    async def test_flush_pending_reports_both_queues(self, mock_container):
        tracker = MagicMock()
        tracker.flush_pending = AsyncMock(return_value=0)
        mock_container.tracker_sync.return_value = tracker
        mock_container.pending_shows.return_value = ["a"]
        mock_container.pending_episodes.return_value = ["b", "c", "d"]

        with patch(f"{_COLLECTION}.console") as mock_console:
            await _flush_pending_async(7)

        printed = _printed(mock_console)
        assert "1[/yellow] ecriture(s) series" in printed
        assert "3[/yellow] ecriture(s) episodes" in printed

    @pytest.mark.asyncio
    async def test_import_lists_requires_account(self, mock_container):
        mock_container.config.return_value.account_enabled = False

        with patch(f"{_COLLECTION}.console"):
            with pytest.raises(typer.Exit):
                await _import_lists_async(Session(7, "sess-7"))

        mock_container.lists_sync.assert_not_called()

    @pytest.mark.asyncio
    async def test_import_lists(self, mock_container):
        lists_sync = MagicMock()
        lists_sync.load = AsyncMock()
        lists_sync.import_remote_lists = AsyncMock(return_value=(2, 1))
        mock_container.lists_sync.return_value = lists_sync

        with patch(f"{_COLLECTION}.console") as mock_console:
            await _import_lists_async(Session(7, "sess-7"))

        assert "2" in _printed(mock_console)
        lists_sync.import_remote_lists.assert_awaited_once()


# ============================================================================
# Application Typer
# ============================================================================


class TestApp:
    def test_version(self):
        with patch("cinescope.main.configure_logging"):
            result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert "CineScope v0.1.0" in result.output

    def test_commands_registered(self):
        with patch("cinescope.main.configure_logging"):
            result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for name in ("login-url", "login", "resume", "logout", "status", "flush-pending"):
            assert name in result.output

    def test_login_requires_request_token(self):
        with patch("cinescope.main.configure_logging"):
            result = runner.invoke(app, ["login"])

        assert result.exit_code != 0
