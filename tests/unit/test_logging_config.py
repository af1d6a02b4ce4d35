"""
Tests de la configuration du logging.

Couvre :
- journal de synchronisation : seuls les evenements des synchroniseurs,
  des files d'attente et des relances y sont ecrits, avec leur contexte
- journal desactive quand aucun fichier n'est fourni
"""

import sys

import pytest
from loguru import logger

from cinescope.adapters.local_storage import InMemoryLocalStore
from cinescope.core.entities import PendingAction
from cinescope.logging_config import configure_logging, is_sync_event, sync_logger
from cinescope.services.pending_writes import PendingWriteQueue
from cinescope.utils.constants import PENDING_SHOWS_KEY


@pytest.fixture
def log_dir(tmp_path):
    """Repertoire de logs ; restaure le handler par defaut apres le test."""
    yield tmp_path
    logger.remove()
    logger.configure(extra={})
    logger.add(sys.stderr)


def _configure(log_dir, sync: bool = True) -> None:
    configure_logging(
        log_level="CRITICAL",
        log_file=log_dir / "cinescope.log",
        sync_log_file=log_dir / "sync.log" if sync else None,
    )


class TestSyncJournal:
    def test_only_sync_events_are_written(self, log_dir):
        _configure(log_dir)

        sync_logger("favoris", user_id=7).warning("Ajout de movie 550 abandonne")
        logger.info("Message general")
        logger.remove()

        content = (log_dir / "sync.log").read_text()
        assert "favoris | user=7 | file=- | Ajout de movie 550 abandonne" in content
        assert "Message general" not in content

    def test_pending_queue_events_carry_queue_key(self, log_dir):
        _configure(log_dir)

        queue = PendingWriteQueue(InMemoryLocalStore(), PENDING_SHOWS_KEY)
        queue.save(1399, {"name": "Game of Thrones"}, PendingAction.TRACK)
        logger.remove()

        content = (log_dir / "sync.log").read_text()
        assert f"file={PENDING_SHOWS_KEY}" in content
        assert "Ecriture en attente: track 1399" in content

    def test_disabled_journal(self, log_dir):
        _configure(log_dir, sync=False)

        sync_logger("notes").info("Note enregistree")
        logger.remove()

        assert not (log_dir / "sync.log").exists()


class TestIsSyncEvent:
    def test_bound_records(self):
        assert is_sync_event({"extra": {"sync_event": True, "collection": "notes"}})

    def test_plain_records(self):
        assert not is_sync_event({"extra": {}})
