"""Sous-package CLI commands - re-exporte les commandes publiques."""

from cinescope.adapters.cli.commands.collection_commands import (
    flush_pending,
    import_lists,
    status,
)
from cinescope.adapters.cli.commands.session_commands import (
    login,
    login_url,
    logout,
    resume,
)

__all__ = [
    # session
    "login_url",
    "login",
    "resume",
    "logout",
    # collections
    "status",
    "flush_pending",
    "import_lists",
]
