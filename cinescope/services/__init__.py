"""
Services applicatifs.

- SessionState : etat de session observable (absence = mode invite)
- PendingWriteQueue : file d'ecritures en attente persistee localement
- sync : un synchroniseur par collection
- LoginMergeOrchestrator : fusion invite -> compte a la connexion
- SessionManager : transitions invite <-> connecte
"""

from cinescope.services.login_merge import LoginMergeOrchestrator, MergeReport
from cinescope.services.pending_writes import PendingWriteQueue
from cinescope.services.session_manager import SessionManager
from cinescope.services.session_state import SessionState

__all__ = [
    "SessionState",
    "PendingWriteQueue",
    "LoginMergeOrchestrator",
    "MergeReport",
    "SessionManager",
]
