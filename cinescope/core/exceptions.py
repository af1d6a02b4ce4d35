"""
Exceptions du domaine CineScope.

Hierarchie :
- CineScopeError : racine
  - AccountServiceError : echec transport ou 5xx du service de compte
  - ProfileStoreError : echec d'ecriture/lecture dans la base relationnelle
  - LocalStoreError : stockage local illisible ou inaccessible
  - SyncError : echec d'une etape de synchronisation
    - RemoteWriteCancelled : ecriture distante annulee avant sa fin
"""

from typing import Optional


class CineScopeError(Exception):
    """Racine des erreurs de l'application."""


class AccountServiceError(CineScopeError):
    """
    Exception levee quand un appel au service de compte echoue.

    Attributes:
        status_code: Code HTTP de la reponse, ou None pour une erreur transport.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class ProfileStoreError(CineScopeError):
    """Echec d'une operation sur le Profile Store."""


class LocalStoreError(CineScopeError):
    """Stockage local inaccessible."""


class SyncError(CineScopeError):
    """Echec d'une etape de synchronisation."""


class RemoteWriteCancelled(SyncError):
    """Ecriture distante annulee via cancel_pending()."""
