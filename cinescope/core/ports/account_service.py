"""
Interface port pour le service de compte distant.

Interface abstraite (port) definissant le contrat du service de compte TMDB :
authentification par jeton de requete, mutations des collections du compte
(favoris, watchlist, notes, listes) et lectures paginees.

Convention d'erreurs :
- Les mutations retournent True/False selon l'acceptation par le service,
  et levent AccountServiceError sur erreur transport ou 5xx afin que le
  mecanisme de retry puisse relancer.
- Les lectures paginees levent AccountServiceError sur echec : un resultat
  vide doit toujours signifier "aucun element", jamais "lecture ratee".
- Les autres lectures retournent None ou une liste vide sur echec.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Generic, Optional, TypeVar

from cinescope.core.entities import AccountUser, CollectionItem, RatingItem, UserList
from cinescope.core.value_objects import MediaType

T = TypeVar("T")


@dataclass
class AccountPage(Generic[T]):
    """
    Page de resultats d'une collection du compte.

    Attributs :
        results : Elements de la page
        total_pages : Nombre total de pages (0 si collection vide)
    """

    results: list[T] = field(default_factory=list)
    total_pages: int = 0


@dataclass
class RemoteList:
    """Liste personnalisee telle que decrite par le service de compte."""

    id: int
    name: str
    description: Optional[str] = None
    item_count: int = 0


class IAccountService(ABC):
    """
    Interface du service de compte (source de verite en mode connecte).

    Les implementations encapsulent le transport HTTP et la conversion
    des reponses en entites du domaine.
    """

    @property
    @abstractmethod
    def enabled(self) -> bool:
        """Indique si le service est configure (jeton d'acces present)."""
        ...

    # --- Authentification ---

    @abstractmethod
    async def create_request_token(self) -> Optional[str]:
        """Cree un jeton de requete a faire approuver par l'utilisateur."""
        ...

    @abstractmethod
    async def create_session(self, request_token: str) -> Optional[str]:
        """Echange un jeton approuve contre un jeton de session."""
        ...

    @abstractmethod
    async def delete_session(self, session_token: str) -> bool:
        """Invalide un jeton de session."""
        ...

    @abstractmethod
    async def get_account_details(self, session_token: str) -> Optional[AccountUser]:
        """Recupere le compte associe a une session."""
        ...

    # --- Mutations ---

    @abstractmethod
    async def mark_favorite(
        self,
        account_id: int,
        session_token: str,
        media_type: MediaType,
        media_id: int,
        favorite: bool,
    ) -> bool:
        """Ajoute (favorite=True) ou retire un favori."""
        ...

    @abstractmethod
    async def set_watchlist(
        self,
        account_id: int,
        session_token: str,
        media_type: MediaType,
        media_id: int,
        watchlist: bool,
    ) -> bool:
        """Ajoute (watchlist=True) ou retire un element de la watchlist."""
        ...

    @abstractmethod
    async def rate(
        self, session_token: str, media_type: MediaType, media_id: int, value: float
    ) -> bool:
        """Note un media (0.5 a 10.0)."""
        ...

    @abstractmethod
    async def delete_rating(
        self, session_token: str, media_type: MediaType, media_id: int
    ) -> bool:
        """Supprime la note d'un media."""
        ...

    # --- Lectures paginees ---

    @abstractmethod
    async def get_favorites(
        self, account_id: int, session_token: str, media_type: MediaType, page: int = 1
    ) -> AccountPage[CollectionItem]:
        """Page de favoris du compte pour un type de media."""
        ...

    @abstractmethod
    async def get_watchlist(
        self, account_id: int, session_token: str, media_type: MediaType, page: int = 1
    ) -> AccountPage[CollectionItem]:
        """Page de watchlist du compte pour un type de media."""
        ...

    @abstractmethod
    async def get_rated(
        self, account_id: int, session_token: str, media_type: MediaType, page: int = 1
    ) -> AccountPage[RatingItem]:
        """Page de medias notes par le compte pour un type de media."""
        ...

    # --- Listes personnalisees ---

    @abstractmethod
    async def get_lists(self, account_id: int, session_token: str) -> list[RemoteList]:
        """Listes personnalisees du compte (vide sur echec)."""
        ...

    @abstractmethod
    async def create_list(
        self, session_token: str, name: str, description: str = ""
    ) -> Optional[int]:
        """Cree une liste et retourne son ID, ou None."""
        ...

    @abstractmethod
    async def add_to_list(self, session_token: str, list_id: int, media_id: int) -> bool:
        """Ajoute un media a une liste."""
        ...

    @abstractmethod
    async def remove_from_list(
        self, session_token: str, list_id: int, media_id: int
    ) -> bool:
        """Retire un media d'une liste."""
        ...

    @abstractmethod
    async def delete_list(self, session_token: str, list_id: int) -> bool:
        """Supprime une liste."""
        ...

    @abstractmethod
    async def get_list_details(self, list_id: int) -> Optional[UserList]:
        """Details d'une liste avec ses elements, ou None."""
        ...
