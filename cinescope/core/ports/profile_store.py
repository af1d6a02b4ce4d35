"""
Interfaces ports pour le Profile Store.

Interfaces abstraites (ports) définissant les contrats de persistance par
utilisateur. Chaque table est indexée par une clé naturelle (contrainte
d'unicité) qui rend les upserts idempotents, y compris sous relance :
- favoris, watchlist, notes : (user_id, media_id, media_type)
- séries suivies : (user_id, show_id)
- épisodes vus : (user_id, show_id, season_number, episode_number)
- flux RSS : (user_id, url)
- historique : (user_id, item_id)

Le paramètre ignore_conflicts des upserts sélectionne la sémantique
"insertion seule" : une ligne existante n'est jamais écrasée.
"""

from abc import ABC, abstractmethod
from typing import Generic, Iterable, Optional, TypeVar

from cinescope.core.entities import (
    CollectionItem,
    HistoryItem,
    ListItem,
    Profile,
    RatingItem,
    RSSFeedSubscription,
    TrackedShow,
    UserList,
)
from cinescope.core.value_objects import EpisodeKey, MediaKey

T = TypeVar("T", CollectionItem, RatingItem)


class IProfileRepository(ABC):
    """Interface de stockage des profils utilisateurs."""

    @abstractmethod
    def upsert(self, profile: Profile) -> None:
        """Crée ou met à jour le profil (conflit sur user_id)."""
        ...

    @abstractmethod
    def get(self, user_id: int) -> Optional[Profile]:
        """Récupère un profil, ou None."""
        ...


class IMediaCollectionRepository(ABC, Generic[T]):
    """
    Interface de stockage d'une collection de médias (favoris, watchlist, notes).

    Une implémentation par table, paramétrée par le type d'élément.
    """

    @abstractmethod
    def list_for_user(self, user_id: int) -> list[T]:
        """Liste la collection d'un utilisateur, plus récents en premier."""
        ...

    @abstractmethod
    def upsert(self, user_id: int, items: Iterable[T], ignore_conflicts: bool = False) -> int:
        """
        Insère ou met à jour des éléments.

        Args :
            user_id : Propriétaire
            items : Éléments à écrire
            ignore_conflicts : Si True, les lignes existantes sont conservées telles quelles

        Retourne :
            Nombre d'éléments soumis
        """
        ...

    @abstractmethod
    def delete(self, user_id: int, key: MediaKey) -> bool:
        """Supprime un élément. Retourne True si une ligne a été supprimée."""
        ...

    @abstractmethod
    def delete_many(self, user_id: int, keys: Iterable[MediaKey]) -> int:
        """Supprime plusieurs éléments. Retourne le nombre de lignes supprimées."""
        ...


class ITrackerRepository(ABC):
    """Interface de stockage du suivi d'épisodes (séries suivies + épisodes vus)."""

    @abstractmethod
    def list_shows(self, user_id: int) -> list[TrackedShow]:
        """Séries suivies, triées par last_updated décroissant."""
        ...

    @abstractmethod
    def list_episodes(self, user_id: int) -> set[EpisodeKey]:
        """Ensemble des épisodes vus."""
        ...

    @abstractmethod
    def upsert_shows(
        self, user_id: int, shows: Iterable[TrackedShow], ignore_conflicts: bool = False
    ) -> int:
        """Insère ou met à jour des séries suivies."""
        ...

    @abstractmethod
    def delete_show(self, user_id: int, show_id: int) -> bool:
        """Arrête le suivi d'une série (les épisodes vus sont conservés)."""
        ...

    @abstractmethod
    def upsert_episodes(self, user_id: int, keys: Iterable[EpisodeKey]) -> int:
        """Marque des épisodes comme vus (les doublons sont ignorés)."""
        ...

    @abstractmethod
    def delete_episodes(self, user_id: int, keys: Iterable[EpisodeKey]) -> int:
        """Marque des épisodes comme non vus."""
        ...


class IListRepository(ABC):
    """Interface de stockage des listes personnalisées et de leurs éléments."""

    @abstractmethod
    def list_for_user(self, user_id: int) -> list[UserList]:
        """Listes de l'utilisateur avec leur nombre d'éléments (items non chargés)."""
        ...

    @abstractmethod
    def get(self, user_id: int, list_id: int) -> Optional[UserList]:
        """Liste avec ses éléments, ou None."""
        ...

    @abstractmethod
    def find_by_remote_id(self, user_id: int, remote_list_id: int) -> Optional[UserList]:
        """Liste associée à une liste du service de compte, ou None."""
        ...

    @abstractmethod
    def create(
        self,
        user_id: int,
        name: str,
        description: Optional[str] = None,
        remote_list_id: Optional[int] = None,
    ) -> UserList:
        """Crée une liste vide."""
        ...

    @abstractmethod
    def update(self, list_id: int, name: str, description: Optional[str]) -> None:
        """Met à jour le nom et la description d'une liste."""
        ...

    @abstractmethod
    def delete(self, user_id: int, list_id: int) -> bool:
        """Supprime une liste et ses éléments."""
        ...

    @abstractmethod
    def add_items(self, list_id: int, items: Iterable[ListItem]) -> int:
        """Ajoute des éléments (doublons ignorés)."""
        ...

    @abstractmethod
    def remove_item(self, list_id: int, key: MediaKey) -> bool:
        """Retire un élément d'une liste."""
        ...


class IRSSFeedRepository(ABC):
    """Interface de stockage des abonnements RSS."""

    @abstractmethod
    def list_for_user(self, user_id: int) -> list[RSSFeedSubscription]:
        """Abonnements, plus récents en premier."""
        ...

    @abstractmethod
    def upsert(self, user_id: int, feed: RSSFeedSubscription) -> None:
        """Crée ou met à jour un abonnement (conflit sur user_id, url)."""
        ...

    @abstractmethod
    def delete(self, user_id: int, feed_id: str) -> bool:
        """Supprime un abonnement par ID."""
        ...


class IHistoryRepository(ABC):
    """Interface de stockage de l'historique de consultation."""

    @abstractmethod
    def list_for_user(self, user_id: int, limit: int = 0) -> list[HistoryItem]:
        """Historique, plus récent en premier (limit=0 : illimité)."""
        ...

    @abstractmethod
    def upsert(
        self, user_id: int, items: Iterable[HistoryItem], ignore_conflicts: bool = False
    ) -> int:
        """Enregistre des consultations (conflit sur user_id, item_id)."""
        ...

    @abstractmethod
    def clear(self, user_id: int) -> int:
        """Vide l'historique de l'utilisateur."""
        ...
