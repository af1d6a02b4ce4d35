"""
Ports (interfaces abstraites) définissant les contrats pour les adaptateurs.

Les ports sont les frontières de l'architecture hexagonale. Ils définissent
ce dont le domaine a besoin du monde extérieur sans spécifier
comment ces besoins sont satisfaits.

Port service de compte : source de vérité distante en mode connecté
- IAccountService, AccountPage, RemoteList

Ports Profile Store : miroir relationnel par utilisateur
- IProfileRepository, IMediaCollectionRepository, ITrackerRepository
- IListRepository, IRSSFeedRepository, IHistoryRepository

Port stockage local : instantané du mode invité
- ILocalStore
"""

from cinescope.core.ports.account_service import (
    AccountPage,
    IAccountService,
    RemoteList,
)
from cinescope.core.ports.local_store import ILocalStore
from cinescope.core.ports.profile_store import (
    IHistoryRepository,
    IListRepository,
    IMediaCollectionRepository,
    IProfileRepository,
    IRSSFeedRepository,
    ITrackerRepository,
)

__all__ = [
    # Service de compte
    "IAccountService",
    "AccountPage",
    "RemoteList",
    # Profile Store
    "IProfileRepository",
    "IMediaCollectionRepository",
    "ITrackerRepository",
    "IListRepository",
    "IRSSFeedRepository",
    "IHistoryRepository",
    # Stockage local
    "ILocalStore",
]
