"""
Implementations SQLModel des repositories du Profile Store.

Ce module contient les implementations concretes des interfaces definies
dans cinescope/core/ports/profile_store.py.

Chaque repository :
- Herite de l'interface ABC correspondante du domaine
- Recoit une session SQLModel via injection de dependances
- Convertit entre entites de domaine (dataclass) et modeles DB (SQLModel)
- Ecrit par upsert sur la cle naturelle (idempotent sous relance)
"""

from cinescope.infrastructure.persistence.repositories.history_repository import (
    SQLModelHistoryRepository,
)
from cinescope.infrastructure.persistence.repositories.list_repository import (
    SQLModelListRepository,
)
from cinescope.infrastructure.persistence.repositories.media_collection_repository import (
    SQLModelFavoriteRepository,
    SQLModelRatingRepository,
    SQLModelWatchlistRepository,
)
from cinescope.infrastructure.persistence.repositories.profile_repository import (
    SQLModelProfileRepository,
)
from cinescope.infrastructure.persistence.repositories.rss_feed_repository import (
    SQLModelRSSFeedRepository,
)
from cinescope.infrastructure.persistence.repositories.tracker_repository import (
    SQLModelTrackerRepository,
)

__all__ = [
    "SQLModelProfileRepository",
    "SQLModelFavoriteRepository",
    "SQLModelWatchlistRepository",
    "SQLModelRatingRepository",
    "SQLModelTrackerRepository",
    "SQLModelListRepository",
    "SQLModelRSSFeedRepository",
    "SQLModelHistoryRepository",
]
