"""
Synchroniseurs de collections.

Un synchroniseur par collection, tous batis sur BaseSynchronizer :
- FavoritesSynchronizer, WatchlistSynchronizer, RatingsSynchronizer
- TrackerSynchronizer (series suivies + episodes vus)
- ListsSynchronizer, HistorySynchronizer, RSSFeedsSynchronizer
"""

from cinescope.services.sync.base import BaseSynchronizer, RemoteWrites
from cinescope.services.sync.history import HistorySynchronizer
from cinescope.services.sync.lists import ListsSynchronizer
from cinescope.services.sync.media_collections import (
    FavoritesSynchronizer,
    MediaCollectionSynchronizer,
    RatingsSynchronizer,
    WatchlistSynchronizer,
)
from cinescope.services.sync.rss import RSSFeedsSynchronizer
from cinescope.services.sync.tracker import TrackerSynchronizer

__all__ = [
    "BaseSynchronizer",
    "RemoteWrites",
    "MediaCollectionSynchronizer",
    "FavoritesSynchronizer",
    "WatchlistSynchronizer",
    "RatingsSynchronizer",
    "TrackerSynchronizer",
    "ListsSynchronizer",
    "HistorySynchronizer",
    "RSSFeedsSynchronizer",
]
