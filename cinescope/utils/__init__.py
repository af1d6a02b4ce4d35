"""
Utilitaires et constantes pour CineScope.

Ce module contient les constantes partagees (cles du stockage local,
bornes des notes, flux RSS suggeres).
"""

from cinescope.utils.constants import (
    GUEST_MERGE_KEYS,
    PENDING_EPISODES_KEY,
    PENDING_SHOWS_KEY,
    POPULAR_CINEMA_FEEDS,
)

__all__ = [
    "GUEST_MERGE_KEYS",
    "PENDING_SHOWS_KEY",
    "PENDING_EPISODES_KEY",
    "POPULAR_CINEMA_FEEDS",
]
