"""
Adaptateurs du stockage local (mode invite).

- DiskLocalStore : stockage persistant base sur diskcache
- InMemoryLocalStore : stockage volatile
- records : formats JSON des instantanes et fonctions de lecture/ecriture
"""

from cinescope.adapters.local_storage.disk_store import DiskLocalStore, InMemoryLocalStore

__all__ = [
    "DiskLocalStore",
    "InMemoryLocalStore",
]
