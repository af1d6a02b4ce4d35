"""
Stockage local persistant pour le mode invite.

Le stockage utilise diskcache pour la persistence sur disque, ce qui permet
de conserver les instantanes invites entre les redemarrages de l'application.
Contrairement au cache API, aucune entree n'expire : une cle n'est retiree
que sur demande explicite (fin de fusion a la connexion, file vidée).
"""

from typing import Optional

from diskcache import Cache
from loguru import logger

from cinescope.core.exceptions import LocalStoreError
from cinescope.core.ports.local_store import ILocalStore


class DiskLocalStore(ILocalStore):
    """
    Stockage cle/valeur sur disque.

    Les valeurs sont des chaines JSON opaques ; l'adaptateur ne les interprete
    pas. Les operations sont synchrones (diskcache est rapide et thread-safe).

    Example:
        store = DiskLocalStore(store_dir="~/.cinescope/local")
        store.set_item("cine_favorites", "[]")
        raw = store.get_item("cine_favorites")
    """

    def __init__(self, store_dir: str = ".cinescope/local") -> None:
        """
        Initialise le stockage avec un repertoire.

        Args:
            store_dir: Chemin vers le repertoire du stockage (cree si inexistant)
        """
        self._cache = Cache(str(store_dir))

    def get_item(self, key: str) -> Optional[str]:
        value = self._cache.get(key)
        if value is not None and not isinstance(value, str):
            raise LocalStoreError(f"Valeur non textuelle sous la cle {key}")
        return value

    def set_item(self, key: str, value: str) -> None:
        self._cache.set(key, value)

    def remove_item(self, key: str) -> None:
        self._cache.delete(key)

    def keys(self) -> list[str]:
        """Liste les cles presentes (diagnostic CLI)."""
        return sorted(str(key) for key in self._cache.iterkeys())

    def clear(self) -> None:
        """Supprime toutes les entrees du stockage."""
        removed = self._cache.clear()
        logger.debug(f"Stockage local vide ({removed} cles)")

    def close(self) -> None:
        """Ferme la connexion au stockage (a appeler a la fin)."""
        self._cache.close()


class InMemoryLocalStore(ILocalStore):
    """Stockage volatile (tests, execution sans disque)."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)

    def clear(self) -> None:
        self._data.clear()

    def close(self) -> None:
        pass
