"""
Interface port pour le stockage local cle/valeur (mode invite).

Contrat identique a celui d'un localStorage de navigateur : les valeurs
sont des chaines opaques, la serialisation JSON est faite par l'appelant.
"""

from abc import ABC, abstractmethod
from typing import Optional


class ILocalStore(ABC):
    """Stockage cle/valeur persistant sur l'appareil."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Retourne la valeur stockee ou None si absente."""
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Ecrit (ou remplace) la valeur d'une cle."""
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Supprime une cle (sans erreur si absente)."""
        ...
