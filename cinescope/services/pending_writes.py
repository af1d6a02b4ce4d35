"""
File d'ecritures en attente (fallback local des ecritures distantes).

Les mutations dont l'ecriture distante n'est pas confirmee sont conservees
dans le stockage local, sous une cle fixe, pour etre rejouees a la
prochaine initialisation connectee.

Regles:
- Une entree par entite : un nouvel enregistrement remplace le precedent
- La cle est supprimee quand la file devient vide
- Le rejeu est sequentiel, dans l'ordre de stockage, et s'arrete au
  premier echec (les entrees suivantes restent en attente)
"""

from typing import Any, Awaitable, Callable, Optional, Union

from cinescope.adapters.local_storage.records import (
    PendingWriteRecord,
    read_records,
    write_records,
)
from cinescope.core.entities import PendingAction, PendingWrite
from cinescope.core.ports.local_store import ILocalStore
from cinescope.logging_config import sync_logger

EntityId = Union[int, str]
Replay = Callable[[int, PendingWrite], Awaitable[Any]]


def _same_entity(left: EntityId, right: EntityId) -> bool:
    return str(left) == str(right)


class PendingWriteQueue:
    """
    File persistante des ecritures non confirmees.

    Example:
        queue = PendingWriteQueue(store, PENDING_SHOWS_KEY)
        queue.save(42, {"name": "Dark"}, PendingAction.TRACK)
        replayed = await queue.flush(user_id, replay)
    """

    def __init__(self, store: ILocalStore, key: str) -> None:
        """
        Initialise la file.

        Args:
            store: Stockage local
            key: Cle fixe de la file
        """
        self._store = store
        self._key = key
        self._log = sync_logger("file", pending_key=key)

    @property
    def key(self) -> str:
        return self._key

    def entries(self) -> list[PendingWrite]:
        """Entrees en attente, dans l'ordre de stockage."""
        records = read_records(self._store, self._key, PendingWriteRecord)
        return [record.to_write() for record in records]

    def __len__(self) -> int:
        return len(self.entries())

    def get(self, entity_id: EntityId) -> Optional[PendingWrite]:
        for entry in self.entries():
            if _same_entity(entry.entity_id, entity_id):
                return entry
        return None

    def save(self, entity_id: EntityId, metadata: dict[str, Any], action: PendingAction) -> None:
        """
        Enregistre une ecriture en attente.

        Une entree existante pour la meme entite est remplacee sur place.
        """
        write = PendingWrite(entity_id=entity_id, action=action, metadata=dict(metadata))
        entries = self.entries()
        for index, entry in enumerate(entries):
            if _same_entity(entry.entity_id, entity_id):
                entries[index] = write
                break
        else:
            entries.append(write)
        self._write(entries)
        self._log.debug(f"Ecriture en attente: {action.value} {entity_id}")

    def remove(self, entity_id: EntityId) -> None:
        """Retire l'entree d'une entite ; supprime la cle si la file est vide."""
        entries = [e for e in self.entries() if not _same_entity(e.entity_id, entity_id)]
        self._write(entries)

    def discard(self, write: PendingWrite) -> bool:
        """
        Retire une entree seulement si elle n'a pas ete remplacee entre-temps.

        Returns:
            True si l'entree a ete retiree
        """
        current = self.get(write.entity_id)
        if current is None or current.action != write.action or current.metadata != write.metadata:
            return False
        self.remove(write.entity_id)
        return True

    def clear(self) -> None:
        self._store.remove_item(self._key)

    async def flush(self, owner_id: int, replay: Replay) -> int:
        """
        Rejoue les entrees sequentiellement.

        Args:
            owner_id: Proprietaire (ID utilisateur) passe a la fonction de rejeu
            replay: Fonction async rejouant une ecriture

        Returns:
            Nombre d'entrees rejouees avec succes
        """
        entries = self.entries()
        if not entries:
            return 0

        log = self._log.bind(user_id=owner_id)
        log.info(f"Rejeu de {len(entries)} ecriture(s) en attente")
        replayed = 0
        for entry in entries:
            try:
                await replay(owner_id, entry)
            except Exception as e:
                log.warning(
                    f"Rejeu interrompu sur {entry.action.value} {entry.entity_id}: {e}"
                )
                break
            self.discard(entry)
            replayed += 1

        log.info(f"{replayed}/{len(entries)} ecriture(s) rejouee(s)")
        return replayed

    def _write(self, entries: list[PendingWrite]) -> None:
        if not entries:
            self._store.remove_item(self._key)
            return
        write_records(self._store, self._key, (PendingWriteRecord.from_write(e) for e in entries))
