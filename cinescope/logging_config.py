"""
Configuration du logging de l'application via loguru.

Trois sorties :
- Console : lisible, coloree, avec la collection concernee par le message
- Fichier general : JSON avec rotation, tous niveaux
- Journal de synchronisation : texte, uniquement les evenements de
  synchronisation (relances, ecritures abandonnees, annulees ou mises en
  attente, rejeux), avec l'utilisateur et la file concernes

Les services obtiennent un logger lie via sync_logger() ; ses messages sont
marques comme evenements de synchronisation.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

SYNC_EVENT = "sync_event"

# Valeurs par defaut des champs extra references dans les formats
DEFAULT_EXTRA = {"collection": "-", "user_id": "-", "pending_key": "-"}

SYNC_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
    "{extra[collection]} | user={extra[user_id]} | file={extra[pending_key]} | "
    "{message}"
)


def sync_logger(collection: str, **context):
    """Logger lie a une collection ; ses messages alimentent le journal de synchronisation.

    Args:
        collection: Nom de la collection (favoris, tracker, ...)
        **context: Champs supplementaires (user_id, pending_key)
    """
    return logger.bind(collection=collection, sync_event=True, **context)


def is_sync_event(record) -> bool:
    """Filtre du journal de synchronisation."""
    return bool(record["extra"].get(SYNC_EVENT))


def configure_logging(
    log_level: str = "INFO",
    log_file: Path = Path("logs/cinescope.log"),
    rotation_size: str = "10 MB",
    retention_count: int = 5,
    sync_log_file: Optional[Path] = Path("logs/cinescope-sync.log"),
) -> None:
    """Configure le logging de l'application.

    Args :
        log_level : Niveau de log minimum pour la sortie console
        log_file : Fichier de log general (JSON)
        rotation_size : Taille maximale d'un fichier avant rotation (ex: "10 MB")
        retention_count : Nombre de fichiers rotatifs a conserver
        sync_log_file : Journal de synchronisation (None = desactive)
    """
    logger.remove()
    logger.configure(extra=DEFAULT_EXTRA)

    logger.add(
        sys.stderr,
        level=log_level,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<magenta>{extra[collection]}</magenta> | "
            "<cyan>{name}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        ),
        colorize=True,
    )

    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file,
        level="DEBUG",
        format="{message}",
        serialize=True,
        rotation=rotation_size,
        retention=retention_count,
        compression="zip",
        enqueue=True,
    )

    if sync_log_file is not None:
        sync_log_file.parent.mkdir(parents=True, exist_ok=True)
        # Relances en DEBUG : le journal les capture toutes
        logger.add(
            sync_log_file,
            level="DEBUG",
            format=SYNC_FORMAT,
            filter=is_sync_event,
            rotation=rotation_size,
            retention=retention_count,
        )

    logger.debug(f"Logging configure: {log_file}, synchronisation: {sync_log_file}")
