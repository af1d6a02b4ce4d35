"""
Fonctions utilitaires partagees dans le projet CineScope.

Ce module centralise les conversions d'horodatage :
- now_ms / now_iso : instant courant en millisecondes epoch ou ISO 8601
- ms_to_datetime / datetime_to_ms : passage entre le format du stockage
  local (millisecondes) et celui de la base (datetime UTC)
- iso_to_datetime / datetime_to_iso : meme passage pour les dates ISO
  (listes, flux RSS)
"""

from datetime import datetime, timezone


def now_ms() -> int:
    """Instant courant en millisecondes depuis epoch."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def now_iso() -> str:
    """Instant courant au format ISO 8601 (UTC, suffixe Z)."""
    return datetime_to_iso(datetime.now(timezone.utc))


def ms_to_datetime(value: int) -> datetime:
    """Convertit des millisecondes epoch en datetime UTC."""
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


def datetime_to_ms(value: datetime) -> int:
    """
    Convertit un datetime en millisecondes epoch.

    Les datetimes naifs (SQLite ne conserve pas le fuseau) sont consideres UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


def iso_to_datetime(value: str) -> datetime:
    """
    Convertit une chaine ISO 8601 en datetime UTC.

    Raises:
        ValueError: Si la chaine n'est pas au format ISO
    """
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def datetime_to_iso(value: datetime) -> str:
    """Convertit un datetime (naif = UTC) en ISO 8601 suffixe Z."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")
