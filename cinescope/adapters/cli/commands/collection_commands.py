"""Commandes CLI des collections : status, flush-pending, import-lists."""

import asyncio
from typing import Annotated, Optional

import typer

from cinescope.adapters.cli.helpers import (
    console,
    display_status,
    suppress_loguru,
    with_container,
)
from cinescope.core.entities import Session


def status(
    user_id: Annotated[
        Optional[int],
        typer.Option("--user-id", help="Lire le Profile Store de cet utilisateur"),
    ] = None,
) -> None:
    """Affiche le contenu des collections (mode invite par defaut)."""
    asyncio.run(_status_async(user_id))


@with_container()
async def _status_async(container, user_id: Optional[int]) -> None:
    """Implementation async de la commande status."""
    if user_id is not None:
        # Pas de jeton requis pour lire le Profile Store
        container.session_state().set(Session(user_id=user_id, session_token=""))
    with suppress_loguru():
        await container.session_manager().reload_all(replay_pending=False)
    display_status(container, user_id)


def flush_pending(
    user_id: Annotated[int, typer.Option("--user-id", help="Proprietaire des ecritures")],
) -> None:
    """Rejoue les ecritures du tracker restees en attente."""
    asyncio.run(_flush_pending_async(user_id))


@with_container()
async def _flush_pending_async(container, user_id: int) -> None:
    """Implementation async de la commande flush-pending."""
    tracker = container.tracker_sync()
    replayed = await tracker.flush_pending(user_id)
    console.print(f"[green]{replayed}[/green] ecriture(s) rejouee(s)")

    queues = {"series": container.pending_shows(), "episodes": container.pending_episodes()}
    for label, queue in queues.items():
        # File des episodes absente si desactivee
        if queue is not None and len(queue):
            console.print(
                f"[yellow]{len(queue)}[/yellow] ecriture(s) {label} toujours en attente"
            )


def import_lists(
    user_id: Annotated[int, typer.Option("--user-id", help="ID du compte TMDB")],
    session_token: Annotated[
        str, typer.Option("--session-token", help="Jeton de session TMDB")
    ],
) -> None:
    """Importe les listes du compte TMDB dans le Profile Store."""
    asyncio.run(_import_lists_async(Session(user_id=user_id, session_token=session_token)))


@with_container()
async def _import_lists_async(container, session: Session) -> None:
    """Implementation async de la commande import-lists."""
    if not container.config().account_enabled:
        console.print("[red]Service de compte desactive[/red]")
        raise typer.Exit(1)

    container.session_state().set(session)
    lists_sync = container.lists_sync()
    await lists_sync.load()
    imported, updated = await lists_sync.import_remote_lists()
    console.print(f"Listes importees: [green]{imported}[/green], mises a jour: {updated}")
