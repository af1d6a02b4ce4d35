"""
Utilitaires partages pour les commandes CLI de CineScope.

Ce module fournit :
- console : instance Rich Console partagee
- suppress_loguru : context manager pour desactiver/reactiver les logs loguru
- with_container : decorateur injectant un container initialise
- display_status : tableau des collections chargees
- display_merge_report : bilan d'une fusion a la connexion
"""

from contextlib import contextmanager
from functools import wraps
from typing import Optional

from loguru import logger as loguru_logger
from rich.console import Console
from rich.table import Table

from cinescope.container import Container
from cinescope.services.login_merge import MergeReport

console = Console()


@contextmanager
def suppress_loguru():
    """
    Context manager pour desactiver les logs loguru pendant l'affichage Rich.

    Usage:
        with suppress_loguru():
            console.print(...)
    """
    loguru_logger.disable("cinescope")
    try:
        yield
    finally:
        loguru_logger.enable("cinescope")


def with_container(requires_db: bool = True):
    """
    Decorateur qui injecte un container initialise en premier argument.

    Args:
        requires_db: Si True (defaut), initialise la base de donnees.

    Usage:
        @with_container()
        async def my_command(container, ...):
            config = container.config()
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            container = Container()
            if requires_db:
                container.database.init()
            try:
                return await func(container, *args, **kwargs)
            finally:
                await container.account_client().close()
                container.local_store().close()
        return wrapper
    return decorator


def display_status(container: Container, user_id: Optional[int]) -> None:
    """
    Affiche le contenu des collections chargees.

    Args:
        container: Container dont les synchroniseurs sont charges
        user_id: Utilisateur connecte, ou None en mode invite
    """
    mode = f"connecte (utilisateur {user_id})" if user_id is not None else "invite"
    console.print(f"\n[bold]Mode:[/bold] {mode}\n")

    tracker = container.tracker_sync()
    table = Table(title="Collections")
    table.add_column("Collection", style="cyan")
    table.add_column("Elements", justify="right")

    table.add_row("Favoris", str(len(container.favorites_sync())))
    table.add_row("Watchlist", str(len(container.watchlist_sync())))
    table.add_row("Notes", str(len(container.ratings_sync())))
    table.add_row("Series suivies", str(len(tracker.shows)))
    table.add_row("Episodes vus", str(len(tracker.watched_episodes)))
    table.add_row("Listes", str(len(container.lists_sync().lists)))
    table.add_row("Historique", str(len(container.history_sync().items)))
    table.add_row("Flux RSS", str(len(container.rss_sync().feeds)))
    console.print(table)

    pending = len(container.pending_shows())
    episodes_queue = container.pending_episodes()
    if episodes_queue is not None:
        pending += len(episodes_queue)
    if pending:
        console.print(f"\n[yellow]Ecritures en attente:[/yellow] {pending}")


def display_merge_report(report: MergeReport) -> None:
    """Affiche le bilan d'une fusion a la connexion."""
    if report.skipped:
        console.print("[dim]Fusion deja effectuee pour cette session[/dim]")
        return

    table = Table(title=f"Fusion - utilisateur {report.user_id}")
    table.add_column("Collection", style="cyan")
    table.add_column("Lus", justify="right")
    table.add_column("Supprimes", justify="right")
    table.add_column("Importes", justify="right")
    table.add_column("Pousses", justify="right", style="green")
    table.add_column("Refuses", justify="right", style="red")

    names = dict.fromkeys(
        [*report.pulled, *report.imported, *report.pushed, *report.push_failures]
    )
    for name in names:
        table.add_row(
            name,
            str(report.pulled.get(name, "-")),
            str(report.pruned.get(name, "-")),
            str(report.imported.get(name, "-")),
            str(report.pushed.get(name, "-")),
            str(report.push_failures.get(name, "-")),
        )
    console.print(table)

    if report.kept_keys:
        console.print(
            f"[yellow]Cles invite conservees:[/yellow] {', '.join(report.kept_keys)}"
        )
    for error in report.errors:
        console.print(f"[red]Erreur:[/red] {error}")
