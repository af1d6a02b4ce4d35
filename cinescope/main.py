"""
Point d'entrée CLI de CineScope.

Initialise le container DI, configure le logging et fournit les commandes CLI.
"""

from typing import Annotated

import typer
from loguru import logger

from .adapters.cli.commands import (
    flush_pending,
    import_lists,
    login,
    login_url,
    logout,
    resume,
    status,
)
from .config import Settings
from .container import Container
from .logging_config import configure_logging

__version__ = "0.1.0"

app = typer.Typer(
    name="cinescope",
    help="Synchronisation des collections CineScope (invite / compte TMDB)",
)
container = Container()

# Etat global pour les options de verbosite
state = {"verbose": 0, "quiet": False}


def _console_level(default: str) -> str:
    """Niveau console selon -v/-q (le fichier de log reste en DEBUG)."""
    if state["quiet"]:
        return "ERROR"
    if state["verbose"] >= 1:
        return "DEBUG"
    return default


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Augmenter la verbosite (-v, -vv, -vvv)"
        ),
    ] = 0,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Mode silencieux (erreurs uniquement)"),
    ] = False,
) -> None:
    """CineScope - Synchronisation favoris, watchlist, notes et tracker."""
    if quiet:
        state["quiet"] = True
    else:
        state["verbose"] = verbose

    settings = container.config()
    configure_logging(
        log_level=_console_level(settings.log_level),
        log_file=settings.log_file,
        rotation_size=settings.log_rotation_size,
        retention_count=settings.log_retention_count,
        sync_log_file=settings.sync_log_file,
    )


# Commandes de session
app.command(name="login-url")(login_url)
app.command()(login)
app.command()(resume)
app.command()(logout)

# Commandes des collections
app.command()(status)
app.command(name="flush-pending")(flush_pending)
app.command(name="import-lists")(import_lists)


def get_config() -> Settings:
    """Récupère les paramètres de l'application depuis le container DI."""
    return container.config()


@app.command()
def info() -> None:
    """Affiche la configuration actuelle."""
    config = get_config()
    logger.info("Configuration CineScope")
    typer.echo(f"Base de données : {config.database_url}")
    typer.echo(f"Stockage local : {config.local_store_dir}")
    typer.echo(f"Compte TMDB : {'activé' if config.account_enabled else 'désactivé'}")
    typer.echo(f"API TMDB : {config.tmdb_base_url}")
    typer.echo(
        f"Relances : {config.retry_max_retries} (délai de base {config.retry_base_delay}s)"
    )
    typer.echo(
        f"File des épisodes vus : {'activée' if config.queue_episode_writes else 'désactivée'}"
    )
    typer.echo(f"Niveau de log : {config.log_level}")


@app.command()
def version() -> None:
    """Affiche les informations de version."""
    typer.echo(f"CineScope v{__version__}")


def main() -> None:
    """Point d'entrée de l'application."""
    # Charge la configuration et configure le logging
    settings = container.config()
    configure_logging(
        log_level=settings.log_level,
        log_file=settings.log_file,
        rotation_size=settings.log_rotation_size,
        retention_count=settings.log_retention_count,
        sync_log_file=settings.sync_log_file,
    )

    # Initialise la base de données (crée les tables si nécessaire)
    container.database.init()

    logger.info("Démarrage de CineScope", version=__version__)

    # Lance la CLI
    app()


if __name__ == "__main__":
    main()
