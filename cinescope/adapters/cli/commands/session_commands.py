"""Commandes CLI de session : login-url, login, resume, logout."""

import asyncio
from typing import Annotated

import typer

from cinescope.adapters.cli.helpers import console, display_merge_report, with_container
from cinescope.core.entities import Session


def _require_account(container) -> None:
    if not container.config().account_enabled:
        console.print(
            "[red]Service de compte desactive:[/red] definir CINESCOPE_TMDB_BEARER_TOKEN"
        )
        raise typer.Exit(1)


def login_url() -> None:
    """Cree un jeton de requete TMDB et affiche l'URL d'approbation."""
    asyncio.run(_login_url_async())


@with_container()
async def _login_url_async(container) -> None:
    """Implementation async de la commande login-url."""
    _require_account(container)
    url = await container.session_manager().begin_login()
    if url is None:
        console.print("[red]Creation du jeton de requete impossible[/red]")
        raise typer.Exit(1)
    console.print("Approuver le jeton sur TMDB, puis lancer [bold]cinescope login[/bold]:")
    console.print(url)


def login(
    request_token: Annotated[
        str, typer.Option("--request-token", help="Jeton de requete approuve sur TMDB")
    ],
) -> None:
    """Echange un jeton approuve contre une session et fusionne les donnees invite."""
    asyncio.run(_login_async(request_token))


@with_container()
async def _login_async(container, request_token: str) -> None:
    """Implementation async de la commande login."""
    _require_account(container)
    manager = container.session_manager()
    session = await manager.complete_login(request_token)
    if session is None:
        console.print("[red]Connexion impossible[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Connecte[/green] - utilisateur {session.user_id}")
    console.print(f"[dim]Jeton de session: {session.session_token}[/dim]")
    if manager.last_report is not None:
        display_merge_report(manager.last_report)


def resume(
    user_id: Annotated[int, typer.Option("--user-id", help="ID du compte TMDB")],
    session_token: Annotated[
        str, typer.Option("--session-token", help="Jeton de session TMDB")
    ],
) -> None:
    """Reprend une session existante (fusion comprise)."""
    asyncio.run(_resume_async(Session(user_id=user_id, session_token=session_token)))


@with_container()
async def _resume_async(container, session: Session) -> None:
    """Implementation async de la commande resume."""
    report = await container.session_manager().resume(session)
    display_merge_report(report)


def logout(
    user_id: Annotated[int, typer.Option("--user-id", help="ID du compte TMDB")],
    session_token: Annotated[
        str, typer.Option("--session-token", help="Jeton de session TMDB")
    ],
) -> None:
    """Invalide la session TMDB et repasse en mode invite."""
    asyncio.run(_logout_async(Session(user_id=user_id, session_token=session_token)))


@with_container()
async def _logout_async(container, session: Session) -> None:
    """Implementation async de la commande logout."""
    container.session_state().set(session)
    await container.session_manager().logout()
    console.print("[green]Deconnecte[/green] - mode invite")
