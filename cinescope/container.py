"""
Container d'injection de dependances via dependency-injector.

Assemble les adaptateurs (service de compte, stockage local, Profile Store),
les synchroniseurs de collections, l'orchestrateur de fusion et le
gestionnaire de session pour la CLI.
"""

from typing import Optional

from dependency_injector import containers, providers

from .adapters.api.tmdb_account_client import TMDBAccountClient
from .adapters.local_storage.disk_store import DiskLocalStore
from .config import Settings
from .core.ports.local_store import ILocalStore
from .infrastructure.persistence.database import get_session, init_db
from .infrastructure.persistence.repositories import (
    SQLModelFavoriteRepository,
    SQLModelHistoryRepository,
    SQLModelListRepository,
    SQLModelProfileRepository,
    SQLModelRatingRepository,
    SQLModelRSSFeedRepository,
    SQLModelTrackerRepository,
    SQLModelWatchlistRepository,
)
from .services.login_merge import LoginMergeOrchestrator
from .services.pending_writes import PendingWriteQueue
from .services.session_manager import SessionManager
from .services.session_state import SessionState
from .services.sync import (
    FavoritesSynchronizer,
    HistorySynchronizer,
    ListsSynchronizer,
    RatingsSynchronizer,
    RSSFeedsSynchronizer,
    TrackerSynchronizer,
    WatchlistSynchronizer,
)
from .utils.constants import PENDING_EPISODES_KEY, PENDING_SHOWS_KEY


def _episode_queue(store: ILocalStore, enabled: bool) -> Optional[PendingWriteQueue]:
    """File des episodes vus, seulement si activee dans la configuration."""
    return PendingWriteQueue(store, PENDING_EPISODES_KEY) if enabled else None


class Container(containers.DeclarativeContainer):
    """Container DI de l'application.

    Utilisation :
        container = Container()
        container.database.init()  # Initialise la DB une fois
        manager = container.session_manager()
        favorites = container.favorites_sync()
    """

    # Configuration - singleton charge une seule fois
    config = providers.Singleton(Settings)

    # Database - Resource pour initialisation unique
    database = providers.Resource(init_db)

    # Session factory - nouvelle session a chaque appel
    session = providers.Factory(lambda: next(get_session()))

    # Stockage local du mode invite
    local_store = providers.Singleton(
        DiskLocalStore,
        store_dir=config.provided.local_store_dir,
    )

    # Service de compte - desactive si aucun jeton n'est configure
    account_client = providers.Singleton(
        TMDBAccountClient,
        bearer_token=config.provided.tmdb_bearer_token,
        base_url=config.provided.tmdb_base_url,
        timeout=config.provided.http_timeout,
    )

    # Repositories - Factory pour nouvelle instance avec session fraiche
    profile_repository = providers.Factory(SQLModelProfileRepository, session=session)
    favorite_repository = providers.Factory(SQLModelFavoriteRepository, session=session)
    watchlist_repository = providers.Factory(SQLModelWatchlistRepository, session=session)
    rating_repository = providers.Factory(SQLModelRatingRepository, session=session)
    tracker_repository = providers.Factory(SQLModelTrackerRepository, session=session)
    list_repository = providers.Factory(SQLModelListRepository, session=session)
    rss_feed_repository = providers.Factory(SQLModelRSSFeedRepository, session=session)
    history_repository = providers.Factory(SQLModelHistoryRepository, session=session)

    # Etat de session partage par tous les synchroniseurs
    session_state = providers.Singleton(SessionState)

    # Files d'ecritures en attente
    pending_shows = providers.Singleton(
        PendingWriteQueue,
        store=local_store,
        key=PENDING_SHOWS_KEY,
    )
    pending_episodes = providers.Singleton(
        _episode_queue,
        store=local_store,
        enabled=config.provided.queue_episode_writes,
    )

    # Synchroniseurs - Singletons, un etat en memoire par collection
    favorites_sync = providers.Singleton(
        FavoritesSynchronizer,
        session_state=session_state,
        local_store=local_store,
        repository=favorite_repository,
        account=account_client,
        max_retries=config.provided.retry_max_retries,
        base_delay=config.provided.retry_base_delay,
    )
    watchlist_sync = providers.Singleton(
        WatchlistSynchronizer,
        session_state=session_state,
        local_store=local_store,
        repository=watchlist_repository,
        account=account_client,
        max_retries=config.provided.retry_max_retries,
        base_delay=config.provided.retry_base_delay,
    )
    ratings_sync = providers.Singleton(
        RatingsSynchronizer,
        session_state=session_state,
        local_store=local_store,
        repository=rating_repository,
        account=account_client,
        max_retries=config.provided.retry_max_retries,
        base_delay=config.provided.retry_base_delay,
    )
    tracker_sync = providers.Singleton(
        TrackerSynchronizer,
        session_state=session_state,
        local_store=local_store,
        repository=tracker_repository,
        pending_shows=pending_shows,
        pending_episodes=pending_episodes,
        max_retries=config.provided.retry_max_retries,
        base_delay=config.provided.retry_base_delay,
    )
    lists_sync = providers.Singleton(
        ListsSynchronizer,
        session_state=session_state,
        local_store=local_store,
        repository=list_repository,
        account=account_client,
        max_retries=config.provided.retry_max_retries,
        base_delay=config.provided.retry_base_delay,
    )
    history_sync = providers.Singleton(
        HistorySynchronizer,
        session_state=session_state,
        local_store=local_store,
        repository=history_repository,
        max_items=config.provided.history_max_items,
        max_retries=config.provided.retry_max_retries,
        base_delay=config.provided.retry_base_delay,
    )
    rss_sync = providers.Singleton(
        RSSFeedsSynchronizer,
        session_state=session_state,
        local_store=local_store,
        repository=rss_feed_repository,
        max_retries=config.provided.retry_max_retries,
        base_delay=config.provided.retry_base_delay,
    )

    # Fusion a la connexion - Singleton pour garder la trace des sessions fusionnees
    merge_orchestrator = providers.Singleton(
        LoginMergeOrchestrator,
        account=account_client,
        local_store=local_store,
        profiles=profile_repository,
        favorites=favorite_repository,
        watchlist=watchlist_repository,
        ratings=rating_repository,
        tracker=tracker_repository,
        history=history_repository,
        avatar_base_url=config.provided.tmdb_avatar_base_url,
    )

    session_manager = providers.Singleton(
        SessionManager,
        account=account_client,
        session_state=session_state,
        merge_orchestrator=merge_orchestrator,
        synchronizers=providers.List(
            favorites_sync,
            watchlist_sync,
            ratings_sync,
            tracker_sync,
            lists_sync,
            history_sync,
            rss_sync,
        ),
        authenticate_url=config.provided.tmdb_authenticate_url,
        redirect_url=config.provided.login_redirect_url,
    )
