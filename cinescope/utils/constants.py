"""
Constantes globales pour CineScope.

Ce module contient :
- Les cles du stockage local (mode invite), reprises a l'identique
  des versions precedentes de l'application pour rester lisibles
- Les cles des files d'ecritures en attente
- Les bornes des notes acceptees par TMDB
- Les flux RSS cinema suggeres
"""

# Cles du stockage local, une par collection
FAVORITES_KEY = "cine_favorites"
WATCHLIST_KEY = "cine_watchlist"
RATINGS_KEY = "cine_ratings"
TRACKER_EPISODES_KEY = "cine_tracker_watched"
TRACKER_SHOWS_KEY = "cine_tracker_shows"
LISTS_KEY = "cine_lists"
RSS_FEEDS_KEY = "cinescope_rss_feeds"
HISTORY_KEY = "cine_history"

# Files d'ecritures en attente (series suivies, episodes vus)
PENDING_SHOWS_KEY = "cine_pending_tracked_shows"
PENDING_EPISODES_KEY = "cine_pending_watched_episodes"

# Cles invite effacees apres la fusion a la connexion
GUEST_MERGE_KEYS = (
    FAVORITES_KEY,
    WATCHLIST_KEY,
    RATINGS_KEY,
    TRACKER_EPISODES_KEY,
    TRACKER_SHOWS_KEY,
    HISTORY_KEY,
)

# Notes : TMDB accepte 0.5 - 10.0, l'interface propose 1 - 10
TMDB_MIN_RATING = 0.5
TMDB_MAX_RATING = 10.0

# Flux cinema proposes a l'abonnement
POPULAR_CINEMA_FEEDS = (
    {
        "name": "Variety - Film News",
        "url": "https://variety.com/v/film/feed/",
        "description": "Latest film news from Variety",
        "category": "News",
    },
    {
        "name": "The Hollywood Reporter",
        "url": "https://www.hollywoodreporter.com/feed/",
        "description": "Entertainment industry news",
        "category": "News",
    },
    {
        "name": "IndieWire",
        "url": "https://www.indiewire.com/feed/",
        "description": "Independent film news",
        "category": "News",
    },
    {
        "name": "Screen Rant",
        "url": "https://screenrant.com/feed/",
        "description": "Movie and TV news",
        "category": "News",
    },
    {
        "name": "Collider",
        "url": "https://collider.com/feed/",
        "description": "Entertainment news and reviews",
        "category": "News",
    },
    {
        "name": "FilmWeb (IT)",
        "url": "https://www.filmweb.it/feed/",
        "description": "Notizie cinema italiane",
        "category": "Italian News",
    },
    {
        "name": "Cinematographe (IT)",
        "url": "https://www.cinematographe.it/feed/",
        "description": "News e recensioni cinema",
        "category": "Italian News",
    },
)
