"""
Clients API externes.

- TMDBAccountClient : service de compte TMDB (implemente IAccountService)
- retry : relance uniforme des ecritures et relance HTTP sur 429
"""

from cinescope.adapters.api.retry import RateLimitError, request_with_retry, with_retry
from cinescope.adapters.api.tmdb_account_client import TMDBAccountClient

__all__ = [
    "TMDBAccountClient",
    "RateLimitError",
    "request_with_retry",
    "with_retry",
]
