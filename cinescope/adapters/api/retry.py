"""
Mecanismes de retry pour les appels distants.

Deux niveaux distincts :
- with_retry : relance uniforme d'une operation async quelconque (ecritures
  vers le Profile Store ou le service de compte). Backoff LINEAIRE
  (base_delay * numero de tentative), sans jitter, sans distinction du type
  d'erreur ; la derniere erreur est relancee apres epuisement.
- request_with_retry : relance HTTP specifique au rate limiting (429) avec
  backoff exponentiel et jitter, utilisee par le client du service de compte.

Usage:
    # Relance uniforme (1 appel + 2 relances, attentes 1s puis 2s)
    result = await with_retry(lambda: repo_call(), max_retries=2)

    # Relance HTTP sur 429
    response = await request_with_retry(client, "GET", url)
"""

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
    wait_random_exponential,
)

from cinescope.logging_config import sync_logger

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 2
DEFAULT_BASE_DELAY = 1.0

_log = sync_logger("relance")


class RateLimitError(Exception):
    """
    Exception levee quand l'API retourne 429 Too Many Requests.

    Attributes:
        retry_after: Nombre de secondes a attendre (depuis le header Retry-After),
                     ou None si non specifie.
    """

    def __init__(self, retry_after: Optional[int] = None) -> None:
        """
        Initialise l'erreur avec la valeur Retry-After optionnelle.

        Args:
            retry_after: Secondes a attendre avant de relancer (optionnel)
        """
        self.retry_after = retry_after
        super().__init__(f"Rate limited. Retry after: {retry_after}s")


def _log_attempt_failure(retry_state: RetryCallState) -> None:
    """Trace chaque echec avant la prochaine tentative."""
    error = retry_state.outcome.exception() if retry_state.outcome else None
    delay = retry_state.next_action.sleep if retry_state.next_action else 0
    _log.debug(
        f"Tentative {retry_state.attempt_number} echouee ({error!r}), "
        f"nouvel essai dans {delay:.1f}s"
    )


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Execute une operation async avec relances uniformes.

    L'operation est appelee une fois, puis relancee au plus max_retries fois.
    Avant la relance n (1-indexee), l'attente est de base_delay * n secondes.

    Args:
        operation: Fabrique sans argument retournant l'awaitable a executer
        max_retries: Nombre de relances apres le premier appel (defaut: 2)
        base_delay: Delai de base en secondes (defaut: 1.0)
        sleep: Fonction d'attente (injectable pour les tests)

    Returns:
        Le resultat de la premiere tentative reussie

    Raises:
        Exception: La derniere erreur levee par l'operation apres epuisement
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_incrementing(start=base_delay, increment=base_delay),
        before_sleep=_log_attempt_failure,
        sleep=sleep,
        reraise=True,
    )
    return await retrying(operation)


def retry_on_rate_limit(max_attempts: int = 5, max_wait: int = 60):
    """
    Decorateur pour relancer sur RateLimitError avec backoff exponentiel.

    Utilise wait_random_exponential pour ajouter du jitter et eviter
    le "thundering herd" quand plusieurs clients relancent en meme temps.

    Args:
        max_attempts: Nombre maximum de tentatives (defaut: 5)
        max_wait: Delai maximum entre les tentatives en secondes (defaut: 60)

    Returns:
        Decorateur a appliquer sur une fonction async
    """
    return retry(
        retry=retry_if_exception_type(RateLimitError),
        wait=wait_random_exponential(multiplier=1, min=1, max=max_wait),
        stop=stop_after_attempt(max_attempts),
        reraise=True,
    )


async def request_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    max_attempts: int = 5,
    **kwargs,
) -> httpx.Response:
    """
    Execute une requete HTTP avec retry automatique sur 429.

    Convertit les reponses 429 en RateLimitError et relance avec
    backoff exponentiel. Les autres erreurs HTTP (4xx, 5xx) sont
    propagees immediatement sans retry.

    Args:
        client: Client httpx async a utiliser
        method: Methode HTTP (GET, POST, etc.)
        url: URL a appeler
        max_attempts: Nombre maximum de tentatives (defaut: 5)
        **kwargs: Arguments supplementaires passes a client.request()

    Returns:
        httpx.Response en cas de succes

    Raises:
        RateLimitError: Si 429 apres epuisement des tentatives
        httpx.HTTPStatusError: Pour les autres erreurs HTTP
    """

    @retry_on_rate_limit(max_attempts=max_attempts)
    async def _do_request() -> httpx.Response:
        response = await client.request(method, url, **kwargs)
        if response.status_code == 429:
            retry_after_header = response.headers.get("Retry-After")
            retry_after = int(retry_after_header) if retry_after_header else None
            raise RateLimitError(retry_after)
        response.raise_for_status()
        return response

    return await _do_request()
