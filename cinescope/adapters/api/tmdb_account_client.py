"""
Client du service de compte TMDB.

Implemente l'interface IAccountService pour TMDB : authentification par
jeton de requete, favoris, watchlist, notes et listes personnalisees.
Utilise le mecanisme de retry pour gerer le rate limiting.

Usage:
    client = TMDBAccountClient(bearer_token="xxx")
    token = await client.create_request_token()
    session_id = await client.create_session(token)
    page = await client.get_favorites(account_id, session_id, MediaType.MOVIE)
    await client.close()
"""

from typing import Any, Optional

import httpx
from loguru import logger

from cinescope.adapters.api.retry import RateLimitError, request_with_retry
from cinescope.core.entities import (
    AccountUser,
    CollectionItem,
    ListItem,
    RatingItem,
    UserList,
)
from cinescope.core.exceptions import AccountServiceError
from cinescope.core.ports.account_service import AccountPage, IAccountService, RemoteList
from cinescope.core.value_objects import MediaType


def _media_title(item: dict[str, Any]) -> str:
    """Les films exposent 'title', les series 'name'."""
    return item.get("title") or item.get("name") or ""


class TMDBAccountClient(IAccountService):
    """
    Client API du compte TMDB.

    Implemente IAccountService avec:
    - Flux d'authentification (request token -> session)
    - Mutations favoris / watchlist / notes / listes
    - Lectures paginees des collections du compte
    - Retry automatique sur rate limiting (429)

    Les erreurs transport et 5xx des mutations sont converties en
    AccountServiceError ; les 4xx retournent False.

    Attributes:
        TMDB_BASE_URL: URL de base de l'API TMDB v3
        LANGUAGE: Langue des lectures

    Example:
        client = TMDBAccountClient(bearer_token="xxx")
        ok = await client.mark_favorite(42, "sess", MediaType.MOVIE, 550, True)
        await client.close()
    """

    TMDB_BASE_URL = "https://api.themoviedb.org/3"
    LANGUAGE = "en-US"

    def __init__(
        self,
        bearer_token: Optional[str],
        base_url: str = TMDB_BASE_URL,
        timeout: float = 30.0,
        max_attempts: int = 5,
    ) -> None:
        """
        Initialise le client TMDB.

        Args:
            bearer_token: Read Access Token v4 (None desactive le client)
            base_url: URL de base de l'API
            timeout: Timeout HTTP en secondes
            max_attempts: Tentatives maximum sur 429
        """
        self._bearer_token = bearer_token
        self._base_url = base_url
        self._timeout = timeout
        self._max_attempts = max_attempts
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        """
        Retourne le client HTTP, le cree si necessaire (lazy init).

        Returns:
            httpx.AsyncClient configure pour l'API TMDB
        """
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self._bearer_token}",
                },
                timeout=self._timeout,
            )
        return self._client

    @property
    def enabled(self) -> bool:
        return bool(self._bearer_token)

    async def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        """
        Envoie une requete et normalise les erreurs.

        Returns:
            La reponse (2xx ou 4xx)

        Raises:
            AccountServiceError: Erreur transport, 5xx, ou 429 persistant
        """
        client = self._get_client()
        try:
            return await request_with_retry(
                client, method, path, max_attempts=self._max_attempts, **kwargs
            )
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status >= 500:
                raise AccountServiceError(
                    f"{method} {path} a echoue ({status})", status_code=status
                ) from e
            return e.response
        except RateLimitError as e:
            raise AccountServiceError(
                f"{method} {path} limite en debit", status_code=429
            ) from e
        except httpx.TransportError as e:
            raise AccountServiceError(f"{method} {path} injoignable: {e}") from e

    async def _read_json(self, method: str, path: str, **kwargs) -> Optional[dict[str, Any]]:
        """Lecture tolerante : None sur tout echec."""
        try:
            response = await self._send(method, path, **kwargs)
        except AccountServiceError as e:
            logger.warning(f"Lecture TMDB impossible: {e}")
            return None
        if not response.is_success:
            logger.warning(f"Lecture TMDB refusee: {method} {path} ({response.status_code})")
            return None
        return response.json()

    # --- Authentification ---

    async def create_request_token(self) -> Optional[str]:
        if not self.enabled:
            return None
        data = await self._read_json("GET", "/authentication/token/new")
        if data and data.get("success"):
            return data.get("request_token")
        return None

    async def create_session(self, request_token: str) -> Optional[str]:
        if not self.enabled:
            return None
        data = await self._read_json(
            "POST", "/authentication/session/new", json={"request_token": request_token}
        )
        if data and data.get("success"):
            return data.get("session_id")
        return None

    async def delete_session(self, session_token: str) -> bool:
        if not self.enabled:
            return False
        data = await self._read_json(
            "DELETE", "/authentication/session", json={"session_id": session_token}
        )
        return bool(data and data.get("success"))

    async def get_account_details(self, session_token: str) -> Optional[AccountUser]:
        if not self.enabled:
            return None
        data = await self._read_json("GET", "/account", params={"session_id": session_token})
        if not data or "id" not in data:
            return None
        avatar = data.get("avatar") or {}
        return AccountUser(
            id=int(data["id"]),
            username=data.get("username", ""),
            name=data.get("name") or "",
            avatar_path=(avatar.get("tmdb") or {}).get("avatar_path"),
            gravatar_hash=(avatar.get("gravatar") or {}).get("hash"),
        )

    # --- Mutations ---

    async def mark_favorite(
        self,
        account_id: int,
        session_token: str,
        media_type: MediaType,
        media_id: int,
        favorite: bool,
    ) -> bool:
        if not self.enabled:
            return False
        response = await self._send(
            "POST",
            f"/account/{account_id}/favorite",
            params={"session_id": session_token},
            json={"media_type": media_type.value, "media_id": media_id, "favorite": favorite},
        )
        return response.is_success

    async def set_watchlist(
        self,
        account_id: int,
        session_token: str,
        media_type: MediaType,
        media_id: int,
        watchlist: bool,
    ) -> bool:
        if not self.enabled:
            return False
        response = await self._send(
            "POST",
            f"/account/{account_id}/watchlist",
            params={"session_id": session_token},
            json={"media_type": media_type.value, "media_id": media_id, "watchlist": watchlist},
        )
        return response.is_success

    async def rate(
        self, session_token: str, media_type: MediaType, media_id: int, value: float
    ) -> bool:
        if not self.enabled:
            return False
        response = await self._send(
            "POST",
            f"/{media_type.value}/{media_id}/rating",
            params={"session_id": session_token},
            json={"value": value},
        )
        return response.is_success

    async def delete_rating(
        self, session_token: str, media_type: MediaType, media_id: int
    ) -> bool:
        if not self.enabled:
            return False
        response = await self._send(
            "DELETE",
            f"/{media_type.value}/{media_id}/rating",
            params={"session_id": session_token},
        )
        return response.is_success

    # --- Lectures paginees ---

    async def _get_account_page(
        self,
        collection: str,
        account_id: int,
        session_token: str,
        media_type: MediaType,
        page: int,
    ) -> tuple[list[dict[str, Any]], int]:
        """
        Lit une page d'une collection du compte.

        Raises:
            AccountServiceError: Si la page ne peut pas etre lue
        """
        path = f"/account/{account_id}/{collection}/{media_type.account_path}"
        response = await self._send(
            "GET",
            path,
            params={
                "session_id": session_token,
                "page": page,
                "language": self.LANGUAGE,
                "sort_by": "created_at.desc",
            },
        )
        if not response.is_success:
            raise AccountServiceError(
                f"GET {path} refuse ({response.status_code})",
                status_code=response.status_code,
            )
        data = response.json()
        return data.get("results") or [], int(data.get("total_pages") or 0)

    async def get_favorites(
        self, account_id: int, session_token: str, media_type: MediaType, page: int = 1
    ) -> AccountPage[CollectionItem]:
        if not self.enabled:
            return AccountPage()
        results, total_pages = await self._get_account_page(
            "favorite", account_id, session_token, media_type, page
        )
        return AccountPage(
            results=[
                CollectionItem(
                    media_id=int(item["id"]),
                    media_type=media_type,
                    title=_media_title(item),
                    poster_path=item.get("poster_path"),
                )
                for item in results
            ],
            total_pages=total_pages,
        )

    async def get_watchlist(
        self, account_id: int, session_token: str, media_type: MediaType, page: int = 1
    ) -> AccountPage[CollectionItem]:
        if not self.enabled:
            return AccountPage()
        results, total_pages = await self._get_account_page(
            "watchlist", account_id, session_token, media_type, page
        )
        return AccountPage(
            results=[
                CollectionItem(
                    media_id=int(item["id"]),
                    media_type=media_type,
                    title=_media_title(item),
                    poster_path=item.get("poster_path"),
                )
                for item in results
            ],
            total_pages=total_pages,
        )

    async def get_rated(
        self, account_id: int, session_token: str, media_type: MediaType, page: int = 1
    ) -> AccountPage[RatingItem]:
        if not self.enabled:
            return AccountPage()
        results, total_pages = await self._get_account_page(
            "rated", account_id, session_token, media_type, page
        )
        return AccountPage(
            results=[
                RatingItem(
                    media_id=int(item["id"]),
                    media_type=media_type,
                    title=_media_title(item),
                    value=float(item.get("rating") or 0),
                    poster_path=item.get("poster_path"),
                )
                for item in results
            ],
            total_pages=total_pages,
        )

    # --- Listes personnalisees ---

    async def get_lists(self, account_id: int, session_token: str) -> list[RemoteList]:
        if not self.enabled:
            return []
        data = await self._read_json(
            "GET", f"/account/{account_id}/lists", params={"session_id": session_token}
        )
        if not data:
            return []
        return [
            RemoteList(
                id=int(item["id"]),
                name=item.get("name", ""),
                description=item.get("description") or None,
                item_count=int(item.get("item_count") or 0),
            )
            for item in data.get("results") or []
        ]

    async def create_list(
        self, session_token: str, name: str, description: str = ""
    ) -> Optional[int]:
        if not self.enabled:
            return None
        response = await self._send(
            "POST",
            "/list",
            params={"session_id": session_token},
            json={"name": name, "description": description, "language": "en"},
        )
        if not response.is_success:
            logger.warning(f"Creation de liste TMDB refusee ({response.status_code})")
            return None
        data = response.json()
        return data.get("list_id") if data.get("success") else None

    async def add_to_list(self, session_token: str, list_id: int, media_id: int) -> bool:
        if not self.enabled:
            return False
        response = await self._send(
            "POST",
            f"/list/{list_id}/add_item",
            params={"session_id": session_token},
            json={"media_id": media_id},
        )
        return response.is_success

    async def remove_from_list(
        self, session_token: str, list_id: int, media_id: int
    ) -> bool:
        if not self.enabled:
            return False
        response = await self._send(
            "POST",
            f"/list/{list_id}/remove_item",
            params={"session_id": session_token},
            json={"media_id": media_id},
        )
        return response.is_success

    async def delete_list(self, session_token: str, list_id: int) -> bool:
        if not self.enabled:
            return False
        response = await self._send(
            "DELETE", f"/list/{list_id}", params={"session_id": session_token}
        )
        return response.is_success

    async def get_list_details(self, list_id: int) -> Optional[UserList]:
        if not self.enabled:
            return None
        data = await self._read_json(
            "GET", f"/list/{list_id}", params={"language": self.LANGUAGE}
        )
        if not data:
            return None
        items = []
        for item in data.get("items") or []:
            media_type = item.get("media_type") or ("movie" if item.get("title") else "tv")
            items.append(
                ListItem(
                    media_id=int(item["id"]),
                    media_type=MediaType(media_type),
                    title=_media_title(item),
                    poster_path=item.get("poster_path"),
                )
            )
        return UserList(
            id=int(data["id"]),
            name=data.get("name", ""),
            description=data.get("description") or None,
            count=int(data.get("item_count") or len(items)),
            items=items,
            remote_list_id=int(data["id"]),
        )

    async def close(self) -> None:
        """Ferme le client HTTP."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
