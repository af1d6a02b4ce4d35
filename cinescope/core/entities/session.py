"""
Authentication entities.

Session is ephemeral: it exists only between a successful account
handoff and logout. Its absence means guest mode.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Session:
    """
    Authenticated session with the account service.

    Attributes:
        user_id: Stable external identity (TMDB account ID)
        session_token: Opaque token authorizing account calls
    """

    user_id: int
    session_token: str


@dataclass
class AccountUser:
    """
    Account details returned after login.

    Attributes:
        id: TMDB account ID
        username: Account username
        name: Display name (may be empty)
        avatar_path: TMDB avatar path, if uploaded
        gravatar_hash: Gravatar hash, if any
    """

    id: int
    username: str
    name: str = ""
    avatar_path: Optional[str] = None
    gravatar_hash: Optional[str] = None

    def avatar_url(self, tmdb_avatar_base_url: str) -> Optional[str]:
        """TMDB avatar first, then gravatar, else None."""
        if self.avatar_path:
            return f"{tmdb_avatar_base_url}{self.avatar_path}"
        if self.gravatar_hash:
            return f"https://www.gravatar.com/avatar/{self.gravatar_hash}"
        return None


@dataclass
class Profile:
    """Profile record mirrored into the Profile Store."""

    user_id: int
    username: str
    avatar_url: Optional[str] = None
