"""
Configuration de l'application via pydantic-settings.

La configuration est chargée depuis les variables d'environnement avec le préfixe CINESCOPE_,
et peut optionnellement être fournie via un fichier .env.

Le jeton TMDB est optionnel - les fonctionnalités de compte sont désactivées si non fourni.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Trouver le fichier .env à la racine du projet (parent de cinescope/)
_PROJECT_ROOT = Path(__file__).parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Paramètres de l'application avec support des variables d'environnement.

    Tous les paramètres peuvent être surchargés via des variables d'environnement
    avec le préfixe CINESCOPE_.
    Exemple : CINESCOPE_RETRY_MAX_RETRIES=3

    Les chemins sont automatiquement étendus (~ -> répertoire home).
    """

    model_config = SettingsConfigDict(
        env_prefix="CINESCOPE_",
        env_file=_ENV_FILE if _ENV_FILE.exists() else ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Service de compte TMDB (OPTIONNEL - fonctionnalités compte désactivées si non défini)
    tmdb_bearer_token: Optional[str] = Field(default=None)
    tmdb_base_url: str = Field(default="https://api.themoviedb.org/3")
    tmdb_authenticate_url: str = Field(default="https://www.themoviedb.org/authenticate")
    tmdb_image_base_url: str = Field(default="https://image.tmdb.org/t/p/w500")
    tmdb_avatar_base_url: str = Field(default="https://image.tmdb.org/t/p/w200")
    login_redirect_url: str = Field(default="http://localhost:3000/auth/tmdb/callback")
    http_timeout: float = Field(default=30.0, gt=0)

    # Profile Store (base relationnelle)
    database_url: str = Field(default="sqlite:///cinescope.db")

    # Stockage local (mode invité)
    local_store_dir: Path = Field(default=Path("~/.cinescope/local"))

    # Écritures distantes
    retry_max_retries: int = Field(default=2, ge=0)
    retry_base_delay: float = Field(default=1.0, ge=0)
    queue_episode_writes: bool = Field(default=False)

    # Historique de consultation
    history_max_items: int = Field(default=50, ge=1)

    # Logging (fichier + stderr, rotation 10MB, 5 fichiers de rétention)
    log_level: str = Field(default="INFO")
    log_file: Path = Field(default=Path("logs/cinescope.log"))
    sync_log_file: Path = Field(default=Path("logs/cinescope-sync.log"))
    log_rotation_size: str = Field(default="10 MB")
    log_retention_count: int = Field(default=5)

    @field_validator("local_store_dir", "log_file", "sync_log_file", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path) -> Path:
        """Étend ~ vers le répertoire home dans les chemins."""
        return Path(v).expanduser()

    @property
    def account_enabled(self) -> bool:
        """Vérifie si le service de compte TMDB est configuré."""
        return bool(self.tmdb_bearer_token)
