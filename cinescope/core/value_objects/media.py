"""
Objets valeur identifiant les medias et les episodes.

Objets valeur immutables servant de cles d'identite dans les collections :
- MediaType : film ou serie TV
- MediaKey : couple (media_id, media_type), unique par proprietaire
- EpisodeKey : triplet (show_id, saison, episode), serialise en "showId:saison:episode"
"""

from dataclasses import dataclass
from enum import Enum


class MediaType(Enum):
    """Type de media tel qu'expose par TMDB.

    Valeurs:
        MOVIE: Film
        TV: Serie TV
    """

    MOVIE = "movie"
    TV = "tv"

    @property
    def account_path(self) -> str:
        """Segment d'URL des listes de compte TMDB ("movies" ou "tv")."""
        return "movies" if self is MediaType.MOVIE else "tv"


@dataclass(frozen=True)
class MediaKey:
    """
    Identite d'un element de collection pour un proprietaire.

    Attributs:
        media_id: ID TMDB du media
        media_type: Type de media (film ou serie)
    """

    media_id: int
    media_type: MediaType


@dataclass(frozen=True)
class EpisodeKey:
    """
    Identite d'un episode vu.

    La forme texte "showId:saison:episode" (ex: "1399:1:1") est celle
    stockee dans le stockage local et utilisee pour les tests d'appartenance.

    Attributs:
        show_id: ID TMDB de la serie
        season: Numero de saison
        episode: Numero d'episode dans la saison
    """

    show_id: int
    season: int
    episode: int

    def __str__(self) -> str:
        return f"{self.show_id}:{self.season}:{self.episode}"

    @classmethod
    def parse(cls, value: str) -> "EpisodeKey":
        """
        Reconstruit une cle depuis sa forme texte.

        Raises:
            ValueError: Si la chaine n'a pas trois composantes entieres
        """
        parts = value.split(":")
        if len(parts) != 3:
            raise ValueError(f"Cle d'episode invalide: {value!r}")
        show_id, season, episode = (int(p) for p in parts)
        return cls(show_id=show_id, season=season, episode=episode)
