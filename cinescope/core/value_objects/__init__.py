"""
Objets valeur immutables representant des concepts du domaine sans identite.

Les objets valeur sont definis par leurs attributs plutot que par une identite.
Ils sont immutables et peuvent etre librement partages et compares par valeur.

Exports :
- MediaType : Type de media (MOVIE, TV)
- MediaKey : Cle d'un element de collection (media_id, media_type)
- EpisodeKey : Cle d'un episode vu (show_id, saison, episode)
"""

from cinescope.core.value_objects.media import EpisodeKey, MediaKey, MediaType

__all__ = [
    "MediaType",
    "MediaKey",
    "EpisodeKey",
]
