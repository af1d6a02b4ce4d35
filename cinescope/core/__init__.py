"""
Couche domaine (core).

Contient les entités métier, ports (interfaces abstraites), et objets valeur.
Cette couche n'a AUCUNE dépendance vers l'infrastructure (adapters, frameworks, BDD).

Sous-packages :
- entities/ : Entités métier (Session, éléments de collection, séries suivies, listes)
- ports/ : Interfaces abstraites pour le service de compte, le Profile Store et le stockage local
- value_objects/ : Objets valeur immutables (MediaType, MediaKey, EpisodeKey)
"""
