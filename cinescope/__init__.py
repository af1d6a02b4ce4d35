"""
CineScope Sync - Couche de reconciliation des collections utilisateur.

Ce package maintient la coherence entre trois stockages divergents :
le compte TMDB (source de verite distante en mode connecte), la base
relationnelle par utilisateur (miroir durable) et le stockage local
(mode invite), a travers les transitions de connexion/deconnexion.

Architecture : Hexagonale (Ports et Adaptateurs)
- core/ : Couche domaine (entites, ports, objets valeur)
- services/ : Couche application (synchroniseurs, fusion a la connexion)
- adapters/ : Couche infrastructure (CLI, stockage local, client TMDB)
- infrastructure/ : Persistance SQLModel (Profile Store)
"""
