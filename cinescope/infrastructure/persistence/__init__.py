"""
Module de persistance du Profile Store.

Ce module fournit l'infrastructure de stockage utilisant SQLModel (SQLAlchemy).
Il contient :

- database.py : Configuration de l'engine, session factory, initialisation
- models.py : Modeles SQLModel representant les tables de la base de donnees
- repositories/ : Implementations des ports du Profile Store

Usage:
    from cinescope.infrastructure.persistence import init_db, get_session

    init_db()  # Cree les tables si necessaire
    session = next(get_session())
"""

from cinescope.infrastructure.persistence.database import (
    create_db_engine,
    get_engine,
    get_session,
    init_db,
)

__all__ = [
    "create_db_engine",
    "get_engine",
    "get_session",
    "init_db",
]
