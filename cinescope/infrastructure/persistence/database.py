"""
Configuration de la base de donnees du Profile Store.

Ce module fournit :
- Engine SQLAlchemy (SQLite par defaut, PostgreSQL supporte)
- Session factory avec context manager
- Fonction d'initialisation des tables

La base de donnees est configuree via CINESCOPE_DATABASE_URL (defaut: sqlite:///cinescope.db).
"""

from collections.abc import Generator
from pathlib import Path
from typing import Optional

from loguru import logger
from sqlalchemy import Engine
from sqlmodel import Session, SQLModel, create_engine

# Engine global - initialise lors du premier appel a get_engine()
_engine: Optional[Engine] = None


def create_db_engine(db_url: str) -> Engine:
    """
    Cree un engine pour l'URL donnee.

    Pour SQLite fichier, le repertoire parent est cree si necessaire et
    la connexion est partagee entre threads.
    """
    connect_args = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        if db_url.startswith("sqlite:///") and not db_url.startswith("sqlite:///:memory:"):
            db_path = Path(db_url.replace("sqlite:///", ""))
            db_path.parent.mkdir(exist_ok=True, parents=True)

    return create_engine(db_url, echo=False, connect_args=connect_args)


def get_engine() -> Engine:
    """
    Retourne l'engine du Profile Store, en le creant si necessaire.

    Utilise la configuration de l'application pour l'URL de la BDD.
    """
    global _engine
    if _engine is None:
        from cinescope.config import Settings

        _engine = create_db_engine(Settings().database_url)
    return _engine


def get_session() -> Generator[Session, None, None]:
    """
    Generateur de session SQLModel.

    Utilisation avec next() :
        session = next(get_session())

    Ou avec context manager :
        with Session(get_engine()) as session:
            # operations

    Yields:
        Session SQLModel connectee a l'engine
    """
    with Session(get_engine()) as session:
        yield session


def init_db(engine: Optional[Engine] = None) -> None:
    """
    Initialise la base de donnees en creant toutes les tables.

    Importe les modeles pour enregistrer leurs metadonnees dans
    SQLModel.metadata, puis cree les tables manquantes.

    Args:
        engine: Engine cible (defaut: engine de l'application)
    """
    # Import ici pour eviter les imports circulaires
    from cinescope.infrastructure.persistence import models  # noqa: F401

    target = engine or get_engine()
    SQLModel.metadata.create_all(target)
    logger.debug(f"Tables du Profile Store pretes ({target.url.get_backend_name()})")
