"""
Outils SQL partages par les repositories.

- upsert_rows : INSERT ... ON CONFLICT multi-dialecte (SQLite, PostgreSQL)
- transaction : commit, ou rollback et ProfileStoreError sur erreur SQL
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Iterable, Sequence

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel

from cinescope.core.exceptions import ProfileStoreError

_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


@contextmanager
def transaction(session: Session) -> Iterator[Session]:
    """
    Encadre une ecriture : commit en sortie, rollback sur erreur.

    Raises:
        ProfileStoreError: Si la base refuse l'ecriture
    """
    try:
        yield session
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise ProfileStoreError(f"Ecriture refusee par le Profile Store: {e}") from e


def upsert_rows(
    session: Session,
    model: type[SQLModel],
    rows: Iterable[dict[str, Any]],
    conflict_columns: Sequence[str],
    update_columns: Sequence[str] = (),
    ignore_conflicts: bool = False,
) -> int:
    """
    Insere des lignes en resolvant les conflits sur la cle naturelle.

    Args:
        session: Session active (commit a la charge de l'appelant)
        model: Modele table cible
        rows: Valeurs des lignes (memes cles pour toutes)
        conflict_columns: Colonnes de la contrainte d'unicite
        update_columns: Colonnes ecrasees en cas de conflit
        ignore_conflicts: Si True, une ligne existante est conservee telle quelle

    Returns:
        Nombre de lignes soumises

    Raises:
        ProfileStoreError: Si le dialecte ne supporte pas l'upsert
    """
    rows = list(rows)
    if not rows:
        return 0

    dialect = session.get_bind().dialect.name
    insert = _INSERTS.get(dialect)
    if insert is None:
        raise ProfileStoreError(f"Upsert non supporte pour le dialecte {dialect}")

    statement = insert(model.__table__).values(rows)
    if ignore_conflicts or not update_columns:
        statement = statement.on_conflict_do_nothing(index_elements=list(conflict_columns))
    else:
        statement = statement.on_conflict_do_update(
            index_elements=list(conflict_columns),
            set_={column: statement.excluded[column] for column in update_columns},
        )
    session.exec(statement)
    return len(rows)
