"""
Implementation SQLModel du repository des listes personnalisees.

Les listes (user_lists) et leurs elements (list_items) sont stockes dans
deux tables ; le nombre d'elements est calcule a la lecture.
"""

from datetime import datetime, timezone
from typing import Iterable, Optional

from loguru import logger
from sqlalchemy import func
from sqlmodel import Session, select

from cinescope.core.entities import ListItem, UserList
from cinescope.core.ports.profile_store import IListRepository
from cinescope.core.value_objects import MediaKey, MediaType
from cinescope.infrastructure.persistence.models import ListItemModel, UserListModel
from cinescope.infrastructure.persistence.repositories.sql_helpers import (
    transaction,
    upsert_rows,
)
from cinescope.utils.helpers import datetime_to_iso, iso_to_datetime


class SQLModelListRepository(IListRepository):
    """
    Repository SQLModel des listes personnalisees.

    Une liste peut etre associee a une liste du service de compte
    (remote_list_id), ce qui permet de la mettre a jour lors d'un import.
    """

    def __init__(self, session: Session) -> None:
        """
        Initialise le repository avec une session SQLModel.

        Args :
            session : Session SQLModel active pour les operations DB
        """
        self._session = session

    def _to_entity(
        self, model: UserListModel, count: int, items: Optional[list[ListItem]] = None
    ) -> UserList:
        return UserList(
            id=model.id,
            name=model.name,
            description=model.description,
            count=count,
            items=items,
            remote_list_id=model.remote_list_id,
        )

    def _item_to_entity(self, model: ListItemModel) -> ListItem:
        return ListItem(
            media_id=model.media_id,
            media_type=MediaType(model.media_type),
            title=model.title,
            poster_path=model.poster_path,
            added_at=datetime_to_iso(model.added_at),
        )

    def _count_items(self, list_id: int) -> int:
        statement = select(func.count()).select_from(ListItemModel).where(
            ListItemModel.list_id == list_id
        )
        return self._session.exec(statement).one()

    def list_for_user(self, user_id: int) -> list[UserList]:
        """Listes de l'utilisateur avec leur nombre d'elements."""
        counts = (
            select(ListItemModel.list_id, func.count().label("item_count"))
            .group_by(ListItemModel.list_id)
            .subquery()
        )
        statement = (
            select(UserListModel, counts.c.item_count)
            .join(counts, counts.c.list_id == UserListModel.id, isouter=True)
            .where(UserListModel.user_id == user_id)
            .order_by(UserListModel.created_at.desc(), UserListModel.id.desc())
        )
        return [
            self._to_entity(model, item_count or 0)
            for model, item_count in self._session.exec(statement).all()
        ]

    def get(self, user_id: int, list_id: int) -> Optional[UserList]:
        """Liste avec ses elements (ordre d'ajout), ou None."""
        statement = select(UserListModel).where(
            UserListModel.id == list_id,
            UserListModel.user_id == user_id,
        )
        model = self._session.exec(statement).first()
        if model is None:
            return None
        items_statement = (
            select(ListItemModel)
            .where(ListItemModel.list_id == list_id)
            .order_by(ListItemModel.added_at, ListItemModel.id)
        )
        items = [self._item_to_entity(item) for item in self._session.exec(items_statement).all()]
        return self._to_entity(model, len(items), items)

    def find_by_remote_id(self, user_id: int, remote_list_id: int) -> Optional[UserList]:
        """Liste associee a une liste du service de compte."""
        statement = select(UserListModel).where(
            UserListModel.user_id == user_id,
            UserListModel.remote_list_id == remote_list_id,
        )
        model = self._session.exec(statement).first()
        if model is None:
            return None
        return self._to_entity(model, self._count_items(model.id))

    def create(
        self,
        user_id: int,
        name: str,
        description: Optional[str] = None,
        remote_list_id: Optional[int] = None,
    ) -> UserList:
        """Cree une liste vide."""
        model = UserListModel(
            user_id=user_id,
            name=name,
            description=description,
            remote_list_id=remote_list_id,
        )
        with transaction(self._session):
            self._session.add(model)
        self._session.refresh(model)
        return self._to_entity(model, 0, [])

    def update(self, list_id: int, name: str, description: Optional[str]) -> None:
        """Met a jour le nom et la description."""
        model = self._session.get(UserListModel, list_id)
        if model is None:
            logger.warning(f"Liste {list_id} introuvable, mise a jour ignoree")
            return
        model.name = name
        model.description = description
        model.updated_at = datetime.now(timezone.utc)
        with transaction(self._session):
            self._session.add(model)

    def delete(self, user_id: int, list_id: int) -> bool:
        """Supprime une liste et ses elements."""
        statement = select(UserListModel).where(
            UserListModel.id == list_id,
            UserListModel.user_id == user_id,
        )
        model = self._session.exec(statement).first()
        if model is None:
            return False
        items = self._session.exec(
            select(ListItemModel).where(ListItemModel.list_id == list_id)
        ).all()
        with transaction(self._session):
            for item in items:
                self._session.delete(item)
            self._session.delete(model)
        return True

    def add_items(self, list_id: int, items: Iterable[ListItem]) -> int:
        """Ajoute des elements ; un media deja present est ignore."""
        now = datetime.now(timezone.utc)
        rows = {}
        for item in items:
            added_at = now
            if item.added_at:
                try:
                    added_at = iso_to_datetime(item.added_at)
                except ValueError:
                    logger.warning(f"Date d'ajout invalide ignoree: {item.added_at!r}")
            rows[item.key] = {
                "list_id": list_id,
                "media_id": item.media_id,
                "media_type": item.media_type.value,
                "title": item.title,
                "poster_path": item.poster_path,
                "added_at": added_at,
            }
        with transaction(self._session):
            return upsert_rows(
                self._session,
                ListItemModel,
                rows.values(),
                conflict_columns=("list_id", "media_id", "media_type"),
                ignore_conflicts=True,
            )

    def remove_item(self, list_id: int, key: MediaKey) -> bool:
        """Retire un element d'une liste."""
        statement = select(ListItemModel).where(
            ListItemModel.list_id == list_id,
            ListItemModel.media_id == key.media_id,
            ListItemModel.media_type == key.media_type.value,
        )
        model = self._session.exec(statement).first()
        if model is None:
            return False
        with transaction(self._session):
            self._session.delete(model)
        return True
