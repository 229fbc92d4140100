from __future__ import annotations

from typing import Any, ClassVar, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session


class Repository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def save(self, obj):
        self.session.add(obj)
        self.session.commit()
        self.session.refresh(obj)
        return obj


class ProjectScopedRepository(Repository):
    """CRUD for rows that belong to a funnel project and are owned by a user."""

    model: ClassVar[type]

    def list(self, *, user_id: str, project_id: UUID) -> list:
        stmt = (
            select(self.model)
            .where(self.model.user_id == user_id, self.model.funnel_project_id == project_id)
            .order_by(self.model.created_at.desc())
        )
        return list(self.session.scalars(stmt).all())

    def get(self, *, user_id: str, record_id: UUID) -> Optional[Any]:
        stmt = select(self.model).where(self.model.user_id == user_id, self.model.id == record_id)
        return self.session.scalars(stmt).first()

    def latest(self, *, user_id: str, project_id: UUID) -> Optional[Any]:
        stmt = (
            select(self.model)
            .where(self.model.user_id == user_id, self.model.funnel_project_id == project_id)
            .order_by(self.model.created_at.desc())
            .limit(1)
        )
        return self.session.scalars(stmt).first()

    def create(self, *, user_id: str, project_id: UUID, **fields: Any):
        record = self.model(user_id=user_id, funnel_project_id=project_id, **fields)
        return self.save(record)

    def update(self, *, user_id: str, record_id: UUID, **fields: Any) -> Optional[Any]:
        record = self.get(user_id=user_id, record_id=record_id)
        if not record:
            return None
        for key, value in fields.items():
            setattr(record, key, value)
        self.session.commit()
        self.session.refresh(record)
        return record

    def delete(self, *, user_id: str, record_id: UUID) -> bool:
        record = self.get(user_id=user_id, record_id=record_id)
        if not record:
            return False
        self.session.delete(record)
        self.session.commit()
        return True
