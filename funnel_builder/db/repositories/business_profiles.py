from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy import select

from funnel_builder.db.models import BusinessProfile
from funnel_builder.db.repositories.base import ProjectScopedRepository


class BusinessProfilesRepository(ProjectScopedRepository):
    model = BusinessProfile

    def get_by_project(self, *, user_id: str, project_id: UUID) -> Optional[BusinessProfile]:
        stmt = select(BusinessProfile).where(
            BusinessProfile.user_id == user_id,
            BusinessProfile.funnel_project_id == project_id,
        )
        return self.session.scalars(stmt).first()
