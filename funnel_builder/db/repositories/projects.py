from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from funnel_builder.db.models import (
    BrandDesign,
    BusinessProfile,
    CheckoutPage,
    DeckStructure,
    EnrollmentPage,
    FollowupAgentConfig,
    FollowupProspect,
    FunnelMapConfig,
    FunnelProject,
    IntakeSession,
    MarketingContentBrief,
    Offer,
    PitchVideo,
    Presentation,
    ProspectScoreHistory,
    RegistrationPage,
    UpsellPage,
    WatchPage,
)
from funnel_builder.db.repositories.base import Repository

# Deleted children-first so the statements also succeed where foreign keys are enforced.
_PROJECT_CHILD_MODELS = (
    FollowupProspect,
    FollowupAgentConfig,
    UpsellPage,
    CheckoutPage,
    EnrollmentPage,
    WatchPage,
    RegistrationPage,
    Presentation,
    DeckStructure,
    PitchVideo,
    MarketingContentBrief,
    Offer,
    BrandDesign,
    BusinessProfile,
    IntakeSession,
    FunnelMapConfig,
)


def slugify(value: str, *, fallback: str = "funnel") -> str:
    text = (value or "").strip().lower()
    text = re.sub(r"[^a-z0-9]+", "-", text)
    text = re.sub(r"-{2,}", "-", text).strip("-")
    return text or fallback


class FunnelProjectsRepository(Repository):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def _active_slug_taken(self, *, user_id: str, slug: str, exclude_project_id: Optional[UUID] = None) -> bool:
        stmt = select(FunnelProject.id).where(
            FunnelProject.user_id == user_id,
            FunnelProject.slug == slug,
            FunnelProject.deleted_at.is_(None),
        )
        if exclude_project_id:
            stmt = stmt.where(FunnelProject.id != exclude_project_id)
        return self.session.execute(stmt).first() is not None

    def generate_unique_slug(
        self, *, user_id: str, desired: str, exclude_project_id: Optional[UUID] = None
    ) -> str:
        base = slugify(desired)
        suffix = 0
        while True:
            slug = base if suffix == 0 else f"{base}-{suffix + 1}"
            if not self._active_slug_taken(user_id=user_id, slug=slug, exclude_project_id=exclude_project_id):
                return slug
            suffix += 1

    def slug_in_use(self, *, user_id: str, slug: str, exclude_project_id: Optional[UUID] = None) -> bool:
        return self._active_slug_taken(user_id=user_id, slug=slug, exclude_project_id=exclude_project_id)

    def name_in_use(self, *, user_id: str, name: str, exclude_project_id: Optional[UUID] = None) -> bool:
        stmt = select(FunnelProject.id).where(
            FunnelProject.user_id == user_id,
            func.lower(FunnelProject.name) == name.lower(),
            FunnelProject.deleted_at.is_(None),
        )
        if exclude_project_id:
            stmt = stmt.where(FunnelProject.id != exclude_project_id)
        return self.session.execute(stmt).first() is not None

    def list(self, *, user_id: str) -> list[FunnelProject]:
        stmt = (
            select(FunnelProject)
            .where(FunnelProject.user_id == user_id, FunnelProject.deleted_at.is_(None))
            .order_by(FunnelProject.created_at.desc())
        )
        return list(self.session.scalars(stmt).all())

    def list_deleted(self, *, user_id: str) -> list[FunnelProject]:
        stmt = (
            select(FunnelProject)
            .where(FunnelProject.user_id == user_id, FunnelProject.deleted_at.is_not(None))
            .order_by(FunnelProject.deleted_at.desc())
        )
        return list(self.session.scalars(stmt).all())

    def list_deleted_before(self, *, cutoff: datetime, user_id: Optional[str] = None) -> list[FunnelProject]:
        stmt = select(FunnelProject).where(
            FunnelProject.deleted_at.is_not(None),
            FunnelProject.deleted_at < cutoff,
        )
        if user_id:
            stmt = stmt.where(FunnelProject.user_id == user_id)
        return list(self.session.scalars(stmt).all())

    def get(self, *, user_id: str, project_id: UUID, include_deleted: bool = False) -> Optional[FunnelProject]:
        stmt = select(FunnelProject).where(FunnelProject.user_id == user_id, FunnelProject.id == project_id)
        if not include_deleted:
            stmt = stmt.where(FunnelProject.deleted_at.is_(None))
        return self.session.scalars(stmt).first()

    def create(self, *, user_id: str, name: str, **fields: Any) -> FunnelProject:
        fields["slug"] = self.generate_unique_slug(user_id=user_id, desired=fields.get("slug") or name)
        project = FunnelProject(user_id=user_id, name=name, **fields)
        return self.save(project)

    def update(self, *, user_id: str, project_id: UUID, include_deleted: bool = False, **fields: Any):
        project = self.get(user_id=user_id, project_id=project_id, include_deleted=include_deleted)
        if not project:
            return None
        for key, value in fields.items():
            setattr(project, key, value)
        self.session.commit()
        self.session.refresh(project)
        return project

    def delete_permanently(self, *, project: FunnelProject) -> None:
        prospect_ids = select(FollowupProspect.id).where(FollowupProspect.funnel_project_id == project.id)
        self.session.execute(delete(ProspectScoreHistory).where(ProspectScoreHistory.prospect_id.in_(prospect_ids)))
        for model in _PROJECT_CHILD_MODELS:
            self.session.execute(delete(model).where(model.funnel_project_id == project.id))
        self.session.delete(project)
        self.session.commit()


class FunnelMapConfigsRepository(Repository):
    def get_for_project(self, *, user_id: str, project_id: UUID) -> Optional[FunnelMapConfig]:
        stmt = select(FunnelMapConfig).where(
            FunnelMapConfig.user_id == user_id,
            FunnelMapConfig.funnel_project_id == project_id,
        )
        return self.session.scalars(stmt).first()

    def upsert(self, *, user_id: str, project_id: UUID, **fields: Any) -> FunnelMapConfig:
        config = self.get_for_project(user_id=user_id, project_id=project_id)
        if not config:
            config = FunnelMapConfig(user_id=user_id, funnel_project_id=project_id)
        for key, value in fields.items():
            setattr(config, key, value)
        return self.save(config)
