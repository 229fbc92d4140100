from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from funnel_builder.db.enums import PageKindEnum
from funnel_builder.db.models import CheckoutPage, EnrollmentPage, RegistrationPage, UpsellPage, WatchPage
from funnel_builder.db.repositories.base import ProjectScopedRepository

PAGE_MODELS = {
    PageKindEnum.registration: RegistrationPage,
    PageKindEnum.watch: WatchPage,
    PageKindEnum.enrollment: EnrollmentPage,
    PageKindEnum.checkout: CheckoutPage,
    PageKindEnum.upsell: UpsellPage,
}


class FunnelPagesRepository(ProjectScopedRepository):
    def __init__(self, session: Session, kind: PageKindEnum) -> None:
        super().__init__(session)
        self.kind = kind
        self.model = PAGE_MODELS[kind]

    def vanity_slug_taken(self, *, user_id: str, slug: str, exclude_page_id: Optional[UUID] = None) -> bool:
        stmt = select(self.model.id).where(self.model.user_id == user_id, self.model.vanity_slug == slug)
        if exclude_page_id:
            stmt = stmt.where(self.model.id != exclude_page_id)
        return self.session.execute(stmt).first() is not None

    def unique_vanity_slug(self, *, user_id: str, base: str) -> str:
        suffix = 1
        slug = base
        while self.vanity_slug_taken(user_id=user_id, slug=slug):
            suffix += 1
            slug = f"{base}-{suffix}"
        return slug


def set_project_pages_published(session: Session, *, user_id: str, project_id: UUID, is_published: bool) -> None:
    """Flip the published flag on every page of a project. The caller commits."""
    for model in PAGE_MODELS.values():
        session.execute(
            update(model)
            .where(model.user_id == user_id, model.funnel_project_id == project_id)
            .values(is_published=is_published)
        )
