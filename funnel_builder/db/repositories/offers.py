from __future__ import annotations

from uuid import UUID

from sqlalchemy import select

from funnel_builder.db.models import Offer
from funnel_builder.db.repositories.base import ProjectScopedRepository


class OffersRepository(ProjectScopedRepository):
    model = Offer

    def list(self, *, user_id: str, project_id: UUID) -> list[Offer]:
        stmt = (
            select(Offer)
            .where(Offer.user_id == user_id, Offer.funnel_project_id == project_id)
            .order_by(Offer.display_order.asc(), Offer.created_at.desc())
        )
        return list(self.session.scalars(stmt).all())
