from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy import select

from funnel_builder.db.enums import CampaignTypeEnum
from funnel_builder.db.models import BrandDesign, MarketingContentBrief, PitchVideo
from funnel_builder.db.repositories.base import ProjectScopedRepository


class BrandDesignsRepository(ProjectScopedRepository):
    model = BrandDesign


class PitchVideosRepository(ProjectScopedRepository):
    model = PitchVideo


class MarketingBriefsRepository(ProjectScopedRepository):
    model = MarketingContentBrief

    def list(
        self,
        *,
        user_id: str,
        project_id: UUID,
        campaign_type: Optional[CampaignTypeEnum] = None,
    ) -> list[MarketingContentBrief]:
        stmt = select(MarketingContentBrief).where(
            MarketingContentBrief.user_id == user_id,
            MarketingContentBrief.funnel_project_id == project_id,
        )
        if campaign_type is not None:
            stmt = stmt.where(MarketingContentBrief.campaign_type == campaign_type)
        stmt = stmt.order_by(MarketingContentBrief.created_at.desc())
        return list(self.session.scalars(stmt).all())
