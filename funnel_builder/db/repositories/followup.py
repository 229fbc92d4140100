from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy import select, update

from funnel_builder.db.enums import ProspectSegmentEnum
from funnel_builder.db.models import FollowupAgentConfig, FollowupProspect, ProspectScoreHistory
from funnel_builder.db.repositories.base import ProjectScopedRepository, Repository


class FollowupAgentConfigsRepository(ProjectScopedRepository):
    model = FollowupAgentConfig

    def activate(self, *, config: FollowupAgentConfig) -> FollowupAgentConfig:
        siblings = update(FollowupAgentConfig).where(
            FollowupAgentConfig.user_id == config.user_id,
            FollowupAgentConfig.id != config.id,
        )
        if config.offer_id:
            siblings = siblings.where(FollowupAgentConfig.offer_id == config.offer_id)
        else:
            siblings = siblings.where(
                FollowupAgentConfig.funnel_project_id == config.funnel_project_id,
                FollowupAgentConfig.offer_id.is_(None),
            )
        self.session.execute(siblings.values(is_active=False))
        config.is_active = True
        self.session.commit()
        self.session.refresh(config)
        return config


class FollowupProspectsRepository(ProjectScopedRepository):
    model = FollowupProspect

    def list(
        self,
        *,
        user_id: str,
        project_id: UUID,
        segment: Optional[ProspectSegmentEnum] = None,
    ) -> list[FollowupProspect]:
        stmt = select(FollowupProspect).where(
            FollowupProspect.user_id == user_id,
            FollowupProspect.funnel_project_id == project_id,
        )
        if segment is not None:
            stmt = stmt.where(FollowupProspect.segment == segment)
        stmt = stmt.order_by(FollowupProspect.combined_score.desc(), FollowupProspect.created_at.desc())
        return list(self.session.scalars(stmt).all())

    def get_by_email(self, *, project_id: UUID, email: str) -> Optional[FollowupProspect]:
        stmt = select(FollowupProspect).where(
            FollowupProspect.funnel_project_id == project_id,
            FollowupProspect.email == email,
        )
        return self.session.scalars(stmt).first()


class ProspectScoreHistoryRepository(Repository):
    def list(self, *, prospect_id: UUID) -> list[ProspectScoreHistory]:
        stmt = (
            select(ProspectScoreHistory)
            .where(ProspectScoreHistory.prospect_id == prospect_id)
            .order_by(ProspectScoreHistory.created_at.desc())
        )
        return list(self.session.scalars(stmt).all())

    def record(self, **fields) -> ProspectScoreHistory:
        return self.save(ProspectScoreHistory(**fields))
