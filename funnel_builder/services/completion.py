"""Wizard progress: which steps of a funnel project have content, and how that rolls up into master steps."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from funnel_builder.db.enums import CampaignTypeEnum, FunnelProjectStatusEnum
from funnel_builder.db.models import (
    BrandDesign,
    BusinessProfile,
    CheckoutPage,
    DeckStructure,
    EnrollmentPage,
    FollowupAgentConfig,
    FunnelMapConfig,
    FunnelProject,
    IntakeSession,
    MarketingContentBrief,
    PitchVideo,
    Presentation,
    RegistrationPage,
    UpsellPage,
    WatchPage,
)
from funnel_builder.services.percentages import percentage

logger = logging.getLogger(__name__)

TOTAL_STEPS = 12


@dataclass
class StepCompletion:
    step: int
    isCompleted: bool
    hasContent: bool


@dataclass(frozen=True)
class MasterStepDefinition:
    id: int
    title: str
    sub_steps: tuple[int, ...]


@dataclass
class MasterStepCompletion:
    masterStepId: int
    title: str
    isFullyComplete: bool
    isPartiallyComplete: bool
    completedCount: int
    totalCount: int
    percentage: int


MASTER_STEPS = (
    MasterStepDefinition(1, "Business Profile", (1, 2, 3)),
    MasterStepDefinition(2, "Presentation Materials", (4, 5, 6)),
    MasterStepDefinition(3, "Funnel Pages", (7, 8, 9)),
    MasterStepDefinition(4, "Traffic Agents", (10, 11, 12)),
    MasterStepDefinition(5, "Launch", ()),
)


def _count(model, *, user_id: str, project_id: UUID, criteria=()):
    return (
        select(func.count())
        .select_from(model)
        .where(model.funnel_project_id == project_id, model.user_id == user_id, *criteria)
        .scalar_subquery()
    )


def _progress_counts(*, session: Session, user_id: str, project_id: UUID) -> dict[str, Any]:
    scope = {"user_id": user_id, "project_id": project_id}
    profile_status = (
        select(BusinessProfile.completion_status)
        .where(BusinessProfile.funnel_project_id == project_id, BusinessProfile.user_id == user_id)
        .limit(1)
        .scalar_subquery()
    )
    published = (
        select(func.count())
        .select_from(FunnelProject)
        .where(
            FunnelProject.id == project_id,
            FunnelProject.user_id == user_id,
            FunnelProject.status == FunnelProjectStatusEnum.active,
        )
        .scalar_subquery()
    )
    stmt = select(
        _count(IntakeSession, **scope).label("intake_sessions"),
        profile_status.label("profile_status"),
        _count(
            FunnelMapConfig,
            **scope,
            criteria=(or_(FunnelMapConfig.drafts_generated.is_(True), FunnelMapConfig.is_step2_complete.is_(True)),),
        ).label("funnel_map"),
        _count(BrandDesign, **scope).label("brand_designs"),
        _count(DeckStructure, **scope).label("deck_structures"),
        _count(Presentation, **scope).label("presentations"),
        _count(PitchVideo, **scope).label("pitch_videos"),
        _count(EnrollmentPage, **scope).label("enrollment_pages"),
        _count(WatchPage, **scope).label("watch_pages"),
        _count(RegistrationPage, **scope).label("registration_pages"),
        _count(FollowupAgentConfig, **scope).label("followup_configs"),
        _count(
            MarketingContentBrief, **scope, criteria=(MarketingContentBrief.campaign_type == CampaignTypeEnum.paid_ad,)
        ).label("paid_ad_briefs"),
        _count(
            MarketingContentBrief, **scope, criteria=(MarketingContentBrief.campaign_type == CampaignTypeEnum.organic,)
        ).label("organic_briefs"),
        _count(CheckoutPage, **scope).label("checkout_pages"),
        _count(UpsellPage, **scope).label("upsell_pages"),
        published.label("published"),
    )
    return dict(session.execute(stmt).one()._mapping)


def _empty_steps() -> list[StepCompletion]:
    return [StepCompletion(step=step, isCompleted=False, hasContent=False) for step in range(1, TOTAL_STEPS + 1)]


def _steps_from_counts(counts: dict[str, Any]) -> list[StepCompletion]:
    profile_overall = int((counts.get("profile_status") or {}).get("overall") or 0)
    flags = [
        counts["intake_sessions"] > 0 or profile_overall > 0,
        counts["funnel_map"] > 0,
        counts["brand_designs"] > 0,
        counts["deck_structures"] > 0,
        counts["presentations"] > 0,
        counts["pitch_videos"] > 0,
        counts["enrollment_pages"] > 0,
        counts["watch_pages"] > 0,
        counts["registration_pages"] > 0,
        counts["followup_configs"] > 0,
        counts["paid_ad_briefs"] > 0,
        counts["organic_briefs"] > 0,
    ]
    return [StepCompletion(step=index, isCompleted=flag, hasContent=flag) for index, flag in enumerate(flags, start=1)]


def _launch_flags(counts: dict[str, Any]) -> list[bool]:
    return [counts["checkout_pages"] > 0, counts["upsell_pages"] > 0, counts["published"] > 0]


def _master_step(definition: MasterStepDefinition, flags: list[bool]) -> MasterStepCompletion:
    completed = sum(1 for flag in flags if flag)
    total = len(flags)
    return MasterStepCompletion(
        masterStepId=definition.id,
        title=definition.title,
        isFullyComplete=total > 0 and completed == total,
        isPartiallyComplete=0 < completed < total,
        completedCount=completed,
        totalCount=total,
        percentage=percentage(completed, total),
    )


def get_step_completion(*, session: Session, user_id: str, project_id: UUID) -> list[StepCompletion]:
    try:
        counts = _progress_counts(session=session, user_id=user_id, project_id=project_id)
    except SQLAlchemyError:
        logger.exception("Failed to load step completion", extra={"project_id": str(project_id)})
        session.rollback()
        return _empty_steps()
    return _steps_from_counts(counts)


def has_completed_intake(*, session: Session, user_id: str, project_id: UUID) -> bool:
    return get_step_completion(session=session, user_id=user_id, project_id=project_id)[0].isCompleted


def get_project_progress(*, session: Session, user_id: str, project_id: UUID) -> dict[str, Any]:
    """Steps, master steps and the overall roll-up for one project."""
    try:
        counts = _progress_counts(session=session, user_id=user_id, project_id=project_id)
        steps = _steps_from_counts(counts)
        launch = _launch_flags(counts)
    except SQLAlchemyError:
        logger.exception("Failed to load project progress", extra={"project_id": str(project_id)})
        session.rollback()
        steps = _empty_steps()
        launch = [False, False, False]

    by_step = {step.step: step.isCompleted for step in steps}
    master_steps = [
        _master_step(
            definition,
            [by_step[number] for number in definition.sub_steps] if definition.sub_steps else launch,
        )
        for definition in MASTER_STEPS
    ]
    completed_master = sum(1 for master in master_steps if master.isFullyComplete)
    return {
        "steps": [asdict(step) for step in steps],
        "masterSteps": [asdict(master) for master in master_steps],
        "completedMasterSteps": completed_master,
        "totalMasterSteps": len(MASTER_STEPS),
        "percentage": percentage(completed_master, len(MASTER_STEPS)),
    }
