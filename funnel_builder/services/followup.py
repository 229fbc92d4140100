from __future__ import annotations

import copy
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from funnel_builder.db.enums import ConsentStateEnum, EngagementLevelEnum, ProspectSegmentEnum
from funnel_builder.db.models import FollowupAgentConfig, FollowupProspect
from funnel_builder.db.repositories.followup import (
    FollowupAgentConfigsRepository,
    FollowupProspectsRepository,
    ProspectScoreHistoryRepository,
)
from funnel_builder.db.repositories.offers import OffersRepository
from funnel_builder.errors import ConflictError, NotFoundError, ValidationError
from funnel_builder.services.percentages import round_half_up
from funnel_builder.services.projects import get_project_or_404

logger = logging.getLogger(__name__)

DEFAULT_FIT_SCORE = 50
NO_REPLY_SPEED_HOURS = 999

_DEFAULT_AGENT_CONFIG: dict[str, dict[str, Any]] = {
    "voice_config": {
        "tone": "warm_direct",
        "personality": "professional_personal",
        "reading_level": "grade8",
        "empathy_level": "moderate",
        "urgency_level": "supportive",
        "emoji_policy": "minimal",
    },
    "knowledge_base": {},
    "outcome_goals": {
        "primary": "conversion",
        "secondary": ["engagement", "nurture"],
        "kpis": ["booking_rate", "purchase_rate", "reply_rate"],
    },
    "segmentation_rules": {
        "no_show": {
            "watch_pct": [0, 0],
            "touch_count": 2,
            "cadence_hours": [0, 72],
            "tone": "gentle_reminder",
            "cta": "watch_replay",
        },
        "skimmer": {
            "watch_pct": [1, 24],
            "touch_count": 3,
            "cadence_hours": [0, 24, 72],
            "tone": "curiosity_building",
            "cta": "key_moments",
        },
        "sampler": {
            "watch_pct": [25, 49],
            "touch_count": 4,
            "cadence_hours": [0, 6, 24, 96],
            "tone": "value_reinforcement",
            "cta": "complete_watch",
        },
        "engaged": {
            "watch_pct": [50, 89],
            "touch_count": 5,
            "cadence_hours": [0, 3, 24, 48, 72],
            "tone": "conversion_focused",
            "cta": "book_call",
        },
        "hot": {
            "watch_pct": [90, 100],
            "touch_count": 5,
            "cadence_hours": [0, 1, 24, 48, 72],
            "tone": "urgency_driven",
            "cta": "claim_offer",
        },
    },
    "scoring_config": {
        "intent_formula": {
            "watch_pct_max": 40,
            "replay_max": 10,
            "offer_click_max": 20,
            "email_engagement_max": 15,
            "response_speed_max": 15,
        },
        "engagement_thresholds": {"hot": 70, "warm": 40, "cold": 0},
        "decay_window_days": 30,
    },
    "objection_handling": {
        "price": {"reframe": "ROI-focused, show payback timeline", "story_type": "micro_story"},
        "timing": {"reframe": "15-minute wedge, small commitment", "story_type": "micro_story"},
        "fit": {"reframe": "Same-but-different, edge case as feature", "story_type": "case_study"},
        "trust": {"reframe": "Show your work, transparent process", "story_type": "proof_element"},
        "self_belief": {"reframe": "Micro-commitment, just the next step", "story_type": "micro_story"},
    },
    "channel_config": {
        "email": {"enabled": True, "daily_cap": 1, "send_time_optimization": True, "preferred_send_hour": 10},
        "sms": {"enabled": True, "daily_cap": 1, "high_intent_only": True, "min_intent_score": 50},
    },
    "compliance_config": {
        "required_footer": True,
        "one_click_unsub": True,
        "quiet_hours_start": "21:00",
        "quiet_hours_end": "08:00",
        "respect_timezone": True,
    },
}

AGENT_CONFIG_JSON_FIELDS = tuple(_DEFAULT_AGENT_CONFIG)


def default_agent_config_values() -> dict[str, dict[str, Any]]:
    return copy.deepcopy(_DEFAULT_AGENT_CONFIG)


# ---------- scoring ----------


@dataclass
class ScoreFactors:
    watch_percentage_contribution: float
    replay_count_contribution: float
    cta_clicks_contribution: float
    email_engagement_contribution: float
    response_speed_contribution: float


@dataclass
class ScoreResult:
    intent_score: int
    fit_score: int
    combined_score: int
    segment: ProspectSegmentEnum
    engagement_level: EngagementLevelEnum
    factors: ScoreFactors


def response_speed_points(hours: float) -> int:
    if hours <= 1:
        return 15
    if hours <= 6:
        return 12
    if hours <= 24:
        return 8
    if hours <= 48:
        return 4
    return 0


def score_factors(
    *,
    watch_percentage: float,
    replay_count: int,
    offer_clicks: int,
    email_opens: int,
    email_clicks: int,
    response_speed_hours: float,
) -> ScoreFactors:
    return ScoreFactors(
        watch_percentage_contribution=min(40, watch_percentage * 40 / 100),
        replay_count_contribution=min(10, replay_count * 5),
        cta_clicks_contribution=min(20, offer_clicks * 10),
        email_engagement_contribution=min(15, email_opens * 5 + email_clicks * 10),
        response_speed_contribution=response_speed_points(response_speed_hours),
    )


def calculate_intent_score(factors: ScoreFactors) -> int:
    total = sum(asdict(factors).values())
    return min(100, round_half_up(total))


def calculate_combined_score(intent_score: int, fit_score: int = DEFAULT_FIT_SCORE) -> int:
    return round_half_up(intent_score * 0.7 + fit_score * 0.3)


def determine_segment(watch_percentage: float) -> ProspectSegmentEnum:
    if watch_percentage <= 0:
        return ProspectSegmentEnum.no_show
    if watch_percentage <= 24:
        return ProspectSegmentEnum.skimmer
    if watch_percentage <= 49:
        return ProspectSegmentEnum.sampler
    if watch_percentage <= 89:
        return ProspectSegmentEnum.engaged
    return ProspectSegmentEnum.hot


def determine_engagement_level(combined_score: int) -> EngagementLevelEnum:
    if combined_score >= 70:
        return EngagementLevelEnum.hot
    if combined_score >= 40:
        return EngagementLevelEnum.warm
    return EngagementLevelEnum.cold


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def response_speed_hours(prospect: FollowupProspect) -> float:
    if not prospect.first_touch_at or not prospect.first_reply_at:
        return NO_REPLY_SPEED_HOURS
    delta = _as_utc(prospect.first_reply_at) - _as_utc(prospect.first_touch_at)
    return round_half_up(delta.total_seconds() / 3600)


def score_prospect(prospect: FollowupProspect) -> ScoreResult:
    factors = score_factors(
        watch_percentage=prospect.watch_percentage,
        replay_count=prospect.replay_count,
        offer_clicks=prospect.offer_clicks,
        email_opens=prospect.email_opens,
        email_clicks=prospect.email_clicks,
        response_speed_hours=response_speed_hours(prospect),
    )
    intent = calculate_intent_score(factors)
    combined = calculate_combined_score(intent, DEFAULT_FIT_SCORE)
    return ScoreResult(
        intent_score=intent,
        fit_score=DEFAULT_FIT_SCORE,
        combined_score=combined,
        segment=determine_segment(prospect.watch_percentage),
        engagement_level=determine_engagement_level(combined),
        factors=factors,
    )


# ---------- agent configs ----------


def get_agent_config_or_404(*, session: Session, user_id: str, config_id: UUID) -> FollowupAgentConfig:
    config = FollowupAgentConfigsRepository(session).get(user_id=user_id, record_id=config_id)
    if not config:
        raise NotFoundError("Agent config not found")
    return config


def _ensure_offer(*, session: Session, user_id: str, offer_id: Optional[UUID]) -> None:
    if offer_id and not OffersRepository(session).get(user_id=user_id, record_id=offer_id):
        raise NotFoundError("Offer not found")


def create_agent_config(
    *,
    session: Session,
    user_id: str,
    project_id: UUID,
    name: str,
    offer_id: Optional[UUID] = None,
    description: Optional[str] = None,
    **overrides: Optional[dict[str, Any]],
) -> FollowupAgentConfig:
    get_project_or_404(session=session, user_id=user_id, project_id=project_id)
    _ensure_offer(session=session, user_id=user_id, offer_id=offer_id)
    if not (name or "").strip():
        raise ValidationError("Agent config name is required")

    defaults = default_agent_config_values()
    json_fields = {key: overrides.get(key) or defaults[key] for key in AGENT_CONFIG_JSON_FIELDS}
    config = FollowupAgentConfigsRepository(session).create(
        user_id=user_id,
        project_id=project_id,
        name=name.strip(),
        offer_id=offer_id,
        description=description,
        **json_fields,
    )
    logger.info("Agent config created", extra={"config_id": str(config.id), "project_id": str(project_id)})
    return config


def update_agent_config(*, session: Session, user_id: str, config_id: UUID, **fields: Any) -> FollowupAgentConfig:
    config = get_agent_config_or_404(session=session, user_id=user_id, config_id=config_id)
    if "offer_id" in fields:
        _ensure_offer(session=session, user_id=user_id, offer_id=fields["offer_id"])
    if "name" in fields:
        if not (fields["name"] or "").strip():
            raise ValidationError("Agent config name is required")
        fields["name"] = fields["name"].strip()
    for key in AGENT_CONFIG_JSON_FIELDS:
        if key in fields and fields[key] is None:
            fields[key] = {}
    if fields.get("automation_enabled") is None:
        fields.pop("automation_enabled", None)
    return FollowupAgentConfigsRepository(session).update(user_id=user_id, record_id=config.id, **fields)


def activate_agent_config(*, session: Session, user_id: str, config_id: UUID) -> FollowupAgentConfig:
    config = get_agent_config_or_404(session=session, user_id=user_id, config_id=config_id)
    config = FollowupAgentConfigsRepository(session).activate(config=config)
    logger.info("Agent config activated", extra={"config_id": str(config.id)})
    return config


# ---------- prospects ----------


def get_prospect_or_404(*, session: Session, user_id: str, prospect_id: UUID) -> FollowupProspect:
    prospect = FollowupProspectsRepository(session).get(user_id=user_id, record_id=prospect_id)
    if not prospect:
        raise NotFoundError("Prospect not found")
    return prospect


def create_prospect(
    *,
    session: Session,
    user_id: str,
    project_id: UUID,
    email: str,
    **fields: Any,
) -> FollowupProspect:
    get_project_or_404(session=session, user_id=user_id, project_id=project_id)
    normalized_email = (email or "").strip().lower()
    if "@" not in normalized_email:
        raise ValidationError("A valid email is required")
    repo = FollowupProspectsRepository(session)
    if repo.get_by_email(project_id=project_id, email=normalized_email):
        raise ConflictError("Prospect already exists for this funnel")
    prospect = repo.create(
        user_id=user_id,
        project_id=project_id,
        email=normalized_email,
        segment=ProspectSegmentEnum.no_show,
        intent_score=0,
        fit_score=0,
        combined_score=0,
        engagement_level=EngagementLevelEnum.cold,
        consent_state=ConsentStateEnum.implied,
        **{key: value for key, value in fields.items() if value is not None},
    )
    logger.info("Prospect created", extra={"prospect_id": str(prospect.id), "project_id": str(project_id)})
    return prospect


def update_watch_data(
    *,
    session: Session,
    user_id: str,
    prospect_id: UUID,
    watch_percentage: int,
    watch_duration_seconds: Optional[int] = None,
    is_replay: bool = False,
) -> FollowupProspect:
    if watch_percentage < 0 or watch_percentage > 100:
        raise ValidationError("Watch percentage must be between 0 and 100")
    prospect = get_prospect_or_404(session=session, user_id=user_id, prospect_id=prospect_id)
    prospect.watch_percentage = max(prospect.watch_percentage, watch_percentage)
    if watch_duration_seconds is not None:
        prospect.watch_duration_seconds = max(prospect.watch_duration_seconds, watch_duration_seconds)
    if is_replay:
        prospect.replay_count += 1
    prospect.last_watched_at = datetime.now(timezone.utc)
    prospect.segment = determine_segment(prospect.watch_percentage)
    session.commit()
    return recalculate_score(session=session, user_id=user_id, prospect_id=prospect.id, reason="watch_update")


def update_intake_notes(
    *,
    session: Session,
    user_id: str,
    prospect_id: UUID,
    challenge_notes: Optional[str] = None,
    goal_notes: Optional[str] = None,
    objection_hints: Optional[list[str]] = None,
) -> FollowupProspect:
    prospect = get_prospect_or_404(session=session, user_id=user_id, prospect_id=prospect_id)
    if challenge_notes is not None:
        prospect.challenge_notes = challenge_notes
    if goal_notes is not None:
        prospect.goal_notes = goal_notes
    if objection_hints is not None:
        prospect.objection_hints = list(objection_hints)
    session.commit()
    session.refresh(prospect)
    return prospect


def record_offer_click(*, session: Session, user_id: str, prospect_id: UUID) -> FollowupProspect:
    prospect = get_prospect_or_404(session=session, user_id=user_id, prospect_id=prospect_id)
    prospect.offer_clicks += 1
    session.commit()
    return recalculate_score(session=session, user_id=user_id, prospect_id=prospect.id, reason="offer_click")


def opt_out_prospect(
    *, session: Session, user_id: str, prospect_id: UUID, reason: Optional[str] = None
) -> FollowupProspect:
    prospect = get_prospect_or_404(session=session, user_id=user_id, prospect_id=prospect_id)
    prospect.consent_state = ConsentStateEnum.opted_out
    prospect.opted_out_at = datetime.now(timezone.utc)
    prospect.opt_out_reason = reason
    session.commit()
    session.refresh(prospect)
    logger.info("Prospect opted out", extra={"prospect_id": str(prospect.id)})
    return prospect


def mark_converted(
    *, session: Session, user_id: str, prospect_id: UUID, conversion_value: Optional[Decimal] = None
) -> FollowupProspect:
    prospect = get_prospect_or_404(session=session, user_id=user_id, prospect_id=prospect_id)
    prospect.converted = True
    prospect.converted_at = datetime.now(timezone.utc)
    prospect.conversion_value = conversion_value
    session.commit()
    session.refresh(prospect)
    logger.info("Prospect converted", extra={"prospect_id": str(prospect.id)})
    return prospect


def recalculate_score(
    *, session: Session, user_id: str, prospect_id: UUID, reason: str = "manual"
) -> FollowupProspect:
    prospect = get_prospect_or_404(session=session, user_id=user_id, prospect_id=prospect_id)
    previous = prospect.combined_score
    result = score_prospect(prospect)
    prospect.intent_score = result.intent_score
    prospect.fit_score = result.fit_score
    prospect.combined_score = result.combined_score
    prospect.engagement_level = result.engagement_level
    prospect.segment = result.segment
    session.commit()

    ProspectScoreHistoryRepository(session).record(
        prospect_id=prospect.id,
        intent_score=result.intent_score,
        fit_score=result.fit_score,
        combined_score=result.combined_score,
        score_factors=asdict(result.factors),
        change_reason=reason,
        change_delta=result.combined_score - previous,
    )
    session.refresh(prospect)
    logger.info(
        "Intent score recalculated",
        extra={"prospect_id": str(prospect.id), "old_score": previous, "new_score": result.combined_score},
    )
    return prospect
