from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID, uuid4

import sqlalchemy as sa
from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from funnel_builder.db.base import Base
from funnel_builder.db.enums import (
    BusinessProfileSourceEnum,
    CampaignTypeEnum,
    ConsentStateEnum,
    DeckTemplateTypeEnum,
    EngagementLevelEnum,
    FunnelProjectStatusEnum,
    GenerationStatusEnum,
    IntakeMethodEnum,
    MarketingBriefStatusEnum,
    MarketingSpaceEnum,
    OfferTypeEnum,
    ProspectSegmentEnum,
    PurchasePathwayEnum,
    VideoProcessingStatusEnum,
    VideoProviderEnum,
)

JSONType = sa.JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum(enum_cls, name: str) -> sa.Enum:
    return sa.Enum(enum_cls, name=name, values_callable=lambda members: [member.value for member in members])


def _project_fk() -> Mapped[UUID]:
    return mapped_column(ForeignKey("funnel_projects.id", ondelete="CASCADE"), nullable=False, index=True)


class FunnelProject(Base):
    __tablename__ = "funnel_projects"

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    target_audience: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    business_niche: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[FunnelProjectStatusEnum] = mapped_column(
        _enum(FunnelProjectStatusEnum, "funnel_project_status"),
        nullable=False,
        default=FunnelProjectStatusEnum.draft,
    )
    current_step: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    settings: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    metadata_json: Mapped[dict[str, Any]] = mapped_column("metadata", JSONType, nullable=False, default=dict)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class FunnelMapConfig(Base):
    __tablename__ = "funnel_map_configs"
    __table_args__ = (UniqueConstraint("funnel_project_id", name="uq_funnel_map_configs_project"),)

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid4)
    funnel_project_id: Mapped[UUID] = _project_fk()
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    drafts_generated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_step2_complete: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    data: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class IntakeSession(Base):
    __tablename__ = "intake_sessions"

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid4)
    funnel_project_id: Mapped[UUID] = _project_fk()
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    intake_method: Mapped[IntakeMethodEnum] = mapped_column(
        _enum(IntakeMethodEnum, "intake_method"), nullable=False, default=IntakeMethodEnum.voice
    )
    call_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    transcript_text: Mapped[str] = mapped_column(Text, nullable=False)
    extracted_data: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    call_duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    call_status: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    metadata_json: Mapped[dict[str, Any]] = mapped_column("metadata", JSONType, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class BusinessProfile(Base):
    __tablename__ = "business_profiles"
    __table_args__ = (UniqueConstraint("funnel_project_id", name="uq_business_profiles_project"),)

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid4)
    funnel_project_id: Mapped[UUID] = _project_fk()
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    intake_session_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey("intake_sessions.id", ondelete="SET NULL"), nullable=True
    )
    source: Mapped[BusinessProfileSourceEnum] = mapped_column(
        _enum(BusinessProfileSourceEnum, "business_profile_source"),
        nullable=False,
        default=BusinessProfileSourceEnum.wizard,
    )

    # Ideal customer and core problem
    ideal_customer: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    transformation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    perceived_problem: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    root_cause: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    daily_pain_points: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    secret_desires: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    common_mistakes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    limiting_beliefs: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    empowering_truths: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    section1_context: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Story and signature method
    struggle_story: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    breakthrough_moment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    life_now: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    credibility_experience: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    signature_method: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    section2_context: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Offer and proof
    offer_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    offer_type: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    deliverables: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    delivery_process: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    problem_solved: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    promise_outcome: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    pricing: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    guarantee: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    testimonials: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    bonuses: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    section3_context: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Teaching content
    vehicle_belief_shift: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    internal_belief_shift: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    external_belief_shift: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    poll_questions: Mapped[list[Any]] = mapped_column(JSONType, nullable=False, default=list)
    section4_context: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Call to action and objections
    call_to_action: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    incentive: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    pricing_disclosure: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    path_options: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    top_objections: Mapped[list[Any]] = mapped_column(JSONType, nullable=False, default=list)
    section5_context: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    completion_status: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    ai_generated_fields: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    current_section: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class Offer(Base):
    __tablename__ = "offers"

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid4)
    funnel_project_id: Mapped[UUID] = _project_fk()
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    tagline: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    currency: Mapped[str] = mapped_column(Text, nullable=False, default="USD")
    offer_type: Mapped[OfferTypeEnum] = mapped_column(
        _enum(OfferTypeEnum, "offer_type"), nullable=False, default=OfferTypeEnum.main
    )
    features: Mapped[list[Any]] = mapped_column(JSONType, nullable=False, default=list)
    bonuses: Mapped[list[Any]] = mapped_column(JSONType, nullable=False, default=list)
    guarantee: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    promise: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    person: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    process: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    purpose: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    pathway: Mapped[Optional[PurchasePathwayEnum]] = mapped_column(
        _enum(PurchasePathwayEnum, "purchase_pathway"), nullable=True
    )
    max_features: Mapped[int] = mapped_column(Integer, nullable=False, default=6)
    max_bonuses: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    metadata_json: Mapped[dict[str, Any]] = mapped_column("metadata", JSONType, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class BrandDesign(Base):
    __tablename__ = "brand_designs"

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid4)
    funnel_project_id: Mapped[UUID] = _project_fk()
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    brand_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    primary_color: Mapped[str] = mapped_column(Text, nullable=False)
    secondary_color: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    accent_color: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    background_color: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    text_color: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    heading_font: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    body_font: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    design_style: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    personality_traits: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    is_ai_generated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class DeckStructure(Base):
    __tablename__ = "deck_structures"

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid4)
    funnel_project_id: Mapped[UUID] = _project_fk()
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    intake_session_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey("intake_sessions.id", ondelete="SET NULL"), nullable=True
    )
    template_type: Mapped[DeckTemplateTypeEnum] = mapped_column(
        _enum(DeckTemplateTypeEnum, "deck_template_type"), nullable=False
    )
    presentation_type: Mapped[str] = mapped_column(Text, nullable=False, default="webinar")
    total_slides: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    slides: Mapped[list[Any]] = mapped_column(JSONType, nullable=False, default=list)
    sections: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    metadata_json: Mapped[dict[str, Any]] = mapped_column("metadata", JSONType, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class Presentation(Base):
    __tablename__ = "presentations"

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid4)
    funnel_project_id: Mapped[UUID] = _project_fk()
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    deck_structure_id: Mapped[UUID] = mapped_column(
        ForeignKey("deck_structures.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    theme_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    deck_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    generation_status: Mapped[GenerationStatusEnum] = mapped_column(
        _enum(GenerationStatusEnum, "generation_status"),
        nullable=False,
        default=GenerationStatusEnum.pending,
    )
    deck_data: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class PitchVideo(Base):
    __tablename__ = "pitch_videos"

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid4)
    funnel_project_id: Mapped[UUID] = _project_fk()
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    video_url: Mapped[str] = mapped_column(Text, nullable=False)
    video_provider: Mapped[VideoProviderEnum] = mapped_column(
        _enum(VideoProviderEnum, "video_provider"), nullable=False, default=VideoProviderEnum.cloudflare
    )
    video_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    video_duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    file_size: Mapped[Optional[int]] = mapped_column(sa.BigInteger, nullable=True)
    processing_status: Mapped[VideoProcessingStatusEnum] = mapped_column(
        _enum(VideoProcessingStatusEnum, "video_processing_status"),
        nullable=False,
        default=VideoProcessingStatusEnum.uploaded,
    )
    metadata_json: Mapped[dict[str, Any]] = mapped_column("metadata", JSONType, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class FunnelPageColumns:
    """Columns shared by every published funnel page kind."""

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    headline: Mapped[str] = mapped_column(Text, nullable=False)
    subheadline: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    vanity_slug: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    content_sections: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    cta_config: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    metadata_json: Mapped[dict[str, Any]] = mapped_column("metadata", JSONType, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    @declared_attr
    def funnel_project_id(cls) -> Mapped[UUID]:
        return _project_fk()

    @declared_attr
    def offer_id(cls) -> Mapped[Optional[UUID]]:
        return mapped_column(ForeignKey("offers.id", ondelete="SET NULL"), nullable=True)


class RegistrationPage(FunnelPageColumns, Base):
    __tablename__ = "registration_pages"


class WatchPage(FunnelPageColumns, Base):
    __tablename__ = "watch_pages"

    pitch_video_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey("pitch_videos.id", ondelete="SET NULL"), nullable=True
    )


class EnrollmentPage(FunnelPageColumns, Base):
    __tablename__ = "enrollment_pages"

    page_type: Mapped[PurchasePathwayEnum] = mapped_column(
        _enum(PurchasePathwayEnum, "purchase_pathway"),
        nullable=False,
        default=PurchasePathwayEnum.direct_purchase,
    )


class CheckoutPage(FunnelPageColumns, Base):
    __tablename__ = "checkout_pages"

    order_summary_config: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    order_bump_config: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    payment_config: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    trust_elements: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    success_redirect_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class UpsellPage(FunnelPageColumns, Base):
    __tablename__ = "upsell_pages"
    __table_args__ = (
        sa.CheckConstraint("upsell_number IN (1, 2)", name="ck_upsell_pages_number"),
        sa.CheckConstraint("price_cents >= 0", name="ck_upsell_pages_price"),
    )

    upsell_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    offer_presentation: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    compare_at_price_cents: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    is_downsell: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    accept_button_text: Mapped[str] = mapped_column(Text, nullable=False, default="Yes! Add This To My Order")
    decline_button_text: Mapped[str] = mapped_column(Text, nullable=False, default="No thanks, I'll pass")
    accept_redirect_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    decline_redirect_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class MarketingContentBrief(Base):
    __tablename__ = "marketing_content_briefs"

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid4)
    funnel_project_id: Mapped[UUID] = _project_fk()
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    goal: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    topic: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    icp_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tone_constraints: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    transformation_focus: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    funnel_entry_point: Mapped[str] = mapped_column(Text, nullable=False, default="watch_page")
    target_platforms: Mapped[list[Any]] = mapped_column(JSONType, nullable=False, default=list)
    preferred_framework: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    campaign_type: Mapped[CampaignTypeEnum] = mapped_column(
        _enum(CampaignTypeEnum, "campaign_type"), nullable=False, default=CampaignTypeEnum.organic
    )
    generation_config: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    status: Mapped[MarketingBriefStatusEnum] = mapped_column(
        _enum(MarketingBriefStatusEnum, "marketing_brief_status"),
        nullable=False,
        default=MarketingBriefStatusEnum.draft,
    )
    space: Mapped[MarketingSpaceEnum] = mapped_column(
        _enum(MarketingSpaceEnum, "marketing_space"), nullable=False, default=MarketingSpaceEnum.sandbox
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class FollowupAgentConfig(Base):
    __tablename__ = "followup_agent_configs"

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid4)
    funnel_project_id: Mapped[UUID] = _project_fk()
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    offer_id: Mapped[Optional[UUID]] = mapped_column(ForeignKey("offers.id", ondelete="SET NULL"), nullable=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    voice_config: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    knowledge_base: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    outcome_goals: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    segmentation_rules: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    objection_handling: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    scoring_config: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    channel_config: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    compliance_config: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    automation_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class FollowupProspect(Base):
    __tablename__ = "followup_prospects"
    __table_args__ = (
        UniqueConstraint("funnel_project_id", "email", name="uq_followup_prospects_project_email"),
        sa.CheckConstraint(
            "watch_percentage >= 0 AND watch_percentage <= 100", name="ck_followup_prospects_watch_pct"
        ),
    )

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid4)
    funnel_project_id: Mapped[UUID] = _project_fk()
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    agent_config_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey("followup_agent_configs.id", ondelete="SET NULL"), nullable=True
    )
    email: Mapped[str] = mapped_column(Text, nullable=False)
    first_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    watch_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    watch_duration_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_watched_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    replay_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    challenge_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    goal_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    objection_hints: Mapped[list[Any]] = mapped_column(JSONType, nullable=False, default=list)
    offer_clicks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    email_opens: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    email_clicks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    first_touch_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    first_reply_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    segment: Mapped[ProspectSegmentEnum] = mapped_column(
        _enum(ProspectSegmentEnum, "prospect_segment"), nullable=False, default=ProspectSegmentEnum.no_show
    )
    intent_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fit_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    combined_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    engagement_level: Mapped[EngagementLevelEnum] = mapped_column(
        _enum(EngagementLevelEnum, "engagement_level"), nullable=False, default=EngagementLevelEnum.cold
    )

    timezone: Mapped[str] = mapped_column(Text, nullable=False, default="UTC")
    locale: Mapped[str] = mapped_column(Text, nullable=False, default="en-US")
    consent_state: Mapped[ConsentStateEnum] = mapped_column(
        _enum(ConsentStateEnum, "consent_state"), nullable=False, default=ConsentStateEnum.implied
    )
    opted_out_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    opt_out_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    total_touches: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    converted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    converted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    conversion_value: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    metadata_json: Mapped[dict[str, Any]] = mapped_column("metadata", JSONType, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class ProspectScoreHistory(Base):
    __tablename__ = "followup_intent_scores"

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid4)
    prospect_id: Mapped[UUID] = mapped_column(
        ForeignKey("followup_prospects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    intent_score: Mapped[int] = mapped_column(Integer, nullable=False)
    fit_score: Mapped[int] = mapped_column(Integer, nullable=False)
    combined_score: Mapped[int] = mapped_column(Integer, nullable=False)
    score_factors: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    change_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    change_delta: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
