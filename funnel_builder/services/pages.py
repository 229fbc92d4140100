from __future__ import annotations

import logging
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from funnel_builder.db.enums import PageKindEnum
from funnel_builder.db.repositories.assets import PitchVideosRepository
from funnel_builder.db.repositories.offers import OffersRepository
from funnel_builder.db.repositories.pages import FunnelPagesRepository
from funnel_builder.db.repositories.projects import slugify
from funnel_builder.errors import ConflictError, NotFoundError, ValidationError
from funnel_builder.services.projects import get_project_or_404

logger = logging.getLogger(__name__)

DEFAULT_HEADLINES = {
    PageKindEnum.registration: "Reserve Your Free Seat",
    PageKindEnum.watch: "Watch The Free Masterclass",
    PageKindEnum.enrollment: "Enroll Today",
    PageKindEnum.checkout: "Complete Your Order",
    PageKindEnum.upsell: "Wait! Special One-Time Offer",
}

DEFAULT_CHECKOUT_CONFIG = {
    "order_summary_config": {"show_line_items": True, "show_savings": True},
    "payment_config": {"accepted_methods": ["card"], "collect_billing_address": False},
    "trust_elements": {"show_guarantee": True, "show_secure_badge": True},
}

# Columns each page kind accepts on create/update beyond the shared ones.
_KIND_FIELDS = {
    PageKindEnum.registration: set(),
    PageKindEnum.watch: {"pitch_video_id"},
    PageKindEnum.enrollment: {"page_type"},
    PageKindEnum.checkout: {
        "order_summary_config",
        "order_bump_config",
        "payment_config",
        "trust_elements",
        "success_redirect_url",
    },
    PageKindEnum.upsell: {
        "upsell_number",
        "offer_presentation",
        "price_cents",
        "compare_at_price_cents",
        "is_downsell",
        "accept_button_text",
        "decline_button_text",
        "accept_redirect_url",
        "decline_redirect_url",
    },
}
_SHARED_FIELDS = {"headline", "subheadline", "content_sections", "cta_config", "metadata_json", "offer_id"}


def _validate_fields(kind: PageKindEnum, fields: dict[str, Any]) -> dict[str, Any]:
    allowed = _SHARED_FIELDS | _KIND_FIELDS[kind]
    unknown = sorted(key for key in fields if key not in allowed)
    if unknown:
        raise ValidationError(f"Unsupported fields for {kind.value} page: {', '.join(unknown)}")
    if kind == PageKindEnum.upsell:
        if "upsell_number" in fields and fields["upsell_number"] not in (1, 2):
            raise ValidationError("Upsell number must be 1 or 2")
        if "price_cents" in fields and (fields["price_cents"] is None or fields["price_cents"] < 0):
            raise ValidationError("Price must be zero or greater")
    return fields


def _check_references(*, session: Session, user_id: str, fields: dict[str, Any]) -> None:
    if fields.get("offer_id") and not OffersRepository(session).get(user_id=user_id, record_id=fields["offer_id"]):
        raise NotFoundError("Offer not found")
    if fields.get("pitch_video_id") and not PitchVideosRepository(session).get(
        user_id=user_id, record_id=fields["pitch_video_id"]
    ):
        raise NotFoundError("Pitch video not found")


def get_page_or_404(*, session: Session, user_id: str, kind: PageKindEnum, page_id: UUID):
    page = FunnelPagesRepository(session, kind).get(user_id=user_id, record_id=page_id)
    if not page:
        raise NotFoundError(f"{kind.value.capitalize()} page not found")
    return page


def create_page(
    *,
    session: Session,
    user_id: str,
    project_id: UUID,
    kind: PageKindEnum,
    vanity_slug: Optional[str] = None,
    **fields: Any,
):
    project = get_project_or_404(session=session, user_id=user_id, project_id=project_id)
    fields = _validate_fields(kind, {key: value for key, value in fields.items() if value is not None})
    _check_references(session=session, user_id=user_id, fields=fields)
    fields.setdefault("headline", DEFAULT_HEADLINES[kind])
    if kind == PageKindEnum.checkout:
        for key, value in DEFAULT_CHECKOUT_CONFIG.items():
            fields.setdefault(key, dict(value))

    repo = FunnelPagesRepository(session, kind)
    slug = slugify(vanity_slug or f"{project.slug}-{kind.value}", fallback=kind.value)
    if repo.vanity_slug_taken(user_id=user_id, slug=slug):
        if vanity_slug:
            raise ConflictError(f'The URL "{slug}" is already in use')
        slug = repo.unique_vanity_slug(user_id=user_id, base=f"{slug}-{str(project.id)[:8]}")
    page = repo.create(user_id=user_id, project_id=project.id, vanity_slug=slug, **fields)
    logger.info(
        "Funnel page created",
        extra={"page_id": str(page.id), "kind": kind.value, "project_id": str(project.id)},
    )
    return page


def update_page(*, session: Session, user_id: str, kind: PageKindEnum, page_id: UUID, **fields: Any):
    fields = _validate_fields(kind, fields)
    _check_references(session=session, user_id=user_id, fields=fields)
    page = FunnelPagesRepository(session, kind).update(user_id=user_id, record_id=page_id, **fields)
    if not page:
        raise NotFoundError(f"{kind.value.capitalize()} page not found")
    return page


def update_page_slug(*, session: Session, user_id: str, kind: PageKindEnum, page_id: UUID, slug: str):
    cleaned = slugify(slug, fallback="")
    if not cleaned:
        raise ValidationError("Slug cannot be empty")
    repo = FunnelPagesRepository(session, kind)
    page = get_page_or_404(session=session, user_id=user_id, kind=kind, page_id=page_id)
    if repo.vanity_slug_taken(user_id=user_id, slug=cleaned, exclude_page_id=page.id):
        raise ConflictError(f'The URL "{cleaned}" is already in use')
    return repo.update(user_id=user_id, record_id=page.id, vanity_slug=cleaned)


def set_page_published(*, session: Session, user_id: str, kind: PageKindEnum, page_id: UUID, published: bool):
    get_page_or_404(session=session, user_id=user_id, kind=kind, page_id=page_id)
    return FunnelPagesRepository(session, kind).update(user_id=user_id, record_id=page_id, is_published=published)
