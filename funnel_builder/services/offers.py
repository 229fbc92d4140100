from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from funnel_builder.db.enums import PurchasePathwayEnum
from funnel_builder.db.models import Offer
from funnel_builder.db.repositories.business_profiles import BusinessProfilesRepository
from funnel_builder.db.repositories.intake import IntakeSessionsRepository
from funnel_builder.db.repositories.offers import OffersRepository
from funnel_builder.errors import NotFoundError, ValidationError
from funnel_builder.llm.client import LLMClient, LLMGenerationParams
from funnel_builder.llm.json_recovery import coerce_to_number, coerce_to_string, coerce_to_string_list
from funnel_builder.llm.prompts import OFFER_SYSTEM_PROMPT, build_offer_prompt
from funnel_builder.services.business_profiles import profile_to_source_text
from funnel_builder.services.projects import get_project_or_404

logger = logging.getLogger(__name__)

MAX_FEATURES = 6
MAX_BONUSES = 5
BOOK_CALL_PRICE_THRESHOLD = 2000
_NON_NULL_OFFER_FIELDS = {"currency", "offer_type", "features", "bonuses", "display_order", "metadata_json"}


def load_generation_source(
    *,
    session: Session,
    user_id: str,
    transcript_id: Optional[UUID] = None,
    business_profile_id: Optional[UUID] = None,
) -> tuple[str, Optional[dict[str, Any]]]:
    """Resolve the text the generators work from. A business profile wins over a transcript."""
    if business_profile_id:
        profile = BusinessProfilesRepository(session).get(user_id=user_id, record_id=business_profile_id)
        if not profile:
            raise ValidationError("Business profile not found")
        return profile_to_source_text(profile)
    if transcript_id:
        transcript = IntakeSessionsRepository(session).get(user_id=user_id, record_id=transcript_id)
        if not transcript:
            raise ValidationError("Transcript not found")
        return transcript.transcript_text, transcript.extracted_data or None
    raise ValidationError("Either transcriptId or businessProfileId is required")


def pathway_for_price(price: Optional[float]) -> PurchasePathwayEnum:
    if price is not None and price >= BOOK_CALL_PRICE_THRESHOLD:
        return PurchasePathwayEnum.book_call
    return PurchasePathwayEnum.direct_purchase


def normalize_generated_offer(raw: Any) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise ValidationError("Unable to parse response. The AI returned invalid data format.")

    name = coerce_to_string(raw.get("name"))
    if not name:
        raise ValidationError("Generated offer is missing a name")
    price = coerce_to_number(raw.get("price"))

    pathway_raw = (coerce_to_string(raw.get("pathway")) or "").lower()
    try:
        pathway = PurchasePathwayEnum(pathway_raw)
    except ValueError:
        pathway = pathway_for_price(price)

    return {
        "name": name,
        "tagline": coerce_to_string(raw.get("tagline")),
        "price": Decimal(str(round(price, 2))) if price is not None else None,
        "currency": (coerce_to_string(raw.get("currency")) or "USD").upper(),
        "promise": coerce_to_string(raw.get("promise")),
        "person": coerce_to_string(raw.get("person")),
        "process": coerce_to_string(raw.get("process")),
        "purpose": coerce_to_string(raw.get("purpose")),
        "pathway": pathway,
        "features": coerce_to_string_list(raw.get("features"), max_items=MAX_FEATURES),
        "bonuses": coerce_to_string_list(raw.get("bonuses"), max_items=MAX_BONUSES),
        "guarantee": coerce_to_string(raw.get("guarantee")),
    }


def generate_offer(
    *,
    session: Session,
    user_id: str,
    project_id: UUID,
    transcript_id: Optional[UUID] = None,
    business_profile_id: Optional[UUID] = None,
    llm: Optional[LLMClient] = None,
) -> Offer:
    get_project_or_404(session=session, user_id=user_id, project_id=project_id)
    source_text, extracted_data = load_generation_source(
        session=session,
        user_id=user_id,
        transcript_id=transcript_id,
        business_profile_id=business_profile_id,
    )
    logger.info(
        "Generating offer",
        extra={
            "user_id": user_id,
            "project_id": str(project_id),
            "transcript_id": str(transcript_id) if transcript_id else None,
            "business_profile_id": str(business_profile_id) if business_profile_id else None,
        },
    )

    raw = (llm or LLMClient()).generate_json(
        build_offer_prompt(source_text, extracted_data),
        LLMGenerationParams(system=OFFER_SYSTEM_PROMPT, max_tokens=4000),
    )
    fields = normalize_generated_offer(raw)
    offer = OffersRepository(session).create(
        user_id=user_id,
        project_id=project_id,
        max_features=MAX_FEATURES,
        max_bonuses=MAX_BONUSES,
        **fields,
    )
    logger.info(
        "Offer saved",
        extra={"offer_id": str(offer.id), "offer_name": offer.name, "price": str(offer.price)},
    )
    return offer


def update_offer(*, session: Session, user_id: str, offer_id: UUID, **fields: Any) -> Offer:
    repo = OffersRepository(session)
    offer = repo.get(user_id=user_id, record_id=offer_id)
    if not offer:
        raise NotFoundError("Offer not found")
    if "name" in fields and not (fields["name"] or "").strip():
        raise ValidationError("Offer name cannot be empty")
    if fields.get("features") is not None and len(fields["features"]) > offer.max_features:
        raise ValidationError(f"An offer can have at most {offer.max_features} features")
    if fields.get("bonuses") is not None and len(fields["bonuses"]) > offer.max_bonuses:
        raise ValidationError(f"An offer can have at most {offer.max_bonuses} bonuses")
    fields = {key: value for key, value in fields.items() if value is not None or key not in _NON_NULL_OFFER_FIELDS}
    return repo.update(user_id=user_id, record_id=offer.id, **fields)
