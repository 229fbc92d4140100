from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from funnel_builder.db.enums import BusinessProfileSourceEnum
from funnel_builder.db.models import BusinessProfile
from funnel_builder.db.repositories.business_profiles import BusinessProfilesRepository
from funnel_builder.db.repositories.intake import IntakeSessionsRepository
from funnel_builder.errors import NotFoundError, ValidationError
from funnel_builder.llm.client import LLMClient, LLMGenerationParams
from funnel_builder.llm.json_recovery import coerce_to_number, coerce_to_string, coerce_to_string_list
from funnel_builder.services.percentages import percentage, round_half_up
from funnel_builder.services.projects import get_project_or_404

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SectionField:
    key: str
    label: str
    kind: str = "textarea"


@dataclass(frozen=True)
class SectionDefinition:
    section_id: str
    title: str
    fields: tuple[SectionField, ...]

    @property
    def context_key(self) -> str:
        return f"{self.section_id}_context"

    @property
    def field_keys(self) -> tuple[str, ...]:
        return tuple(field.key for field in self.fields)


SECTION_DEFINITIONS: dict[str, SectionDefinition] = {
    "section1": SectionDefinition(
        "section1",
        "Ideal Customer & Core Problem",
        (
            SectionField("ideal_customer", "Ideal Customer"),
            SectionField("transformation", "Transformation"),
            SectionField("perceived_problem", "Perceived Problem"),
            SectionField("root_cause", "Root Cause"),
            SectionField("daily_pain_points", "Daily Pain Points"),
            SectionField("secret_desires", "Secret Desires"),
            SectionField("common_mistakes", "Common Mistakes"),
            SectionField("limiting_beliefs", "Limiting Beliefs"),
            SectionField("empowering_truths", "Empowering Truths"),
        ),
    ),
    "section2": SectionDefinition(
        "section2",
        "Your Story & Signature Method",
        (
            SectionField("struggle_story", "Struggle Story"),
            SectionField("breakthrough_moment", "Breakthrough Moment"),
            SectionField("life_now", "Life Now"),
            SectionField("credibility_experience", "Credibility"),
            SectionField("signature_method", "Signature Method"),
        ),
    ),
    "section3": SectionDefinition(
        "section3",
        "Your Offer & Proof",
        (
            SectionField("offer_name", "Offer Name", "text"),
            SectionField("offer_type", "Offer Type", "text"),
            SectionField("deliverables", "Deliverables"),
            SectionField("delivery_process", "Delivery Process"),
            SectionField("problem_solved", "Problem Solved"),
            SectionField("promise_outcome", "Promise/Outcome"),
            SectionField("pricing", "Pricing", "pricing"),
            SectionField("guarantee", "Guarantee"),
            SectionField("testimonials", "Testimonials"),
            SectionField("bonuses", "Bonuses"),
        ),
    ),
    "section4": SectionDefinition(
        "section4",
        "Teaching Content",
        (
            SectionField("vehicle_belief_shift", "Vehicle Belief Shift", "belief_shift"),
            SectionField("internal_belief_shift", "Internal Belief Shift", "belief_shift"),
            SectionField("external_belief_shift", "External Belief Shift", "belief_shift"),
            SectionField("poll_questions", "Poll Questions", "array"),
        ),
    ),
    "section5": SectionDefinition(
        "section5",
        "Call to Action & Objections",
        (
            SectionField("call_to_action", "Call to Action"),
            SectionField("incentive", "Incentive"),
            SectionField("pricing_disclosure", "Pricing Disclosure"),
            SectionField("path_options", "Path Options"),
            SectionField("top_objections", "Top Objections", "objections"),
        ),
    ),
}


def get_section(section_id: str) -> SectionDefinition:
    definition = SECTION_DEFINITIONS.get(section_id)
    if not definition:
        raise ValidationError(f"Unknown section {section_id}")
    return definition


def is_field_filled(value: Any, kind: str = "textarea") -> bool:
    if value is None:
        return False
    if kind == "pricing":
        return isinstance(value, dict) and any(value.get(key) is not None for key in ("regular", "webinar"))
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    if isinstance(value, dict):
        return any(is_field_filled(item) for item in value.values())
    return True


def calculate_section_completion(section_id: str, values: dict[str, Any]) -> int:
    definition = get_section(section_id)
    filled = sum(1 for field in definition.fields if is_field_filled(values.get(field.key), field.kind))
    return percentage(filled, len(definition.fields))


def calculate_overall_completion(status: dict[str, Any]) -> int:
    scores = [int(status.get(section_id) or 0) for section_id in SECTION_DEFINITIONS]
    return round_half_up(sum(scores) / len(scores))


def profile_values(profile: BusinessProfile) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for definition in SECTION_DEFINITIONS.values():
        for key in definition.field_keys + (definition.context_key,):
            values[key] = getattr(profile, key)
    return values


def build_completion_status(values: dict[str, Any]) -> dict[str, int]:
    status = {section_id: calculate_section_completion(section_id, values) for section_id in SECTION_DEFINITIONS}
    status["overall"] = calculate_overall_completion(status)
    return status


def _empty_completion_status() -> dict[str, int]:
    return {**{section_id: 0 for section_id in SECTION_DEFINITIONS}, "overall": 0}


def get_profile_or_404(*, session: Session, user_id: str, profile_id: UUID) -> BusinessProfile:
    profile = BusinessProfilesRepository(session).get(user_id=user_id, record_id=profile_id)
    if not profile:
        raise NotFoundError("Business profile not found")
    return profile


def get_or_create_profile(
    *,
    session: Session,
    user_id: str,
    project_id: UUID,
    source: BusinessProfileSourceEnum = BusinessProfileSourceEnum.wizard,
) -> BusinessProfile:
    get_project_or_404(session=session, user_id=user_id, project_id=project_id)
    repo = BusinessProfilesRepository(session)
    profile = repo.get_by_project(user_id=user_id, project_id=project_id)
    if profile:
        return profile
    profile = repo.create(
        user_id=user_id,
        project_id=project_id,
        source=source,
        completion_status=_empty_completion_status(),
    )
    logger.info("Business profile created", extra={"profile_id": str(profile.id), "project_id": str(project_id)})
    return profile


def _field_kind(key: str) -> str:
    for definition in SECTION_DEFINITIONS.values():
        for field in definition.fields:
            if field.key == key:
                return field.kind
    return "textarea"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _normalize_field(key: str, value: Any) -> Any:
    """Check a submitted value against its field kind and return the stored shape."""
    kind = _field_kind(key)
    if kind in ("text", "textarea"):
        if value is None or isinstance(value, str):
            return value
        raise ValidationError(f"Field {key} must be text")

    if kind == "array":
        if value is None:
            return []
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise ValidationError(f"Field {key} must be a list of text")
        return list(value)

    if kind == "objections":
        if value is None:
            return []
        if not isinstance(value, list):
            raise ValidationError(f"Field {key} must be a list of objections")
        objections = []
        for entry in value:
            if not isinstance(entry, dict) or not isinstance(entry.get("objection"), str):
                raise ValidationError(f"Each entry in {key} must have an objection and a response")
            response = entry.get("response")
            if response is not None and not isinstance(response, str):
                raise ValidationError(f"Each entry in {key} must have an objection and a response")
            objections.append({"objection": entry["objection"], "response": response or ""})
        return objections

    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValidationError(f"Field {key} must be an object")
    if kind == "pricing":
        if not all(_is_number(item) or item is None for item in value.values()):
            raise ValidationError(f"Field {key} prices must be numbers")
    elif not all(isinstance(item, str) or item is None for item in value.values()):
        raise ValidationError(f"Field {key} values must be text")
    return dict(value)


def _apply_section(
    profile: BusinessProfile,
    section_id: str,
    data: dict[str, Any],
    ai_generated_fields: Optional[list[str]] = None,
) -> int:
    """Merge validated answers into the profile without committing. Returns the section's completion."""
    definition = get_section(section_id)
    allowed = set(definition.field_keys) | {definition.context_key}
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise ValidationError(f"Unknown fields for {section_id}: {', '.join(unknown)}")

    normalized = {key: _normalize_field(key, value) for key, value in data.items()}
    for key, value in normalized.items():
        setattr(profile, key, value)

    status = dict(profile.completion_status or _empty_completion_status())
    status[section_id] = calculate_section_completion(section_id, profile_values(profile))
    status["overall"] = calculate_overall_completion(status)
    profile.completion_status = status

    if ai_generated_fields:
        merged = set(profile.ai_generated_fields or []) | {key for key in ai_generated_fields if key in allowed}
        profile.ai_generated_fields = sorted(merged)

    section_number = int(section_id.removeprefix("section"))
    if status[section_id] == 100 and profile.current_section <= section_number:
        profile.current_section = min(section_number + 1, len(SECTION_DEFINITIONS))
    return status[section_id]


def update_section(
    *,
    session: Session,
    user_id: str,
    profile_id: UUID,
    section_id: str,
    data: dict[str, Any],
    ai_generated_fields: Optional[list[str]] = None,
) -> BusinessProfile:
    """Merge one section's answers into the profile and recompute its completion."""
    get_section(section_id)
    profile = get_profile_or_404(session=session, user_id=user_id, profile_id=profile_id)
    completion = _apply_section(profile, section_id, data, ai_generated_fields)

    session.commit()
    session.refresh(profile)
    logger.info(
        "Business profile section saved",
        extra={"profile_id": str(profile.id), "section": section_id, "completion": completion},
    )
    return profile


def delete_profile(*, session: Session, user_id: str, profile_id: UUID) -> None:
    if not BusinessProfilesRepository(session).delete(user_id=user_id, record_id=profile_id):
        raise NotFoundError("Business profile not found")


def _render_objection(entry: Any) -> str:
    if isinstance(entry, dict):
        return f"{entry.get('objection', '')} - Response: {entry.get('response', '')}"
    return str(entry)


def profile_to_source_text(profile: BusinessProfile) -> tuple[str, Optional[dict[str, Any]]]:
    """Render a profile as the transcript-like text the generators consume, plus extracted pricing."""
    lines: list[str] = []
    for definition in SECTION_DEFINITIONS.values():
        section_lines: list[str] = []
        for field in definition.fields:
            value = getattr(profile, field.key)
            if not is_field_filled(value, field.kind):
                continue
            if field.kind == "objections":
                section_lines.append(f"{field.label}:")
                for index, entry in enumerate(value, start=1):
                    section_lines.append(f"  {index}. {_render_objection(entry)}")
            elif field.kind == "array":
                section_lines.append(f"{field.label}: " + "; ".join(str(item) for item in value))
            elif field.kind == "belief_shift":
                if isinstance(value, dict):
                    value = "; ".join(f"{key}: {item}" for key, item in value.items() if item)
                section_lines.append(f"{field.label}: {value}")
            elif field.kind == "pricing":
                continue
            else:
                section_lines.append(f"{field.label}: {value}")
        context = getattr(profile, definition.context_key)
        if context and context.strip():
            section_lines.append(f"Additional Context: {context.strip()}")
        if section_lines:
            if lines:
                lines.append("")
            lines.append(f"## {definition.title}")
            lines.extend(section_lines)

    pricing = profile.pricing if isinstance(profile.pricing, dict) else {}
    extracted: list[dict[str, Any]] = []
    if pricing.get("regular"):
        extracted.append({"amount": pricing["regular"], "currency": "USD", "context": "Regular price", "confidence": "high"})
    if pricing.get("webinar"):
        extracted.append(
            {"amount": pricing["webinar"], "currency": "USD", "context": "Webinar special price", "confidence": "high"}
        )
    return "\n".join(lines), ({"pricing": extracted} if extracted else None)


def _extraction_prompt(transcript_text: str) -> str:
    field_lines = []
    for definition in SECTION_DEFINITIONS.values():
        for field in definition.fields:
            if field.kind == "pricing":
                hint = '{"regular": number|null, "webinar": number|null}'
            elif field.kind == "belief_shift":
                hint = '{"old_belief": string, "new_belief": string}'
            elif field.kind == "array":
                hint = "[string]"
            elif field.kind == "objections":
                hint = '[{"objection": string, "response": string}]'
            else:
                hint = "string|null"
            field_lines.append(f'  "{field.key}": {hint}')
    return (
        "Extract a business profile from this intake transcript. Only use facts stated or clearly implied; "
        "use null when the transcript says nothing about a field.\n\n"
        f"TRANSCRIPT:\n{transcript_text}\n\n"
        "Return a JSON object with these keys:\n{\n" + ",\n".join(field_lines) + "\n}"
    )


def _coerce_objections(value: Any) -> list[dict[str, str]]:
    if isinstance(value, str):
        value = coerce_to_string_list(value)
    if not isinstance(value, list):
        return []
    objections = []
    for entry in value:
        if isinstance(entry, dict):
            objection = coerce_to_string(entry.get("objection"))
            response = coerce_to_string(entry.get("response")) or ""
        else:
            objection, response = coerce_to_string(entry), ""
        if objection:
            objections.append({"objection": objection, "response": response})
    return objections


def _coerce_extracted(field: SectionField, value: Any) -> Any:
    """Bring a loosely typed AI value into the shape its field kind stores."""
    if field.kind in ("text", "textarea"):
        return coerce_to_string(value)
    if field.kind == "array":
        return coerce_to_string_list(value)
    if field.kind == "objections":
        return _coerce_objections(value)
    if field.kind == "pricing":
        if isinstance(value, dict):
            return {key: coerce_to_number(value.get(key)) for key in ("regular", "webinar")}
        price = coerce_to_number(value)
        return {"regular": price, "webinar": None} if price is not None else None
    if isinstance(value, dict):
        return {str(key): coerce_to_string(item) for key, item in value.items()}
    return None


def populate_from_intake(
    *,
    session: Session,
    user_id: str,
    project_id: UUID,
    intake_session_id: UUID,
    llm: Optional[LLMClient] = None,
) -> BusinessProfile:
    """Fill empty profile fields from an intake transcript, marking them as AI generated."""
    intake = IntakeSessionsRepository(session).get(user_id=user_id, record_id=intake_session_id)
    if not intake:
        raise ValidationError("Transcript not found")
    profile = get_or_create_profile(
        session=session, user_id=user_id, project_id=project_id, source=BusinessProfileSourceEnum.voice
    )

    extracted = (llm or LLMClient()).generate_json(
        _extraction_prompt(intake.transcript_text),
        LLMGenerationParams(max_tokens=6000, temperature=0.3),
    )
    if not isinstance(extracted, dict):
        raise ValidationError("Unable to parse response. The AI returned invalid data format.")

    values = profile_values(profile)
    filled: dict[str, dict[str, Any]] = {}
    for definition in SECTION_DEFINITIONS.values():
        updates = {}
        for field in definition.fields:
            if is_field_filled(values.get(field.key), field.kind):
                continue
            candidate = _coerce_extracted(field, extracted.get(field.key))
            if is_field_filled(candidate, field.kind):
                updates[field.key] = candidate
        if updates:
            filled[definition.section_id] = updates

    try:
        for section_id, updates in filled.items():
            _apply_section(profile, section_id, updates, ai_generated_fields=list(updates))
        profile.intake_session_id = intake.id
        session.commit()
    except Exception:
        session.rollback()
        raise
    session.refresh(profile)
    return profile
