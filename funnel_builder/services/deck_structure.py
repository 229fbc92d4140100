from __future__ import annotations

import json
import logging
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from funnel_builder.config import settings
from funnel_builder.db.enums import DeckTemplateTypeEnum
from funnel_builder.db.models import DeckStructure
from funnel_builder.db.repositories.decks import DeckStructuresRepository
from funnel_builder.errors import NotFoundError, ValidationError
from funnel_builder.llm.client import LLMClient, LLMClientConfigError, LLMGenerationParams
from funnel_builder.llm.json_recovery import strip_code_fences
from funnel_builder.llm.prompts import DECK_SYSTEM_PROMPT, build_deck_chunk_prompt
from funnel_builder.services.offers import load_generation_source
from funnel_builder.services.projects import get_project_or_404

logger = logging.getLogger(__name__)

SLIDE_HEADER_RE = re.compile(r"^## Slide (\d+):")
TEST_SLIDE_COUNT = 5
FRAMEWORK_NAME = "Magnetic Masterclass"
PLACEHOLDER_SECTION = "pending"


@dataclass
class SlideChunk:
    start_slide: int
    end_slide: int
    lines: list[str] = field(default_factory=list)

    @property
    def content(self) -> str:
        return "\n".join(self.lines)


def _slide_number(line: str) -> Optional[int]:
    match = SLIDE_HEADER_RE.match(line)
    return int(match.group(1)) if match else None


def split_framework_into_chunks(content: str, slides_per_chunk: int = 10) -> list[SlideChunk]:
    """Group framework lines into ranges of ``slides_per_chunk`` slides keyed on ``## Slide N:`` headers."""
    chunks: list[SlideChunk] = []
    current: list[str] = []
    chunk_start = 1
    last_slide = 0
    for line in content.split("\n"):
        number = _slide_number(line)
        if number is not None:
            if current and number - chunk_start >= slides_per_chunk:
                chunks.append(SlideChunk(chunk_start, number - 1, current))
                current = []
                chunk_start = number
            last_slide = number
        current.append(line)
    if current:
        chunks.append(SlideChunk(chunk_start, last_slide, current))
    return chunks


def extract_test_slides(content: str, count: int = TEST_SLIDE_COUNT) -> SlideChunk:
    lines: list[str] = []
    for line in content.split("\n"):
        lines.append(line)
        number = _slide_number(line)
        if number is not None and number >= count:
            break
    return SlideChunk(1, count, lines)


def placeholder_slides(start_slide: int, end_slide: int) -> list[dict[str, Any]]:
    return [
        {
            "slideNumber": number,
            "title": f"Slide {number} - To Be Completed",
            "description": "This slide needs to be manually created or regenerated.",
            "section": PLACEHOLDER_SECTION,
        }
        for number in range(start_slide, end_slide + 1)
    ]


def load_framework(path: Optional[str] = None) -> str:
    framework_path = Path(path or settings.DECK_FRAMEWORK_PATH)
    try:
        content = framework_path.read_text(encoding="utf-8")
    except OSError:
        logger.error("Failed to load deck framework", extra={"framework_path": str(framework_path)})
        raise ValidationError(f"Framework template not found at {framework_path}")
    logger.info("Deck framework loaded", extra={"framework_length": len(content)})
    return content


def parse_chunk_slides(text: str) -> list[dict[str, Any]]:
    slides = json.loads(strip_code_fences(text))
    if not isinstance(slides, list):
        raise ValueError("Response is not an array")
    return slides


def generate_slide_chunk(*, llm: LLMClient, transcript_text: str, chunk: SlideChunk) -> list[dict[str, Any]]:
    prompt = build_deck_chunk_prompt(
        transcript_text=transcript_text,
        framework_section=chunk.content,
        start_slide=chunk.start_slide,
        end_slide=chunk.end_slide,
    )
    text = llm.generate_text(
        prompt,
        LLMGenerationParams(system=DECK_SYSTEM_PROMPT, max_tokens=settings.DECK_CHUNK_MAX_TOKENS),
    )
    return parse_chunk_slides(text)


def generate_full_deck(
    *, llm: LLMClient, transcript_text: str, chunks: list[SlideChunk]
) -> tuple[list[dict[str, Any]], list[str]]:
    """Generate every chunk in order. A failed chunk is replaced by placeholders and never retried."""
    slides: list[dict[str, Any]] = []
    failed: list[str] = []
    for index, chunk in enumerate(chunks):
        slide_range = f"{chunk.start_slide}-{chunk.end_slide}"
        logger.info(
            "Generating deck chunk",
            extra={"chunk_index": index + 1, "total_chunks": len(chunks), "slide_range": slide_range},
        )
        try:
            slides.extend(generate_slide_chunk(llm=llm, transcript_text=transcript_text, chunk=chunk))
        except LLMClientConfigError:
            raise
        except Exception:
            logger.exception("Deck chunk generation failed", extra={"slide_range": slide_range})
            slides.extend(placeholder_slides(chunk.start_slide, chunk.end_slide))
            failed.append(slide_range)
            continue
        if index < len(chunks) - 1 and settings.DECK_CHUNK_DELAY_SECONDS > 0:
            time.sleep(settings.DECK_CHUNK_DELAY_SECONDS)
    return slides, failed


def generate_deck_structure(
    *,
    session: Session,
    user_id: str,
    project_id: UUID,
    slide_count: str = "55",
    transcript_id: Optional[UUID] = None,
    business_profile_id: Optional[UUID] = None,
    presentation_type: str = "webinar",
    llm: Optional[LLMClient] = None,
) -> DeckStructure:
    get_project_or_404(session=session, user_id=user_id, project_id=project_id)
    is_test = slide_count == str(TEST_SLIDE_COUNT)
    transcript_text, _ = load_generation_source(
        session=session,
        user_id=user_id,
        transcript_id=transcript_id,
        business_profile_id=business_profile_id,
    )
    framework = load_framework()
    client = llm or LLMClient()

    logger.info(
        "Generating deck structure",
        extra={"user_id": user_id, "project_id": str(project_id), "slide_count": slide_count, "test_mode": is_test},
    )
    failed_chunks: list[str] = []
    if is_test:
        slides = generate_slide_chunk(
            llm=client, transcript_text=transcript_text, chunk=extract_test_slides(framework)
        )
    else:
        chunks = split_framework_into_chunks(framework, settings.DECK_SLIDES_PER_CHUNK)
        slides, failed_chunks = generate_full_deck(llm=client, transcript_text=transcript_text, chunks=chunks)

    now = datetime.now(timezone.utc)
    title = f"{'Test Deck' if is_test else FRAMEWORK_NAME} - {now.strftime('%m/%d/%Y')}"
    deck = DeckStructuresRepository(session).create(
        user_id=user_id,
        project_id=project_id,
        intake_session_id=None if business_profile_id else transcript_id,
        template_type=DeckTemplateTypeEnum.test if is_test else DeckTemplateTypeEnum.masterclass,
        presentation_type=presentation_type,
        total_slides=len(slides),
        slides=slides,
        sections={},
        metadata_json={
            "title": title,
            "framework": FRAMEWORK_NAME,
            "generatedAt": now.isoformat(),
            "slideCount": len(slides),
            "mode": "test" if is_test else "full",
            "failedChunks": failed_chunks,
        },
    )
    logger.info("Deck structure saved", extra={"deck_id": str(deck.id), "slide_count": len(slides)})
    return deck


def renumber_slides(slides: list[dict[str, Any]]) -> list[dict[str, Any]]:
    renumbered = []
    for number, slide in enumerate(slides, start=1):
        if not isinstance(slide, dict):
            raise ValidationError("Each slide must be an object")
        renumbered.append({**slide, "slideNumber": number})
    return renumbered


def update_deck_slides(
    *, session: Session, user_id: str, deck_id: UUID, slides: list[dict[str, Any]]
) -> DeckStructure:
    renumbered = renumber_slides(slides)
    deck = DeckStructuresRepository(session).update(
        user_id=user_id,
        record_id=deck_id,
        slides=renumbered,
        total_slides=len(renumbered),
    )
    if not deck:
        raise NotFoundError("Deck structure not found")
    return deck
