from __future__ import annotations

import logging
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from funnel_builder.db.enums import GenerationStatusEnum
from funnel_builder.db.models import Presentation
from funnel_builder.db.repositories.decks import DeckStructuresRepository, PresentationsRepository
from funnel_builder.errors import NotFoundError

logger = logging.getLogger(__name__)


def create_presentation(
    *,
    session: Session,
    user_id: str,
    deck_structure_id: UUID,
    title: Optional[str] = None,
    theme_name: Optional[str] = None,
) -> Presentation:
    deck = DeckStructuresRepository(session).get(user_id=user_id, record_id=deck_structure_id)
    if not deck:
        raise NotFoundError("Deck structure not found")
    presentation = PresentationsRepository(session).create(
        user_id=user_id,
        project_id=deck.funnel_project_id,
        deck_structure_id=deck.id,
        title=(title or "").strip() or (deck.metadata_json or {}).get("title") or "Untitled Presentation",
        theme_name=theme_name,
        generation_status=GenerationStatusEnum.pending,
    )
    logger.info(
        "Presentation created",
        extra={"presentation_id": str(presentation.id), "deck_structure_id": str(deck.id)},
    )
    return presentation


def update_presentation_status(
    *,
    session: Session,
    user_id: str,
    presentation_id: UUID,
    generation_status: GenerationStatusEnum,
    **fields: Any,
) -> Presentation:
    updates = {key: value for key, value in fields.items() if value is not None}
    if generation_status != GenerationStatusEnum.failed:
        updates["error_message"] = None
    presentation = PresentationsRepository(session).update(
        user_id=user_id,
        record_id=presentation_id,
        generation_status=generation_status,
        **updates,
    )
    if not presentation:
        raise NotFoundError("Presentation not found")
    return presentation
