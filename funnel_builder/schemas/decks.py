from __future__ import annotations

from typing import Any, Literal, Optional
from uuid import UUID

from pydantic import BaseModel

from funnel_builder.db.enums import GenerationStatusEnum


class DeckStructureGenerateRequest(BaseModel):
    projectId: UUID
    transcriptId: Optional[UUID] = None
    businessProfileId: Optional[UUID] = None
    slideCount: Literal["5", "55"] = "55"
    presentationType: str = "webinar"


class DeckSlidesUpdateRequest(BaseModel):
    slides: list[dict[str, Any]]


class PresentationCreateRequest(BaseModel):
    deckStructureId: UUID
    title: Optional[str] = None
    themeName: Optional[str] = None


class PresentationStatusUpdateRequest(BaseModel):
    generationStatus: GenerationStatusEnum
    deckUrl: Optional[str] = None
    deckData: Optional[dict[str, Any]] = None
    errorMessage: Optional[str] = None
