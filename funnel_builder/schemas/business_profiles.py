from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel

from funnel_builder.db.enums import BusinessProfileSourceEnum


class BusinessProfileCreateRequest(BaseModel):
    projectId: UUID
    source: BusinessProfileSourceEnum = BusinessProfileSourceEnum.wizard


class SectionUpdateRequest(BaseModel):
    data: dict[str, Any]
    aiGeneratedFields: Optional[list[str]] = None


class PopulateFromIntakeRequest(BaseModel):
    projectId: UUID
    intakeSessionId: UUID
