from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel

from funnel_builder.db.enums import IntakeMethodEnum


class IntakeSessionCreateRequest(BaseModel):
    projectId: UUID
    transcriptText: str
    intakeMethod: IntakeMethodEnum = IntakeMethodEnum.voice
    callId: Optional[str] = None
    extractedData: Optional[dict[str, Any]] = None
    callDuration: Optional[int] = None
    callStatus: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
