from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel


class AgentConfigFields(BaseModel):
    description: Optional[str] = None
    offerId: Optional[UUID] = None
    voiceConfig: Optional[dict[str, Any]] = None
    knowledgeBase: Optional[dict[str, Any]] = None
    outcomeGoals: Optional[dict[str, Any]] = None
    segmentationRules: Optional[dict[str, Any]] = None
    objectionHandling: Optional[dict[str, Any]] = None
    scoringConfig: Optional[dict[str, Any]] = None
    channelConfig: Optional[dict[str, Any]] = None
    complianceConfig: Optional[dict[str, Any]] = None


class AgentConfigCreateRequest(AgentConfigFields):
    projectId: UUID
    name: str


class AgentConfigUpdateRequest(AgentConfigFields):
    name: Optional[str] = None
    automationEnabled: Optional[bool] = None


class ProspectCreateRequest(BaseModel):
    projectId: UUID
    email: str
    firstName: Optional[str] = None
    phone: Optional[str] = None
    agentConfigId: Optional[UUID] = None
    timezone: Optional[str] = None
    locale: Optional[str] = None


class WatchUpdateRequest(BaseModel):
    watchPercentage: int
    watchDurationSeconds: Optional[int] = None
    isReplay: bool = False


class IntakeNotesRequest(BaseModel):
    challengeNotes: Optional[str] = None
    goalNotes: Optional[str] = None
    objectionHints: Optional[list[str]] = None


class OptOutRequest(BaseModel):
    reason: Optional[str] = None


class ConversionRequest(BaseModel):
    conversionValue: Optional[Decimal] = None
