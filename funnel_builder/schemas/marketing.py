from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel

from funnel_builder.db.enums import CampaignTypeEnum, MarketingBriefStatusEnum, MarketingSpaceEnum


class MarketingBriefFields(BaseModel):
    goal: Optional[str] = None
    topic: Optional[str] = None
    icpDescription: Optional[str] = None
    toneConstraints: Optional[str] = None
    transformationFocus: Optional[str] = None
    funnelEntryPoint: Optional[str] = None
    targetPlatforms: Optional[list[str]] = None
    preferredFramework: Optional[str] = None
    generationConfig: Optional[dict[str, Any]] = None
    space: Optional[MarketingSpaceEnum] = None


class MarketingBriefCreateRequest(MarketingBriefFields):
    projectId: UUID
    name: str
    campaignType: CampaignTypeEnum = CampaignTypeEnum.organic


class MarketingBriefUpdateRequest(MarketingBriefFields):
    name: Optional[str] = None
    campaignType: Optional[CampaignTypeEnum] = None
    status: Optional[MarketingBriefStatusEnum] = None
