from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel

from funnel_builder.db.enums import VideoProcessingStatusEnum, VideoProviderEnum


class PitchVideoCreateRequest(BaseModel):
    projectId: UUID
    videoUrl: str
    videoProvider: VideoProviderEnum = VideoProviderEnum.cloudflare
    videoId: Optional[str] = None
    videoDuration: Optional[int] = None
    thumbnailUrl: Optional[str] = None
    fileSize: Optional[int] = None
    metadata: Optional[dict[str, Any]] = None


class PitchVideoStatusUpdateRequest(BaseModel):
    processingStatus: VideoProcessingStatusEnum
    videoDuration: Optional[int] = None
    thumbnailUrl: Optional[str] = None
