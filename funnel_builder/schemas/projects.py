from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel


class ProjectCreateRequest(BaseModel):
    name: str
    description: Optional[str] = None
    targetAudience: Optional[str] = None
    businessNiche: Optional[str] = None


class ProjectRenameRequest(BaseModel):
    name: str


class ProjectStepUpdateRequest(BaseModel):
    step: int


class FunnelMapConfigRequest(BaseModel):
    draftsGenerated: Optional[bool] = None
    isStep2Complete: Optional[bool] = None
    data: Optional[dict[str, Any]] = None
