from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel


class BrandDesignCreateRequest(BaseModel):
    projectId: UUID
    primaryColor: str
    brandName: Optional[str] = None
    secondaryColor: Optional[str] = None
    accentColor: Optional[str] = None
    backgroundColor: Optional[str] = None
    textColor: Optional[str] = None
    headingFont: Optional[str] = None
    bodyFont: Optional[str] = None
    designStyle: Optional[str] = None
    personalityTraits: Optional[dict[str, Any]] = None
    isAiGenerated: bool = False
