from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel

from funnel_builder.db.enums import OfferTypeEnum, PurchasePathwayEnum


class OfferGenerateRequest(BaseModel):
    projectId: UUID
    transcriptId: Optional[UUID] = None
    businessProfileId: Optional[UUID] = None


class OfferUpdateRequest(BaseModel):
    name: Optional[str] = None
    tagline: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = None
    currency: Optional[str] = None
    offerType: Optional[OfferTypeEnum] = None
    features: Optional[list[Any]] = None
    bonuses: Optional[list[Any]] = None
    guarantee: Optional[str] = None
    promise: Optional[str] = None
    person: Optional[str] = None
    process: Optional[str] = None
    purpose: Optional[str] = None
    pathway: Optional[PurchasePathwayEnum] = None
    displayOrder: Optional[int] = None
    metadata: Optional[dict[str, Any]] = None
