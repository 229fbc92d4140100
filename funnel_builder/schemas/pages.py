from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel

from funnel_builder.db.enums import PurchasePathwayEnum


class PageFields(BaseModel):
    headline: Optional[str] = None
    subheadline: Optional[str] = None
    contentSections: Optional[dict[str, Any]] = None
    ctaConfig: Optional[dict[str, Any]] = None
    metadata: Optional[dict[str, Any]] = None
    offerId: Optional[UUID] = None

    # watch
    pitchVideoId: Optional[UUID] = None
    # enrollment
    pageType: Optional[PurchasePathwayEnum] = None
    # checkout
    orderSummaryConfig: Optional[dict[str, Any]] = None
    orderBumpConfig: Optional[dict[str, Any]] = None
    paymentConfig: Optional[dict[str, Any]] = None
    trustElements: Optional[dict[str, Any]] = None
    successRedirectUrl: Optional[str] = None
    # upsell
    upsellNumber: Optional[int] = None
    offerPresentation: Optional[dict[str, Any]] = None
    priceCents: Optional[int] = None
    compareAtPriceCents: Optional[int] = None
    isDownsell: Optional[bool] = None
    acceptButtonText: Optional[str] = None
    declineButtonText: Optional[str] = None
    acceptRedirectUrl: Optional[str] = None
    declineRedirectUrl: Optional[str] = None


class PageCreateRequest(PageFields):
    projectId: UUID
    vanitySlug: Optional[str] = None


class PageUpdateRequest(PageFields):
    pass


class PageSlugUpdateRequest(BaseModel):
    slug: str


class PagePublishRequest(BaseModel):
    isPublished: bool
