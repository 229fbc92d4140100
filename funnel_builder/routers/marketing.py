from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from funnel_builder.auth.dependencies import AuthContext, get_current_user
from funnel_builder.db.deps import get_session
from funnel_builder.db.enums import CampaignTypeEnum
from funnel_builder.db.repositories.assets import MarketingBriefsRepository
from funnel_builder.schemas.common import payload_columns, serialize, serialize_many
from funnel_builder.schemas.marketing import MarketingBriefCreateRequest, MarketingBriefUpdateRequest
from funnel_builder.services.projects import get_project_or_404

router = APIRouter(prefix="/marketing-briefs", tags=["marketing"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_marketing_brief(
    payload: MarketingBriefCreateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    get_project_or_404(session=session, user_id=auth.user_id, project_id=payload.projectId)
    if not payload.name.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Brief name is required")
    brief = MarketingBriefsRepository(session).create(
        user_id=auth.user_id,
        project_id=payload.projectId,
        **payload_columns(payload, exclude=("projectId",), drop_none=True),
    )
    return serialize(brief)


@router.get("")
def list_marketing_briefs(
    project_id: UUID = Query(alias="projectId"),
    campaign_type: Optional[CampaignTypeEnum] = Query(default=None, alias="campaignType"),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> list:
    get_project_or_404(session=session, user_id=auth.user_id, project_id=project_id)
    briefs = MarketingBriefsRepository(session).list(
        user_id=auth.user_id, project_id=project_id, campaign_type=campaign_type
    )
    return serialize_many(briefs)


@router.get("/{brief_id}")
def get_marketing_brief(
    brief_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    brief = MarketingBriefsRepository(session).get(user_id=auth.user_id, record_id=brief_id)
    if not brief:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Marketing brief not found")
    return serialize(brief)


@router.patch("/{brief_id}")
def update_marketing_brief(
    brief_id: UUID,
    payload: MarketingBriefUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if "name" in payload.model_fields_set and not (payload.name or "").strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Brief name is required")
    brief = MarketingBriefsRepository(session).update(
        user_id=auth.user_id,
        record_id=brief_id,
        **payload_columns(payload, drop_none=True),
    )
    if not brief:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Marketing brief not found")
    return serialize(brief)


@router.delete("/{brief_id}")
def delete_marketing_brief(
    brief_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if not MarketingBriefsRepository(session).delete(user_id=auth.user_id, record_id=brief_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Marketing brief not found")
    return {"success": True}
