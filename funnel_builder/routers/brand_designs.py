import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from funnel_builder.auth.dependencies import AuthContext, get_current_user
from funnel_builder.db.deps import get_session
from funnel_builder.db.repositories.assets import BrandDesignsRepository
from funnel_builder.schemas.brand_designs import BrandDesignCreateRequest
from funnel_builder.schemas.common import payload_columns, serialize, serialize_many
from funnel_builder.services.projects import get_project_or_404

router = APIRouter(prefix="/brand-designs", tags=["brand-designs"])
logger = logging.getLogger(__name__)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_brand_design(
    payload: BrandDesignCreateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    get_project_or_404(session=session, user_id=auth.user_id, project_id=payload.projectId)
    design = BrandDesignsRepository(session).create(
        user_id=auth.user_id,
        project_id=payload.projectId,
        **payload_columns(payload, exclude=("projectId",), drop_none=True),
    )
    logger.info("Brand design saved", extra={"brand_design_id": str(design.id), "project_id": str(payload.projectId)})
    return serialize(design)


@router.get("")
def list_brand_designs(
    project_id: UUID = Query(alias="projectId"),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> list:
    get_project_or_404(session=session, user_id=auth.user_id, project_id=project_id)
    return serialize_many(BrandDesignsRepository(session).list(user_id=auth.user_id, project_id=project_id))


@router.get("/latest")
def get_latest_brand_design(
    project_id: UUID = Query(alias="projectId"),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    get_project_or_404(session=session, user_id=auth.user_id, project_id=project_id)
    design = BrandDesignsRepository(session).latest(user_id=auth.user_id, project_id=project_id)
    if not design:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Brand design not found")
    return serialize(design)
