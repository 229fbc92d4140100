from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from funnel_builder.auth.dependencies import AuthContext, get_current_user
from funnel_builder.db.deps import get_session
from funnel_builder.db.enums import PageKindEnum
from funnel_builder.db.repositories.pages import FunnelPagesRepository
from funnel_builder.schemas.common import payload_columns, serialize, serialize_many
from funnel_builder.schemas.pages import (
    PageCreateRequest,
    PagePublishRequest,
    PageSlugUpdateRequest,
    PageUpdateRequest,
)
from funnel_builder.services import pages as pages_service
from funnel_builder.services.projects import get_project_or_404

router = APIRouter(prefix="/pages", tags=["pages"])


@router.post("/{kind}", status_code=status.HTTP_201_CREATED)
def create_page(
    kind: PageKindEnum,
    payload: PageCreateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    page = pages_service.create_page(
        session=session,
        user_id=auth.user_id,
        project_id=payload.projectId,
        kind=kind,
        vanity_slug=payload.vanitySlug,
        **payload_columns(payload, exclude=("projectId", "vanitySlug"), drop_none=True),
    )
    return serialize(page)


@router.get("/{kind}")
def list_pages(
    kind: PageKindEnum,
    project_id: UUID = Query(alias="projectId"),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> list:
    get_project_or_404(session=session, user_id=auth.user_id, project_id=project_id)
    return serialize_many(FunnelPagesRepository(session, kind).list(user_id=auth.user_id, project_id=project_id))


@router.get("/{kind}/{page_id}")
def get_page(
    kind: PageKindEnum,
    page_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return serialize(pages_service.get_page_or_404(session=session, user_id=auth.user_id, kind=kind, page_id=page_id))


@router.patch("/{kind}/{page_id}")
def update_page(
    kind: PageKindEnum,
    page_id: UUID,
    payload: PageUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    page = pages_service.update_page(
        session=session,
        user_id=auth.user_id,
        kind=kind,
        page_id=page_id,
        **payload_columns(payload, drop_none=True),
    )
    return serialize(page)


@router.put("/{kind}/{page_id}/slug")
def update_page_slug(
    kind: PageKindEnum,
    page_id: UUID,
    payload: PageSlugUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    page = pages_service.update_page_slug(
        session=session, user_id=auth.user_id, kind=kind, page_id=page_id, slug=payload.slug
    )
    return {"success": True, "slug": page.vanity_slug}


@router.post("/{kind}/{page_id}/publish")
def publish_page(
    kind: PageKindEnum,
    page_id: UUID,
    payload: PagePublishRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    page = pages_service.set_page_published(
        session=session, user_id=auth.user_id, kind=kind, page_id=page_id, published=payload.isPublished
    )
    return serialize(page)


@router.delete("/{kind}/{page_id}")
def delete_page(
    kind: PageKindEnum,
    page_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if not FunnelPagesRepository(session, kind).delete(user_id=auth.user_id, record_id=page_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{kind.value.capitalize()} page not found")
    return {"success": True}
