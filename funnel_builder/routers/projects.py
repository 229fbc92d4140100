from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from funnel_builder.auth.dependencies import AuthContext, get_current_user
from funnel_builder.db.deps import get_session
from funnel_builder.db.repositories.projects import FunnelMapConfigsRepository, FunnelProjectsRepository
from funnel_builder.schemas.common import payload_columns, serialize, serialize_many
from funnel_builder.schemas.projects import (
    FunnelMapConfigRequest,
    ProjectCreateRequest,
    ProjectRenameRequest,
    ProjectStepUpdateRequest,
)
from funnel_builder.services import projects as projects_service
from funnel_builder.services.completion import get_project_progress

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("")
def list_projects(
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> list:
    return serialize_many(FunnelProjectsRepository(session).list(user_id=auth.user_id))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_project(
    payload: ProjectCreateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    project = projects_service.create_project(
        session=session,
        user_id=auth.user_id,
        name=payload.name,
        **payload_columns(payload, exclude=("name",), drop_none=True),
    )
    return serialize(project)


@router.get("/trash")
def list_trash(
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> list:
    projects = FunnelProjectsRepository(session).list_deleted(user_id=auth.user_id)
    return [
        {**serialize(project), "daysUntilPurge": projects_service.days_until_purge(project)}
        for project in projects
    ]


@router.post("/trash/purge")
def purge_trash(
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    purged = projects_service.purge_expired_trash(session=session, user_id=auth.user_id)
    return {"success": True, "purged": purged}


@router.get("/{project_id}")
def get_project(
    project_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    project = projects_service.get_project_or_404(session=session, user_id=auth.user_id, project_id=project_id)
    return serialize(project)


@router.patch("/{project_id}/name")
def rename_project(
    project_id: UUID,
    payload: ProjectRenameRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    project = projects_service.rename_project(
        session=session, user_id=auth.user_id, project_id=project_id, name=payload.name
    )
    return {"success": True, "slug": project.slug, "project": serialize(project)}


@router.patch("/{project_id}/step")
def update_step(
    project_id: UUID,
    payload: ProjectStepUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    project = projects_service.update_project_step(
        session=session, user_id=auth.user_id, project_id=project_id, step=payload.step
    )
    return serialize(project)


@router.post("/{project_id}/publish")
def publish_project(
    project_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    project = projects_service.publish_project(session=session, user_id=auth.user_id, project_id=project_id)
    return {"success": True, "project": serialize(project)}


@router.post("/{project_id}/unpublish")
def unpublish_project(
    project_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    project = projects_service.unpublish_project(session=session, user_id=auth.user_id, project_id=project_id)
    return {"success": True, "project": serialize(project)}


@router.delete("/{project_id}")
def trash_project(
    project_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    projects_service.soft_delete_project(session=session, user_id=auth.user_id, project_id=project_id)
    return {"success": True}


@router.post("/{project_id}/restore")
def restore_project(
    project_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    project, slug_changed = projects_service.restore_project(
        session=session, user_id=auth.user_id, project_id=project_id
    )
    return {"success": True, "slugChanged": slug_changed, "project": serialize(project)}


@router.delete("/{project_id}/permanent")
def delete_project_permanently(
    project_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    projects_service.permanently_delete_project(session=session, user_id=auth.user_id, project_id=project_id)
    return {"success": True}


@router.get("/{project_id}/progress")
def get_progress(
    project_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    projects_service.get_project_or_404(session=session, user_id=auth.user_id, project_id=project_id)
    return get_project_progress(session=session, user_id=auth.user_id, project_id=project_id)


@router.get("/{project_id}/funnel-map")
def get_funnel_map(
    project_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    projects_service.get_project_or_404(session=session, user_id=auth.user_id, project_id=project_id)
    config = FunnelMapConfigsRepository(session).get_for_project(user_id=auth.user_id, project_id=project_id)
    return serialize(config) if config else None


@router.put("/{project_id}/funnel-map")
def save_funnel_map(
    project_id: UUID,
    payload: FunnelMapConfigRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    config = projects_service.save_funnel_map_config(
        session=session,
        user_id=auth.user_id,
        project_id=project_id,
        drafts_generated=payload.draftsGenerated,
        is_step2_complete=payload.isStep2Complete,
        data=payload.data,
    )
    return serialize(config)
