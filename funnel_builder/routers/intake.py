from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from funnel_builder.auth.dependencies import AuthContext, get_current_user
from funnel_builder.db.deps import get_session
from funnel_builder.db.repositories.intake import IntakeSessionsRepository
from funnel_builder.schemas.common import payload_columns, serialize, serialize_many
from funnel_builder.schemas.intake import IntakeSessionCreateRequest
from funnel_builder.services.intake import create_intake_session, get_intake_or_404
from funnel_builder.services.projects import get_project_or_404

router = APIRouter(prefix="/intake-sessions", tags=["intake"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_intake(
    payload: IntakeSessionCreateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    intake = create_intake_session(
        session=session,
        user_id=auth.user_id,
        project_id=payload.projectId,
        transcript_text=payload.transcriptText,
        **payload_columns(payload, exclude=("projectId", "transcriptText"), drop_none=True),
    )
    return serialize(intake)


@router.get("")
def list_intake_sessions(
    project_id: UUID = Query(alias="projectId"),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> list:
    get_project_or_404(session=session, user_id=auth.user_id, project_id=project_id)
    return serialize_many(IntakeSessionsRepository(session).list(user_id=auth.user_id, project_id=project_id))


@router.get("/{intake_session_id}")
def get_intake_session(
    intake_session_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return serialize(get_intake_or_404(session=session, user_id=auth.user_id, intake_session_id=intake_session_id))


@router.delete("/{intake_session_id}")
def delete_intake_session(
    intake_session_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if not IntakeSessionsRepository(session).delete(user_id=auth.user_id, record_id=intake_session_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transcript not found")
    return {"success": True}
