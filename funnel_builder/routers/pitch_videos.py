from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from funnel_builder.auth.dependencies import AuthContext, get_current_user
from funnel_builder.db.deps import get_session
from funnel_builder.db.repositories.assets import PitchVideosRepository
from funnel_builder.schemas.common import payload_columns, serialize, serialize_many
from funnel_builder.schemas.pitch_videos import PitchVideoCreateRequest, PitchVideoStatusUpdateRequest
from funnel_builder.services.projects import get_project_or_404

router = APIRouter(prefix="/pitch-videos", tags=["pitch-videos"])


@router.post("", status_code=status.HTTP_201_CREATED)
def register_pitch_video(
    payload: PitchVideoCreateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    get_project_or_404(session=session, user_id=auth.user_id, project_id=payload.projectId)
    if not payload.videoUrl.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="videoUrl is required")
    video = PitchVideosRepository(session).create(
        user_id=auth.user_id,
        project_id=payload.projectId,
        **payload_columns(payload, exclude=("projectId",), drop_none=True),
    )
    return serialize(video)


@router.get("")
def list_pitch_videos(
    project_id: UUID = Query(alias="projectId"),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> list:
    get_project_or_404(session=session, user_id=auth.user_id, project_id=project_id)
    return serialize_many(PitchVideosRepository(session).list(user_id=auth.user_id, project_id=project_id))


@router.patch("/{video_id}/status")
def update_pitch_video_status(
    video_id: UUID,
    payload: PitchVideoStatusUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    video = PitchVideosRepository(session).update(
        user_id=auth.user_id,
        record_id=video_id,
        **payload_columns(payload, drop_none=True),
    )
    if not video:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pitch video not found")
    return serialize(video)


@router.delete("/{video_id}")
def delete_pitch_video(
    video_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if not PitchVideosRepository(session).delete(user_id=auth.user_id, record_id=video_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pitch video not found")
    return {"success": True}
