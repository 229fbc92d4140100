from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from funnel_builder.auth.dependencies import AuthContext, get_current_user
from funnel_builder.db.deps import get_session
from funnel_builder.db.repositories.decks import PresentationsRepository
from funnel_builder.schemas.common import serialize, serialize_many
from funnel_builder.schemas.decks import PresentationCreateRequest, PresentationStatusUpdateRequest
from funnel_builder.services.presentations import create_presentation, update_presentation_status
from funnel_builder.services.projects import get_project_or_404

router = APIRouter(prefix="/presentations", tags=["presentations"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_presentation_route(
    payload: PresentationCreateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    presentation = create_presentation(
        session=session,
        user_id=auth.user_id,
        deck_structure_id=payload.deckStructureId,
        title=payload.title,
        theme_name=payload.themeName,
    )
    return serialize(presentation)


@router.get("")
def list_presentations(
    project_id: UUID = Query(alias="projectId"),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> list:
    get_project_or_404(session=session, user_id=auth.user_id, project_id=project_id)
    return serialize_many(PresentationsRepository(session).list(user_id=auth.user_id, project_id=project_id))


@router.get("/{presentation_id}")
def get_presentation(
    presentation_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    presentation = PresentationsRepository(session).get(user_id=auth.user_id, record_id=presentation_id)
    if not presentation:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Presentation not found")
    return serialize(presentation)


@router.patch("/{presentation_id}/status")
def update_presentation_status_route(
    presentation_id: UUID,
    payload: PresentationStatusUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    presentation = update_presentation_status(
        session=session,
        user_id=auth.user_id,
        presentation_id=presentation_id,
        generation_status=payload.generationStatus,
        deck_url=payload.deckUrl,
        deck_data=payload.deckData,
        error_message=payload.errorMessage,
    )
    return serialize(presentation)
