import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from funnel_builder.auth.dependencies import AuthContext, get_current_user
from funnel_builder.db.deps import get_session
from funnel_builder.db.repositories.decks import DeckStructuresRepository
from funnel_builder.errors import ValidationError
from funnel_builder.llm.client import LLMClientConfigError
from funnel_builder.schemas.common import serialize, serialize_many
from funnel_builder.schemas.decks import DeckSlidesUpdateRequest, DeckStructureGenerateRequest
from funnel_builder.services import deck_structure as deck_service
from funnel_builder.services.projects import get_project_or_404

router = APIRouter(prefix="/deck-structures", tags=["deck-structures"])
logger = logging.getLogger(__name__)


@router.post("/generate")
def generate_deck_structure(
    payload: DeckStructureGenerateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    try:
        deck = deck_service.generate_deck_structure(
            session=session,
            user_id=auth.user_id,
            project_id=payload.projectId,
            slide_count=payload.slideCount,
            transcript_id=payload.transcriptId,
            business_profile_id=payload.businessProfileId,
            presentation_type=payload.presentationType,
        )
    except (ValidationError, LLMClientConfigError):
        raise
    except Exception as exc:
        logger.exception(
            "Deck structure generation failed",
            extra={"project_id": str(payload.projectId), "slide_count": payload.slideCount},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate deck structure",
        ) from exc
    return {"success": True, "deckStructure": serialize(deck)}


@router.get("")
def list_deck_structures(
    project_id: UUID = Query(alias="projectId"),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> list:
    get_project_or_404(session=session, user_id=auth.user_id, project_id=project_id)
    return serialize_many(DeckStructuresRepository(session).list(user_id=auth.user_id, project_id=project_id))


@router.get("/{deck_id}")
def get_deck_structure(
    deck_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    deck = DeckStructuresRepository(session).get(user_id=auth.user_id, record_id=deck_id)
    if not deck:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Deck structure not found")
    return serialize(deck)


@router.patch("/{deck_id}/slides")
def update_deck_slides(
    deck_id: UUID,
    payload: DeckSlidesUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    deck = deck_service.update_deck_slides(
        session=session, user_id=auth.user_id, deck_id=deck_id, slides=payload.slides
    )
    return serialize(deck)


@router.delete("/{deck_id}")
def delete_deck_structure(
    deck_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if not DeckStructuresRepository(session).delete(user_id=auth.user_id, record_id=deck_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Deck structure not found")
    return {"success": True}
