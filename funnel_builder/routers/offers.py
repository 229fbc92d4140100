import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from funnel_builder.auth.dependencies import AuthContext, get_current_user
from funnel_builder.db.deps import get_session
from funnel_builder.db.repositories.offers import OffersRepository
from funnel_builder.errors import ValidationError
from funnel_builder.llm.client import LLMClientConfigError
from funnel_builder.schemas.common import payload_columns, serialize, serialize_many
from funnel_builder.schemas.offers import OfferGenerateRequest, OfferUpdateRequest
from funnel_builder.services import offers as offers_service
from funnel_builder.services.projects import get_project_or_404

router = APIRouter(prefix="/offers", tags=["offers"])
logger = logging.getLogger(__name__)


@router.post("/generate")
def generate_offer(
    payload: OfferGenerateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    try:
        offer = offers_service.generate_offer(
            session=session,
            user_id=auth.user_id,
            project_id=payload.projectId,
            transcript_id=payload.transcriptId,
            business_profile_id=payload.businessProfileId,
        )
    except (ValidationError, LLMClientConfigError):
        raise
    except Exception as exc:
        logger.exception("Offer generation failed", extra={"project_id": str(payload.projectId)})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate offer",
        ) from exc
    return {"success": True, "offer": serialize(offer)}


@router.get("")
def list_offers(
    project_id: UUID = Query(alias="projectId"),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> list:
    get_project_or_404(session=session, user_id=auth.user_id, project_id=project_id)
    return serialize_many(OffersRepository(session).list(user_id=auth.user_id, project_id=project_id))


@router.get("/{offer_id}")
def get_offer(
    offer_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    offer = OffersRepository(session).get(user_id=auth.user_id, record_id=offer_id)
    if not offer:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Offer not found")
    return serialize(offer)


@router.patch("/{offer_id}")
def update_offer(
    offer_id: UUID,
    payload: OfferUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    offer = offers_service.update_offer(
        session=session, user_id=auth.user_id, offer_id=offer_id, **payload_columns(payload)
    )
    return serialize(offer)


@router.delete("/{offer_id}")
def delete_offer(
    offer_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if not OffersRepository(session).delete(user_id=auth.user_id, record_id=offer_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Offer not found")
    return {"success": True}
