import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from funnel_builder.auth.dependencies import AuthContext, get_current_user
from funnel_builder.db.deps import get_session
from funnel_builder.db.repositories.business_profiles import BusinessProfilesRepository
from funnel_builder.errors import ValidationError
from funnel_builder.llm.client import LLMClientConfigError
from funnel_builder.schemas.business_profiles import (
    BusinessProfileCreateRequest,
    PopulateFromIntakeRequest,
    SectionUpdateRequest,
)
from funnel_builder.schemas.common import serialize
from funnel_builder.services import business_profiles as profiles_service
from funnel_builder.services.projects import get_project_or_404

router = APIRouter(prefix="/business-profiles", tags=["business-profiles"])
logger = logging.getLogger(__name__)


@router.post("")
def get_or_create_business_profile(
    payload: BusinessProfileCreateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    profile = profiles_service.get_or_create_profile(
        session=session, user_id=auth.user_id, project_id=payload.projectId, source=payload.source
    )
    return serialize(profile)


@router.get("")
def get_project_business_profile(
    project_id: UUID = Query(alias="projectId"),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    get_project_or_404(session=session, user_id=auth.user_id, project_id=project_id)
    profile = BusinessProfilesRepository(session).get_by_project(user_id=auth.user_id, project_id=project_id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Business profile not found")
    return serialize(profile)


@router.get("/sections")
def list_sections() -> list:
    return [
        {
            "id": definition.section_id,
            "title": definition.title,
            "contextKey": definition.context_key,
            "fields": [{"key": field.key, "label": field.label, "type": field.kind} for field in definition.fields],
        }
        for definition in profiles_service.SECTION_DEFINITIONS.values()
    ]


@router.post("/populate-from-intake")
def populate_from_intake(
    payload: PopulateFromIntakeRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    try:
        profile = profiles_service.populate_from_intake(
            session=session,
            user_id=auth.user_id,
            project_id=payload.projectId,
            intake_session_id=payload.intakeSessionId,
        )
    except (ValidationError, LLMClientConfigError):
        raise
    except Exception as exc:
        logger.exception(
            "Business profile population failed",
            extra={"project_id": str(payload.projectId), "intake_session_id": str(payload.intakeSessionId)},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to populate business profile",
        ) from exc
    return {"success": True, "profile": serialize(profile)}


@router.get("/{profile_id}")
def get_business_profile(
    profile_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return serialize(profiles_service.get_profile_or_404(session=session, user_id=auth.user_id, profile_id=profile_id))


@router.patch("/{profile_id}/sections/{section_id}")
def update_business_profile_section(
    profile_id: UUID,
    section_id: str,
    payload: SectionUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    profile = profiles_service.update_section(
        session=session,
        user_id=auth.user_id,
        profile_id=profile_id,
        section_id=section_id,
        data=payload.data,
        ai_generated_fields=payload.aiGeneratedFields,
    )
    return serialize(profile)


@router.delete("/{profile_id}")
def delete_business_profile(
    profile_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    profiles_service.delete_profile(session=session, user_id=auth.user_id, profile_id=profile_id)
    return {"success": True}
