from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from funnel_builder.auth.dependencies import AuthContext, get_current_user
from funnel_builder.db.deps import get_session
from funnel_builder.db.enums import ProspectSegmentEnum
from funnel_builder.db.repositories.followup import (
    FollowupAgentConfigsRepository,
    FollowupProspectsRepository,
    ProspectScoreHistoryRepository,
)
from funnel_builder.schemas.common import payload_columns, serialize, serialize_many
from funnel_builder.schemas.followup import (
    AgentConfigCreateRequest,
    AgentConfigUpdateRequest,
    ConversionRequest,
    IntakeNotesRequest,
    OptOutRequest,
    ProspectCreateRequest,
    WatchUpdateRequest,
)
from funnel_builder.services import followup as followup_service
from funnel_builder.services.projects import get_project_or_404

router = APIRouter(prefix="/followup", tags=["followup"])


# ---------- agent configs ----------


@router.post("/agent-configs", status_code=status.HTTP_201_CREATED)
def create_agent_config(
    payload: AgentConfigCreateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    config = followup_service.create_agent_config(
        session=session,
        user_id=auth.user_id,
        project_id=payload.projectId,
        **payload_columns(payload, exclude=("projectId",)),
    )
    return serialize(config)


@router.get("/agent-configs")
def list_agent_configs(
    project_id: UUID = Query(alias="projectId"),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> list:
    get_project_or_404(session=session, user_id=auth.user_id, project_id=project_id)
    return serialize_many(FollowupAgentConfigsRepository(session).list(user_id=auth.user_id, project_id=project_id))


@router.get("/agent-configs/{config_id}")
def get_agent_config(
    config_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return serialize(followup_service.get_agent_config_or_404(session=session, user_id=auth.user_id, config_id=config_id))


@router.patch("/agent-configs/{config_id}")
def update_agent_config(
    config_id: UUID,
    payload: AgentConfigUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    config = followup_service.update_agent_config(
        session=session, user_id=auth.user_id, config_id=config_id, **payload_columns(payload)
    )
    return serialize(config)


@router.post("/agent-configs/{config_id}/activate")
def activate_agent_config(
    config_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    config = followup_service.activate_agent_config(session=session, user_id=auth.user_id, config_id=config_id)
    return serialize(config)


@router.delete("/agent-configs/{config_id}")
def delete_agent_config(
    config_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if not FollowupAgentConfigsRepository(session).delete(user_id=auth.user_id, record_id=config_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Agent config not found")
    return {"success": True}


# ---------- prospects ----------


@router.post("/prospects", status_code=status.HTTP_201_CREATED)
def create_prospect(
    payload: ProspectCreateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    prospect = followup_service.create_prospect(
        session=session,
        user_id=auth.user_id,
        project_id=payload.projectId,
        **payload_columns(payload, exclude=("projectId",)),
    )
    return serialize(prospect)


@router.get("/prospects")
def list_prospects(
    project_id: UUID = Query(alias="projectId"),
    segment: Optional[ProspectSegmentEnum] = Query(default=None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> list:
    get_project_or_404(session=session, user_id=auth.user_id, project_id=project_id)
    prospects = FollowupProspectsRepository(session).list(user_id=auth.user_id, project_id=project_id, segment=segment)
    return serialize_many(prospects)


@router.get("/prospects/{prospect_id}")
def get_prospect(
    prospect_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return serialize(followup_service.get_prospect_or_404(session=session, user_id=auth.user_id, prospect_id=prospect_id))


@router.post("/prospects/{prospect_id}/watch")
def update_watch_data(
    prospect_id: UUID,
    payload: WatchUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    prospect = followup_service.update_watch_data(
        session=session,
        user_id=auth.user_id,
        prospect_id=prospect_id,
        watch_percentage=payload.watchPercentage,
        watch_duration_seconds=payload.watchDurationSeconds,
        is_replay=payload.isReplay,
    )
    return serialize(prospect)


@router.patch("/prospects/{prospect_id}/intake-notes")
def update_intake_notes(
    prospect_id: UUID,
    payload: IntakeNotesRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    prospect = followup_service.update_intake_notes(
        session=session,
        user_id=auth.user_id,
        prospect_id=prospect_id,
        challenge_notes=payload.challengeNotes,
        goal_notes=payload.goalNotes,
        objection_hints=payload.objectionHints,
    )
    return serialize(prospect)


@router.post("/prospects/{prospect_id}/offer-click")
def record_offer_click(
    prospect_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    prospect = followup_service.record_offer_click(session=session, user_id=auth.user_id, prospect_id=prospect_id)
    return serialize(prospect)


@router.post("/prospects/{prospect_id}/opt-out")
def opt_out_prospect(
    prospect_id: UUID,
    payload: OptOutRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    prospect = followup_service.opt_out_prospect(
        session=session, user_id=auth.user_id, prospect_id=prospect_id, reason=payload.reason
    )
    return serialize(prospect)


@router.post("/prospects/{prospect_id}/convert")
def mark_converted(
    prospect_id: UUID,
    payload: ConversionRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    prospect = followup_service.mark_converted(
        session=session,
        user_id=auth.user_id,
        prospect_id=prospect_id,
        conversion_value=payload.conversionValue,
    )
    return serialize(prospect)


@router.post("/prospects/{prospect_id}/recalculate")
def recalculate_score(
    prospect_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    prospect = followup_service.recalculate_score(session=session, user_id=auth.user_id, prospect_id=prospect_id)
    return serialize(prospect)


@router.get("/prospects/{prospect_id}/score-history")
def get_score_history(
    prospect_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> list:
    prospect = followup_service.get_prospect_or_404(session=session, user_id=auth.user_id, prospect_id=prospect_id)
    return serialize_many(ProspectScoreHistoryRepository(session).list(prospect_id=prospect.id))
