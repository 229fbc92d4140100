from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from funnel_builder.db.models import IntakeSession
from funnel_builder.db.repositories.intake import IntakeSessionsRepository
from funnel_builder.errors import NotFoundError, ValidationError
from funnel_builder.services.projects import get_project_or_404

logger = logging.getLogger(__name__)


def create_intake_session(
    *, session: Session, user_id: str, project_id: UUID, transcript_text: str, **fields: Any
) -> IntakeSession:
    get_project_or_404(session=session, user_id=user_id, project_id=project_id)
    if not (transcript_text or "").strip():
        raise ValidationError("Transcript text is required")
    intake = IntakeSessionsRepository(session).create(
        user_id=user_id,
        project_id=project_id,
        transcript_text=transcript_text.strip(),
        **{key: value for key, value in fields.items() if value is not None},
    )
    logger.info(
        "Intake session saved",
        extra={
            "intake_session_id": str(intake.id),
            "project_id": str(project_id),
            "intake_method": intake.intake_method.value,
            "transcript_length": len(intake.transcript_text),
        },
    )
    return intake


def get_intake_or_404(*, session: Session, user_id: str, intake_session_id: UUID) -> IntakeSession:
    intake = IntakeSessionsRepository(session).get(user_id=user_id, record_id=intake_session_id)
    if not intake:
        raise NotFoundError("Transcript not found")
    return intake
