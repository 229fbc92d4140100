from __future__ import annotations

from funnel_builder.db.models import IntakeSession
from funnel_builder.db.repositories.base import ProjectScopedRepository


class IntakeSessionsRepository(ProjectScopedRepository):
    model = IntakeSession
