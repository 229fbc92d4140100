from __future__ import annotations

from funnel_builder.db.models import DeckStructure, Presentation
from funnel_builder.db.repositories.base import ProjectScopedRepository


class DeckStructuresRepository(ProjectScopedRepository):
    model = DeckStructure


class PresentationsRepository(ProjectScopedRepository):
    model = Presentation
