from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from funnel_builder.config import settings
from funnel_builder.db.enums import FunnelProjectStatusEnum
from funnel_builder.db.models import FunnelMapConfig, FunnelProject
from funnel_builder.db.repositories.pages import set_project_pages_published
from funnel_builder.db.repositories.projects import FunnelMapConfigsRepository, FunnelProjectsRepository
from funnel_builder.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

MIN_WIZARD_STEP = 1
MAX_WIZARD_STEP = 17


def get_project_or_404(
    *, session: Session, user_id: str, project_id: UUID, include_deleted: bool = False
) -> FunnelProject:
    project = FunnelProjectsRepository(session).get(
        user_id=user_id, project_id=project_id, include_deleted=include_deleted
    )
    if not project:
        raise NotFoundError("Funnel not found")
    return project


def _clean_name(name: Optional[str]) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Funnel name cannot be empty")
    return cleaned


def _ensure_unique_name(
    repo: FunnelProjectsRepository, *, user_id: str, name: str, exclude_project_id: Optional[UUID] = None
) -> None:
    if repo.name_in_use(user_id=user_id, name=name, exclude_project_id=exclude_project_id):
        raise ConflictError(f'You already have a funnel named "{name}"')


def create_project(*, session: Session, user_id: str, name: str, **fields: Any) -> FunnelProject:
    repo = FunnelProjectsRepository(session)
    cleaned = _clean_name(name)
    _ensure_unique_name(repo, user_id=user_id, name=cleaned)
    project = repo.create(user_id=user_id, name=cleaned, **fields)
    logger.info("Funnel project created", extra={"project_id": str(project.id), "user_id": user_id})
    return project


def rename_project(*, session: Session, user_id: str, project_id: UUID, name: str) -> FunnelProject:
    repo = FunnelProjectsRepository(session)
    project = get_project_or_404(session=session, user_id=user_id, project_id=project_id)
    cleaned = _clean_name(name)
    _ensure_unique_name(repo, user_id=user_id, name=cleaned, exclude_project_id=project.id)
    slug = repo.generate_unique_slug(user_id=user_id, desired=cleaned, exclude_project_id=project.id)
    return repo.update(user_id=user_id, project_id=project.id, name=cleaned, slug=slug)


def update_project_step(*, session: Session, user_id: str, project_id: UUID, step: int) -> FunnelProject:
    if step < MIN_WIZARD_STEP or step > MAX_WIZARD_STEP:
        raise ValidationError(f"Step must be between {MIN_WIZARD_STEP} and {MAX_WIZARD_STEP}")
    project = get_project_or_404(session=session, user_id=user_id, project_id=project_id)
    return FunnelProjectsRepository(session).update(user_id=user_id, project_id=project.id, current_step=step)


def _set_published(*, session: Session, user_id: str, project_id: UUID, published: bool) -> FunnelProject:
    project = get_project_or_404(session=session, user_id=user_id, project_id=project_id)
    set_project_pages_published(session, user_id=user_id, project_id=project.id, is_published=published)
    project.status = FunnelProjectStatusEnum.active if published else FunnelProjectStatusEnum.draft
    session.commit()
    session.refresh(project)
    logger.info(
        "Funnel publish state changed",
        extra={"project_id": str(project.id), "published": published},
    )
    return project


def publish_project(*, session: Session, user_id: str, project_id: UUID) -> FunnelProject:
    return _set_published(session=session, user_id=user_id, project_id=project_id, published=True)


def unpublish_project(*, session: Session, user_id: str, project_id: UUID) -> FunnelProject:
    return _set_published(session=session, user_id=user_id, project_id=project_id, published=False)


def soft_delete_project(*, session: Session, user_id: str, project_id: UUID) -> FunnelProject:
    project = get_project_or_404(session=session, user_id=user_id, project_id=project_id)
    if project.status == FunnelProjectStatusEnum.active:
        set_project_pages_published(session, user_id=user_id, project_id=project.id, is_published=False)
    project.deleted_at = datetime.now(timezone.utc)
    project.status = FunnelProjectStatusEnum.draft
    session.commit()
    session.refresh(project)
    logger.info("Funnel moved to trash", extra={"project_id": str(project.id), "user_id": user_id})
    return project


def restore_project(*, session: Session, user_id: str, project_id: UUID) -> tuple[FunnelProject, bool]:
    """Bring a project back from trash. Returns the project and whether its slug had to change."""
    repo = FunnelProjectsRepository(session)
    project = repo.get(user_id=user_id, project_id=project_id, include_deleted=True)
    if not project or project.deleted_at is None:
        raise NotFoundError("Funnel not found in trash")

    slug_changed = False
    if repo.slug_in_use(user_id=user_id, slug=project.slug, exclude_project_id=project.id):
        project.slug = f"{project.slug}-{int(datetime.now(timezone.utc).timestamp() * 1000)}"
        slug_changed = True
    project.deleted_at = None
    session.commit()
    session.refresh(project)
    logger.info(
        "Funnel restored from trash",
        extra={"project_id": str(project.id), "slug_changed": slug_changed},
    )
    return project, slug_changed


def permanently_delete_project(*, session: Session, user_id: str, project_id: UUID) -> None:
    project = get_project_or_404(session=session, user_id=user_id, project_id=project_id, include_deleted=True)
    if project.deleted_at is None:
        raise ValidationError("Funnel must be in trash before permanent deletion")
    FunnelProjectsRepository(session).delete_permanently(project=project)
    logger.info("Funnel permanently deleted", extra={"project_id": str(project_id), "user_id": user_id})


def purge_expired_trash(
    *, session: Session, user_id: Optional[str] = None, now: Optional[datetime] = None
) -> int:
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=settings.TRASH_RETENTION_DAYS)
    repo = FunnelProjectsRepository(session)
    expired = repo.list_deleted_before(cutoff=cutoff, user_id=user_id)
    for project in expired:
        repo.delete_permanently(project=project)
    if expired:
        logger.info("Purged expired trash", extra={"count": len(expired), "cutoff": cutoff.isoformat()})
    return len(expired)


def days_until_purge(project: FunnelProject, *, now: Optional[datetime] = None) -> Optional[int]:
    if project.deleted_at is None:
        return None
    deleted_at = project.deleted_at
    if deleted_at.tzinfo is None:
        deleted_at = deleted_at.replace(tzinfo=timezone.utc)
    remaining = deleted_at + timedelta(days=settings.TRASH_RETENTION_DAYS) - (now or datetime.now(timezone.utc))
    return max(0, remaining.days)


def save_funnel_map_config(
    *,
    session: Session,
    user_id: str,
    project_id: UUID,
    drafts_generated: Optional[bool] = None,
    is_step2_complete: Optional[bool] = None,
    data: Optional[dict[str, Any]] = None,
) -> FunnelMapConfig:
    project = get_project_or_404(session=session, user_id=user_id, project_id=project_id)
    fields: dict[str, Any] = {}
    if drafts_generated is not None:
        fields["drafts_generated"] = drafts_generated
    if is_step2_complete is not None:
        fields["is_step2_complete"] = is_step2_complete
    if data is not None:
        fields["data"] = data
    return FunnelMapConfigsRepository(session).upsert(user_id=user_id, project_id=project.id, **fields)
