# projects/services/audit.py

from __future__ import annotations

import logging
import uuid
from decimal import Decimal

from projects.models import Project, ProjectAuditLog

logger = logging.getLogger(__name__)


def _jsonable(value):
    if isinstance(value, (Decimal, uuid.UUID)):
        return str(value)
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


def log_project_event(
    project: Project,
    action: str,
    description: str,
    *,
    actor: str = "",
    metadata: dict | None = None,
) -> ProjectAuditLog:
    entry = ProjectAuditLog.objects.create(
        project=project,
        action=action,
        actor=actor or "",
        description=description[:255],
        metadata=_jsonable(metadata or {}),
    )
    logger.info(
        "Project event",
        extra={
            "project_number": project.project_number,
            "action": action,
            "actor": actor,
        },
    )
    return entry
