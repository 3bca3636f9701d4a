"""Access gate for tenant analytics: the caller must belong to the project's team."""

from __future__ import annotations

from eventmetrics.exceptions import AuthorizationError, NotFoundError
from eventmetrics.models.db import ProjectRow
from eventmetrics.stores.projects import ProjectRegistry
from eventmetrics.utils.logger import logger


async def ensure_access(registry: ProjectRegistry, project_id: str, user_id: str) -> ProjectRow:
    """Return the project or raise; unknown projects fail before any membership lookup."""
    project = await registry.get(project_id)
    if project is None:
        raise NotFoundError("Project not found")

    member = await registry.membership(project.team_id, user_id)
    if member is None:
        logger.info(
            "access.denied",
            extra={"project_id": project_id, "user_id": user_id, "reason": "not_a_member"},
        )
        raise AuthorizationError("Access denied - you are not a member of this project's team")
    return project
