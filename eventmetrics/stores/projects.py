"""Read-only view of the project/team registry.

Projects and memberships are created by the team-management service; this
module only resolves API keys and membership for the ingest and analytics
paths.
"""

from __future__ import annotations

from supabase import AsyncClient

from eventmetrics.models.db import MemberRow, ProjectRow
from eventmetrics.utils.database import query_one

PROJECTS_TABLE = "projects"
MEMBERS_TABLE = "members"


class ProjectRegistry:
    def __init__(self, supabase: AsyncClient) -> None:
        self._supabase = supabase

    async def by_api_key(self, api_key: str) -> ProjectRow | None:
        row = await query_one(
            self._supabase,
            PROJECTS_TABLE,
            match={"api_key": api_key},
            select_fields="id,team_id,name",
        )
        return ProjectRow(**row) if row else None

    async def get(self, project_id: str) -> ProjectRow | None:
        row = await query_one(
            self._supabase,
            PROJECTS_TABLE,
            match={"id": project_id},
            select_fields="id,team_id,name",
        )
        return ProjectRow(**row) if row else None

    async def membership(self, team_id: str, user_id: str) -> MemberRow | None:
        row = await query_one(
            self._supabase,
            MEMBERS_TABLE,
            match={"team_id": team_id, "user_id": user_id},
            select_fields="team_id,user_id,role",
        )
        return MemberRow(**row) if row else None
