"""
Team directory: the public teams page and its admin management.

Public lookups accept any spelling of a slug that slugifies to a stored
one. Older rows stored before slugs were normalized are rewritten the
first time they are listed or fetched.
"""

import logging
from typing import Any

from vimarsh.core.errors import BadRequestError, ConflictError, NotFoundError
from vimarsh.core.validation import slugify, validate_member_fields, validate_team_fields
from vimarsh.models import Team, TeamMember, TeamView
from vimarsh.repositories import DuplicateKeyError, TeamMemberRepository, TeamRepository

logger = logging.getLogger(__name__)


class TeamDirectory:
    def __init__(self, teams: TeamRepository, members: TeamMemberRepository):
        self.teams = teams
        self.members = members

    async def _normalize_slug(self, team: Team) -> Team:
        normalized = slugify(team.slug)
        if not normalized or normalized == team.slug:
            return team
        try:
            updated = await self.teams.update_fields(team.id, {"slug": normalized})
        except DuplicateKeyError:
            logger.warning(f"Cannot normalize slug of team {team.id}: '{normalized}' is taken")
            return team
        logger.info(f"Normalized slug of team {team.id} to '{normalized}'")
        return updated or team

    async def _find_active(self, slug: str) -> Team:
        normalized = slugify(slug)
        if not normalized:
            raise BadRequestError("Invalid team slug")
        team = await self.teams.find_by_slug(normalized)
        if team is None:
            team = await self.teams.find_by_slug(slug.strip().lower())
        if team is None or not team.is_active:
            raise NotFoundError("Team not found")
        return await self._normalize_slug(team)

    async def list_active(self) -> list[TeamView]:
        """Active teams, newest first, each with its active member count."""
        teams = [await self._normalize_slug(team) for team in await self.teams.list_all(active_only=True)]
        counts = await self.members.count_active([team.id for team in teams])
        return [TeamView(**team.model_dump(), members_count=counts.get(team.id, 0)) for team in teams]

    async def get_active(self, slug: str) -> TeamView:
        """
        Look up an active team by slug.

        Raises:
            BadRequestError: The slug has no letters or digits.
            NotFoundError: No active team has the slug.
        """
        team = await self._find_active(slug)
        counts = await self.members.count_active([team.id])
        return TeamView(**team.model_dump(), members_count=counts.get(team.id, 0))

    async def active_members(self, slug: str) -> list[TeamMember]:
        team = await self._find_active(slug)
        return await self.members.list_for_team(team.id, active_only=True)

    async def list_all(self) -> list[Team]:
        return await self.teams.list_all()

    async def create(self, data: dict[str, Any]) -> Team:
        """
        Create an active team.

        Raises:
            BadRequestError: Missing or invalid fields.
            ConflictError: The slug is already used.
        """
        team = Team(**validate_team_fields(data))
        try:
            await self.teams.create(team)
        except DuplicateKeyError as e:
            raise ConflictError("Team slug already exists") from e
        logger.info(f"Created team {team.id} ({team.slug})")
        return team

    async def update(self, team_id: str, data: dict[str, Any]) -> Team:
        cleaned = validate_team_fields(data, partial=True)
        if not cleaned:
            team = await self.teams.get(team_id)
        else:
            try:
                team = await self.teams.update_fields(team_id, cleaned)
            except DuplicateKeyError as e:
                raise ConflictError("Team slug already exists") from e
        if team is None:
            raise NotFoundError("Team not found")
        return team

    async def delete(self, team_id: str) -> None:
        """Delete a team together with its members."""
        team = await self.teams.delete(team_id)
        if team is None:
            raise NotFoundError("Team not found")
        removed = await self.members.delete_for_team(team_id)
        logger.info(f"Deleted team {team_id} and {removed} member(s)")

    async def list_members(self, team_id: str) -> list[TeamMember]:
        if await self.teams.get(team_id) is None:
            raise NotFoundError("Team not found")
        return await self.members.list_for_team(team_id)

    async def add_member(self, team_id: str, data: dict[str, Any]) -> TeamMember:
        """
        Add a member to a team.

        Raises:
            NotFoundError: The team does not exist.
            BadRequestError: Missing or invalid fields.
        """
        if await self.teams.get(team_id) is None:
            raise NotFoundError("Team not found")
        member = TeamMember(team_id=team_id, **validate_member_fields(data))
        await self.members.create(member)
        logger.info(f"Added member {member.id} to team {team_id}")
        return member

    async def update_member(self, member_id: str, data: dict[str, Any]) -> TeamMember:
        cleaned = validate_member_fields(data, partial=True)
        if not cleaned:
            member = await self.members.get(member_id)
        else:
            member = await self.members.update_fields(member_id, cleaned)
        if member is None:
            raise NotFoundError("Member not found")
        return member

    async def delete_member(self, member_id: str) -> None:
        if await self.members.delete(member_id) is None:
            raise NotFoundError("Member not found")
