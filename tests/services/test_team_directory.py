"""
Tests for the team directory service.
"""

import pytest

from vimarsh.core.errors import BadRequestError, ConflictError, NotFoundError
from vimarsh.models import Team
from vimarsh.services import TeamDirectory


def team_data(**overrides) -> dict:
    data = {
        "slug": "Web Dev",
        "title": "Web Development",
        "description": "Frontend, APIs and deployment.",
        "color": "#2563eb",
        "icon": "globe",
    }
    data.update(overrides)
    return data


def member_data(first_name: str = "Asha", **overrides) -> dict:
    data = {"first_name": first_name, "last_name": "Patel", "role": "Lead"}
    data.update(overrides)
    return data


@pytest.fixture
def directory(repositories) -> TeamDirectory:
    return TeamDirectory(repositories.teams, repositories.team_members)


class TestAdminTeams:
    """Tests for team create/update/delete."""

    @pytest.mark.asyncio
    async def test_create_slugifies(self, directory) -> None:
        team = await directory.create(team_data())

        assert team.slug == "web-dev"
        assert team.is_active is True

    @pytest.mark.asyncio
    async def test_duplicate_slug_is_conflict(self, directory) -> None:
        await directory.create(team_data())

        with pytest.raises(ConflictError) as exc_info:
            await directory.create(team_data(slug="web-dev"))

        assert exc_info.value.message == "Team slug already exists"

    @pytest.mark.asyncio
    async def test_update_to_taken_slug_is_conflict(self, directory) -> None:
        await directory.create(team_data())
        design = await directory.create(team_data(slug="design"))

        with pytest.raises(ConflictError):
            await directory.update(design.id, {"slug": "Web Dev"})

    @pytest.mark.asyncio
    async def test_update_unknown_team(self, directory) -> None:
        with pytest.raises(NotFoundError):
            await directory.update("missing", {"title": "X"})

    @pytest.mark.asyncio
    async def test_delete_cascades_members(self, directory, repositories) -> None:
        team = await directory.create(team_data())
        await directory.add_member(team.id, member_data())

        await directory.delete(team.id)

        assert await repositories.teams.get(team.id) is None
        assert await repositories.team_members.list_for_team(team.id) == []

    @pytest.mark.asyncio
    async def test_add_member_to_unknown_team(self, directory) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            await directory.add_member("missing", member_data())
        assert exc_info.value.message == "Team not found"

    @pytest.mark.asyncio
    async def test_add_member_requires_names_and_role(self, directory) -> None:
        team = await directory.create(team_data())

        with pytest.raises(BadRequestError):
            await directory.add_member(team.id, {"first_name": "Asha"})

    @pytest.mark.asyncio
    async def test_update_unknown_member(self, directory) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            await directory.update_member("missing", {"role": "Mentor"})
        assert exc_info.value.message == "Member not found"


class TestPublicTeams:
    """Tests for the public lookups."""

    @pytest.mark.asyncio
    async def test_list_active_counts_active_members(self, directory) -> None:
        team = await directory.create(team_data())
        retired = await directory.create(team_data(slug="retired"))
        await directory.update(retired.id, {"is_active": False})
        await directory.add_member(team.id, member_data("Asha"))
        hidden = await directory.add_member(team.id, member_data("Ravi"))
        await directory.update_member(hidden.id, {"is_active": False})

        teams = await directory.list_active()

        assert [(t.slug, t.members_count) for t in teams] == [("web-dev", 1)]

    @pytest.mark.asyncio
    async def test_lookup_accepts_any_spelling(self, directory) -> None:
        await directory.create(team_data())

        team = await directory.get_active("  WEB dev ")

        assert team.slug == "web-dev"
        assert team.members_count == 0

    @pytest.mark.asyncio
    async def test_lookup_rejects_empty_slug(self, directory) -> None:
        with pytest.raises(BadRequestError) as exc_info:
            await directory.get_active("---")
        assert exc_info.value.message == "Invalid team slug"

    @pytest.mark.asyncio
    async def test_inactive_team_not_found(self, directory) -> None:
        team = await directory.create(team_data())
        await directory.update(team.id, {"is_active": False})

        with pytest.raises(NotFoundError):
            await directory.get_active("web-dev")

    @pytest.mark.asyncio
    async def test_legacy_slug_rewritten(self, directory, repositories) -> None:
        """Test a stored slug that was never normalized is fixed on first read."""
        legacy = Team(**team_data(slug="Web_Dev"))
        await repositories.teams.create(legacy)

        teams = await directory.list_active()

        assert teams[0].slug == "web-dev"
        assert (await repositories.teams.get(legacy.id)).slug == "web-dev"

    @pytest.mark.asyncio
    async def test_legacy_slug_kept_when_normalized_taken(self, directory, repositories) -> None:
        await directory.create(team_data())
        legacy = Team(**team_data(slug="Web Dev!"))
        await repositories.teams.create(legacy)

        await directory.list_active()

        assert (await repositories.teams.get(legacy.id)).slug == "Web Dev!"

    @pytest.mark.asyncio
    async def test_active_members_ordered(self, directory) -> None:
        team = await directory.create(team_data())
        await directory.add_member(team.id, member_data("Second", order=2))
        await directory.add_member(team.id, member_data("First", order=1))
        hidden = await directory.add_member(team.id, member_data("Hidden", order=0))
        await directory.update_member(hidden.id, {"is_active": False})

        members = await directory.active_members("web-dev")

        assert [m.first_name for m in members] == ["First", "Second"]
