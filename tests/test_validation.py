"""
Tests for boundary input validation.
"""

from datetime import datetime, timezone

import pytest

from vimarsh.core.errors import BadRequestError
from vimarsh.core.validation import (
    normalize_email,
    require_fields,
    slugify,
    validate_event_fields,
    validate_login,
    validate_member_fields,
    validate_profile_data,
    validate_registration,
    validate_team_fields,
)


class TestNormalizeEmail:
    """Tests for normalize_email."""

    def test_trims_and_lowercases(self) -> None:
        assert normalize_email("  Asha.Patel@Example.COM ") == "asha.patel@example.com"

    def test_none_is_empty(self) -> None:
        assert normalize_email(None) == ""


class TestValidateRegistration:
    """Tests for validate_registration."""

    def test_valid(self) -> None:
        validate_registration("Asha", "Patel", "asha@example.com", "long-enough")

    def test_name_too_long(self) -> None:
        with pytest.raises(BadRequestError) as exc_info:
            validate_registration("A" * 51, "Patel", "asha@example.com", "long-enough")
        assert exc_info.value.errors == {"firstName": "First name cannot exceed 50 characters"}

    def test_blank_values_count_as_missing(self) -> None:
        with pytest.raises(BadRequestError) as exc_info:
            validate_registration("  ", "Patel", "asha@example.com", "long-enough")
        assert "firstName" in exc_info.value.errors


class TestValidateLogin:
    """Tests for validate_login."""

    def test_missing_both(self) -> None:
        with pytest.raises(BadRequestError) as exc_info:
            validate_login(None, "")
        assert set(exc_info.value.errors) == {"email", "password"}

    def test_bad_email(self) -> None:
        with pytest.raises(BadRequestError):
            validate_login("asha", "long-enough")


class TestRequireFields:
    def test_reports_missing_names(self) -> None:
        with pytest.raises(BadRequestError) as exc_info:
            require_fields("Email and OTP are required", email="a@example.com", otp=" ")
        assert exc_info.value.message == "Email and OTP are required"
        assert set(exc_info.value.errors) == {"otp"}


class TestValidateProfileData:
    """Tests for validate_profile_data."""

    def test_cleans_values(self) -> None:
        cleaned = validate_profile_data(
            {"full_name": "  Asha Patel ", "prn_number": " PRN2024001 ", "class_name": " TY "}
        )

        assert cleaned["full_name"] == "Asha Patel"
        assert cleaned["prn_number"] == "PRN2024001"
        assert cleaned["class_name"] == "TY"

    @pytest.mark.parametrize(
        "field,value,error_key",
        [
            ("full_name", "A", "fullName"),
            ("full_name", "A" * 101, "fullName"),
            ("prn_number", "PRN-2024", "prnNumber"),
            ("prn_number", "12345", "prnNumber"),
            ("division", "ABC", "division"),
            ("bio", "x" * 501, "bio"),
            ("profile_image", "ftp://example.com/a.png", "profileImage"),
            ("profile_image", "https://example.com/a.pdf", "profileImage"),
            ("class_name", "   ", "class"),
        ],
    )
    def test_invalid_field(self, field: str, value: str, error_key: str) -> None:
        with pytest.raises(BadRequestError) as exc_info:
            validate_profile_data({field: value})
        assert error_key in exc_info.value.errors

    def test_cloudinary_url_without_extension_accepted(self) -> None:
        url = "https://res.cloudinary.com/demo/image/upload/v1712345678/codevimarsh/avatar"
        assert validate_profile_data({"profile_image": url})["profile_image"] == url


class TestValidateEventFields:
    """Tests for validate_event_fields."""

    def test_normalizes(self) -> None:
        cleaned = validate_event_fields(
            {
                "slug": " Rust-Meetup ",
                "title": " Rust ",
                "description": "d",
                "date": "2024-04-01T10:00:00Z",
                "time": "10 AM",
                "mode": "Hybrid",
                "location": "Lab",
                "image": "https://images.example.com/r.png",
            }
        )

        assert cleaned["slug"] == "rust-meetup"
        assert cleaned["title"] == "Rust"
        assert cleaned["date"] == datetime(2024, 4, 1, 10, tzinfo=timezone.utc)

    def test_naive_date_is_utc(self) -> None:
        cleaned = validate_event_fields({"date": "2024-04-01"}, partial=True)
        assert cleaned["date"].tzinfo == timezone.utc

    def test_partial_ignores_missing(self) -> None:
        assert validate_event_fields({"title": "New", "location": None}, partial=True) == {"title": "New"}

    def test_partial_rejects_blank(self) -> None:
        with pytest.raises(BadRequestError) as exc_info:
            validate_event_fields({"title": "  "}, partial=True)
        assert "title" in exc_info.value.errors

    def test_title_too_long(self) -> None:
        with pytest.raises(BadRequestError) as exc_info:
            validate_event_fields({"title": "x" * 201}, partial=True)
        assert "title" in exc_info.value.errors


class TestSlugify:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Web Dev", "web-dev"),
            ("  --AI & ML--  ", "ai-ml"),
            ("design", "design"),
            ("!!!", ""),
            (None, ""),
        ],
    )
    def test_slugify(self, raw, expected) -> None:
        assert slugify(raw) == expected


class TestValidateTeamFields:
    """Tests for validate_team_fields and validate_member_fields."""

    def test_create_requires_all_fields(self) -> None:
        with pytest.raises(BadRequestError) as exc_info:
            validate_team_fields({"slug": "web", "title": "Web"})
        assert exc_info.value.message == "Missing required fields"
        assert set(exc_info.value.errors) == {"description", "color", "icon"}

    def test_slug_without_letters_rejected(self) -> None:
        with pytest.raises(BadRequestError) as exc_info:
            validate_team_fields({"slug": "--"}, partial=True)
        assert "slug" in exc_info.value.errors

    def test_active_flag_only_on_update(self) -> None:
        data = {"slug": "Web Dev", "title": "Web", "description": "d", "color": "#fff", "icon": "g"}

        assert validate_team_fields({**data, "is_active": False})["slug"] == "web-dev"
        assert "is_active" not in validate_team_fields({**data, "is_active": False})
        assert validate_team_fields({"is_active": False}, partial=True) == {"is_active": False}

    def test_member_defaults_order(self) -> None:
        cleaned = validate_member_fields({"first_name": " Asha ", "last_name": "Patel", "role": "Lead"})

        assert cleaned == {"first_name": "Asha", "last_name": "Patel", "role": "Lead", "order": 0}

    def test_member_links_can_be_cleared(self) -> None:
        assert validate_member_fields({"linkedin": None, "image": " "}, partial=True) == {
            "linkedin": None,
            "image": None,
        }

    def test_member_role_too_long(self) -> None:
        with pytest.raises(BadRequestError) as exc_info:
            validate_member_fields({"role": "x" * 201}, partial=True)
        assert "role" in exc_info.value.errors
