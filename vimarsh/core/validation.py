"""
Boundary input validation.

Each validator collects a field -> message map and raises ``BadRequestError``
carrying it, so forms can highlight every offending input at once.
"""

import re
from datetime import datetime, timezone
from typing import Any, Optional

from vimarsh.core.errors import BadRequestError

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")
PRN_PATTERN = re.compile(r"^[A-Za-z0-9]{6,20}$")
IMAGE_URL_PATTERN = re.compile(r"^https?://.+\.(jpg|jpeg|png|gif|webp|svg)$", re.IGNORECASE)
CLOUDINARY_URL_PATTERN = re.compile(r"^https://res\.cloudinary\.com/.+", re.IGNORECASE)

MIN_PASSWORD_LENGTH = 8
NAME_MAX_LENGTH = 50
DIVISIONS = ("GIA", "SFI")
EVENT_MODES = ("Online", "Offline", "Hybrid")
EVENT_REQUIRED_FIELDS = ("slug", "title", "description", "date", "time", "mode", "location", "image")


def normalize_email(email: Optional[str]) -> str:
    """Lowercase and trim an email address; None becomes an empty string."""
    return str(email or "").strip().lower()


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_registration(
    first_name: Optional[str],
    last_name: Optional[str],
    email: Optional[str],
    password: Optional[str],
) -> None:
    """Validate a local signup request."""
    required = {
        "firstName": (first_name, "First name is required"),
        "lastName": (last_name, "Last name is required"),
        "email": (email, "Email is required"),
        "password": (password, "Password is required"),
    }
    missing = {field: message for field, (value, message) in required.items() if _blank(value)}
    if missing:
        raise BadRequestError("Please provide all required fields", missing)

    errors: dict[str, str] = {}
    if len(first_name.strip()) > NAME_MAX_LENGTH:
        errors["firstName"] = "First name cannot exceed 50 characters"
    if len(last_name.strip()) > NAME_MAX_LENGTH:
        errors["lastName"] = "Last name cannot exceed 50 characters"
    if errors:
        raise BadRequestError("Validation failed", errors)

    if not EMAIL_PATTERN.match(email.strip()):
        raise BadRequestError("Invalid email format", {"email": "Please enter a valid email address"})
    if len(password) < MIN_PASSWORD_LENGTH:
        raise BadRequestError(
            "Password too weak",
            {"password": "Password must be at least 8 characters long"},
        )


def validate_login(email: Optional[str], password: Optional[str]) -> None:
    """Validate a local login request."""
    missing = {}
    if _blank(email):
        missing["email"] = "Email is required"
    if _blank(password):
        missing["password"] = "Password is required"
    if missing:
        raise BadRequestError("Please provide email and password", missing)
    if not EMAIL_PATTERN.match(email.strip()):
        raise BadRequestError("Invalid email format", {"email": "Please enter a valid email address"})


def validate_new_password(password: Optional[str]) -> None:
    if _blank(password):
        raise BadRequestError("Password is required", {"password": "Password is required"})
    if len(password) < MIN_PASSWORD_LENGTH:
        raise BadRequestError(
            "Password too weak",
            {"password": "Password must be at least 8 characters long"},
        )


def require_fields(message: str, **fields: Any) -> None:
    """Raise ``BadRequestError(message)`` if any keyword value is blank."""
    missing = {name: f"{name} is required" for name, value in fields.items() if _blank(value)}
    if missing:
        raise BadRequestError(message, missing)


def validate_profile_data(data: dict[str, Any]) -> dict[str, Any]:
    """
    Validate and normalize profile fields.

    Only keys present and non-empty in ``data`` are checked, matching the
    partial-update semantics of the profile form.

    Returns:
        The cleaned data (names trimmed).

    Raises:
        BadRequestError: With a field map of every invalid field.
    """
    errors: dict[str, str] = {}
    cleaned = dict(data)

    full_name = data.get("full_name")
    if full_name:
        if len(full_name.strip()) < 2:
            errors["fullName"] = "Full name must be at least 2 characters long"
        elif len(full_name) > 100:
            errors["fullName"] = "Full name cannot exceed 100 characters"
        else:
            cleaned["full_name"] = full_name.strip()

    prn_number = data.get("prn_number")
    if prn_number:
        prn_number = prn_number.strip()
        if not PRN_PATTERN.match(prn_number):
            errors["prnNumber"] = "PRN number must be 6-20 alphanumeric characters"
        else:
            cleaned["prn_number"] = prn_number

    division = data.get("division")
    if division and division not in DIVISIONS:
        errors["division"] = "Division must be either GIA or SFI"

    bio = data.get("bio")
    if bio and len(bio) > 500:
        errors["bio"] = "Bio cannot exceed 500 characters"
    elif bio:
        cleaned["bio"] = bio.strip()

    profile_image = data.get("profile_image")
    if profile_image and not (
        IMAGE_URL_PATTERN.match(profile_image) or CLOUDINARY_URL_PATTERN.match(profile_image)
    ):
        errors["profileImage"] = "Profile image must be a valid image URL"

    class_name = data.get("class_name")
    if class_name is not None and class_name != "":
        if not class_name.strip():
            errors["class"] = "Class is required"
        elif len(class_name) > 50:
            errors["class"] = "Class cannot exceed 50 characters"
        else:
            cleaned["class_name"] = class_name.strip()

    if errors:
        raise BadRequestError("Validation failed", errors)
    return cleaned


def validate_event_fields(data: dict[str, Any], partial: bool = False) -> dict[str, Any]:
    """
    Validate and normalize event catalog fields.

    Args:
        data: Raw field values keyed by snake_case name.
        partial: When True only the supplied keys are checked (update).

    Returns:
        Normalized values: strings trimmed, slug lowercased, date parsed.
    """
    supplied = {key: value for key, value in data.items() if value is not None}

    if not partial:
        missing = {field: f"{field} is required" for field in EVENT_REQUIRED_FIELDS if _blank(supplied.get(field))}
        if missing:
            raise BadRequestError("Missing required fields", missing)

    errors: dict[str, str] = {}
    cleaned: dict[str, Any] = {}
    for field, value in supplied.items():
        if field == "date":
            try:
                parsed = value if isinstance(value, datetime) else datetime.fromisoformat(
                    str(value).replace("Z", "+00:00")
                )
            except ValueError:
                errors["date"] = "Event date must be an ISO-8601 date"
                continue
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            cleaned["date"] = parsed
        elif field == "mode":
            if value not in EVENT_MODES:
                errors["mode"] = "Event mode must be Online, Offline or Hybrid"
            else:
                cleaned["mode"] = value
        else:
            text = str(value).strip()
            if not text:
                errors[field] = f"{field} cannot be empty"
                continue
            cleaned[field] = text.lower() if field == "slug" else text

    if len(cleaned.get("title", "")) > 200:
        errors["title"] = "Event title cannot exceed 200 characters"
    if len(cleaned.get("description", "")) > 2000:
        errors["description"] = "Event description cannot exceed 2000 characters"

    if errors:
        raise BadRequestError("Validation failed", errors)
    return cleaned


TEAM_REQUIRED_FIELDS = ("slug", "title", "description", "color", "icon")
TEAM_TEXT_LIMITS = {"title": 200, "description": 3000}
MEMBER_REQUIRED_FIELDS = ("first_name", "last_name", "role")
MEMBER_TEXT_LIMITS = {"first_name": 100, "last_name": 100, "role": 200}
SLUG_SEPARATOR_PATTERN = re.compile(r"[^a-z0-9]+")


def slugify(value: Any) -> str:
    """Lowercase, collapse every non-alphanumeric run into one hyphen, trim hyphens."""
    return SLUG_SEPARATOR_PATTERN.sub("-", str(value or "").lower().strip()).strip("-")


def _check_text(
    supplied: dict[str, Any],
    limits: dict[str, int],
    errors: dict[str, str],
    cleaned: dict[str, Any],
    field: str,
) -> None:
    text = str(supplied[field]).strip()
    if not text:
        errors[field] = f"{field} cannot be empty"
    elif field in limits and len(text) > limits[field]:
        errors[field] = f"{field} cannot exceed {limits[field]} characters"
    else:
        cleaned[field] = text


def validate_team_fields(data: dict[str, Any], partial: bool = False) -> dict[str, Any]:
    """
    Validate and normalize team fields.

    The slug is slugified; a slug that slugifies to nothing is rejected.
    ``is_active`` is only accepted on updates.
    """
    supplied = {key: value for key, value in data.items() if value is not None}

    if not partial:
        missing = {
            field: f"{field} is required" for field in TEAM_REQUIRED_FIELDS if _blank(supplied.get(field))
        }
        if missing:
            raise BadRequestError("Missing required fields", missing)

    errors: dict[str, str] = {}
    cleaned: dict[str, Any] = {}
    for field in supplied:
        if field == "slug":
            slug = slugify(supplied["slug"])
            if not slug:
                errors["slug"] = "Slug must contain letters or digits"
            else:
                cleaned["slug"] = slug
        elif field == "is_active":
            if partial:
                cleaned["is_active"] = bool(supplied["is_active"])
        elif field in TEAM_REQUIRED_FIELDS:
            _check_text(supplied, TEAM_TEXT_LIMITS, errors, cleaned, field)

    if errors:
        raise BadRequestError("Validation failed", errors)
    return cleaned


def validate_member_fields(data: dict[str, Any], partial: bool = False) -> dict[str, Any]:
    """
    Validate and normalize team member fields.

    ``linkedin`` and ``image`` may be cleared by sending an empty value;
    ``order`` defaults to 0 on create.
    """
    supplied = {key: value for key, value in data.items() if value is not None}

    if not partial:
        missing = {
            field: f"{field} is required" for field in MEMBER_REQUIRED_FIELDS if _blank(supplied.get(field))
        }
        if missing:
            raise BadRequestError("Missing required fields", missing)

    errors: dict[str, str] = {}
    cleaned: dict[str, Any] = {}
    for field in MEMBER_REQUIRED_FIELDS:
        if field in supplied:
            _check_text(supplied, MEMBER_TEXT_LIMITS, errors, cleaned, field)

    for field in ("linkedin", "image"):
        if field in data:
            cleaned[field] = str(data[field] or "").strip() or None

    if "order" in supplied:
        cleaned["order"] = supplied["order"]
    elif not partial:
        cleaned["order"] = 0

    if "is_active" in supplied and partial:
        cleaned["is_active"] = bool(supplied["is_active"])

    if errors:
        raise BadRequestError("Validation failed", errors)
    return cleaned
