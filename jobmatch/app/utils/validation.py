"""
Input validation helpers. Failures raise ValidationError (HTTP 400).
"""
import re
from typing import Any

from .error_handlers import ValidationError

_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def validate_email(email: str) -> str:
    if not email or not isinstance(email, str):
        raise ValidationError("Email is required")

    email = email.strip().lower()
    if len(email) > 255:
        raise ValidationError("Email too long (max 255 characters)")
    if not _EMAIL_RE.match(email):
        raise ValidationError("Invalid email format")
    return email


def validate_password(password: str) -> None:
    if not password or not isinstance(password, str):
        raise ValidationError("Password is required")
    if len(password) < 6:
        raise ValidationError("Password must be at least 6 characters")
    if len(password) > 128:
        raise ValidationError("Password too long (max 128 characters)")


def validate_string_field(
    value: Any,
    field_name: str,
    *,
    max_length: int = 1000,
    required: bool = True,
) -> str | None:
    """Strip and bound a string field; `None`/blank is allowed unless required."""
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError(f"{field_name} is required")
        return None

    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")

    value = value.strip()
    if len(value) > max_length:
        raise ValidationError(f"{field_name} must not exceed {max_length} characters")
    return value


def clean_string_list(values: Any, *, max_items: int = 100, max_length: int = 80) -> list[str]:
    """Normalize a skill-style list: strings only, trimmed, de-duplicated case-insensitively."""
    if not values:
        return []
    if not isinstance(values, list):
        raise ValidationError("Expected a list of strings")

    out: list[str] = []
    seen: set[str] = set()
    for v in values:
        if not isinstance(v, str):
            continue
        s = v.strip()
        if not s or len(s) > max_length:
            continue
        key = s.lower()
        if key in seen:
            continue
        seen.add(key)
        out.append(s)
        if len(out) >= max_items:
            break
    return out


def sanitize_filename(filename: str) -> str:
    """Strip path components and traversal sequences from an uploaded filename."""
    if not filename:
        raise ValidationError("Filename is required")

    filename = filename.replace("/", "_").replace("\\", "_")
    filename = filename.replace("\x00", "")
    filename = filename.replace("..", "_")
    filename = filename.lstrip(".")

    if len(filename) > 255:
        raise ValidationError("Filename too long")
    if not filename or filename == "_":
        raise ValidationError("Invalid filename")
    return filename
