"""
Shared validation helpers for Streamify services.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from typing import Optional, Sequence

from core.config import MAX_BULK_IDS, MAX_METADATA_BYTES
from core.errors import ValidationIssue


def validate_object_id(value, field: str, label: Optional[str] = None) -> str:
    """Return the canonical string form of an identifier or raise 400."""
    name = label or field
    if not isinstance(value, (str, uuid.UUID)):
        raise ValidationIssue(f"Invalid {name} ID", field=field, error_type="invalid_id")
    try:
        return str(uuid.UUID(str(value).strip()))
    except ValueError as exc:
        raise ValidationIssue(f"Invalid {name} ID", field=field, error_type="invalid_id") from exc


def validate_object_ids(values, field: str, label: Optional[str] = None) -> list[str]:
    if not isinstance(values, (list, tuple)) or not values:
        raise ValidationIssue(f"{field} array is required", field=field, error_type="required")
    if len(values) > MAX_BULK_IDS:
        raise ValidationIssue(f"{field} exceeds max items {MAX_BULK_IDS}", field=field, error_type="max_items")
    return [validate_object_id(value, field, label) for value in values]


def validate_required_text(value: str, field: str, max_len: int) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValidationIssue(f"{field} must be a non-empty string", field=field, error_type="required")
    if len(value) > max_len:
        raise ValidationIssue(f"{field} exceeds max length {max_len}", field=field, error_type="max_length")


def validate_optional_text(value: Optional[str], field: str, max_len: int) -> None:
    if value is None:
        return
    if not isinstance(value, str):
        raise ValidationIssue(f"{field} must be a string", field=field, error_type="invalid_type")
    if len(value) > max_len:
        raise ValidationIssue(f"{field} exceeds max length {max_len}", field=field, error_type="max_length")


def validate_page(page: int, limit: int, max_limit: int) -> tuple[int, int]:
    if not isinstance(page, int) or page < 1:
        raise ValidationIssue("page must be a positive integer", field="page", error_type="out_of_range")
    if not isinstance(limit, int) or limit <= 0 or limit > max_limit:
        raise ValidationIssue(f"limit must be between 1 and {max_limit}", field="limit", error_type="out_of_range")
    return page, limit


def validate_choice(value: str, field: str, choices: Sequence[str]) -> str:
    if value not in choices:
        raise ValidationIssue(
            f"{field} must be one of: {', '.join(choices)}",
            field=field,
            error_type="invalid_value",
        )
    return value


def validate_metadata(metadata: Optional[dict], field: str) -> None:
    if metadata is None:
        return
    if not isinstance(metadata, dict):
        raise ValidationIssue(f"{field} must be an object", field=field, error_type="invalid_type")
    try:
        size = len(json.dumps(metadata, default=str))
    except (TypeError, ValueError) as exc:
        raise ValidationIssue(f"{field} must be JSON-serializable", field=field, error_type="invalid_type") from exc
    if size > MAX_METADATA_BYTES:
        raise ValidationIssue(
            f"{field} exceeds max size {MAX_METADATA_BYTES} bytes",
            field=field,
            error_type="max_bytes",
        )


def validate_non_negative(value, field: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationIssue(f"{field} must be a number", field=field, error_type="invalid_type")
    if value < 0:
        raise ValidationIssue(f"{field} must not be negative", field=field, error_type="out_of_range")
    return float(value)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_datetime(value, field: str) -> Optional[datetime]:
    """Accept a datetime or ISO-8601 string; returns naive UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return to_naive_utc(value)
    if not isinstance(value, str):
        raise ValidationIssue(f"{field} must be an ISO-8601 timestamp", field=field, error_type="invalid_type")
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError as exc:
        raise ValidationIssue(f"{field} must be an ISO-8601 timestamp", field=field, error_type="invalid_value") from exc
    return to_naive_utc(parsed)
