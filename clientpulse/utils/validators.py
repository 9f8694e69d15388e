"""Deterministic validators and sanitizers for roster and interaction input."""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?[\d\s-]{10,}$")
MIN_PHONE_DIGITS = 10


def sanitize_text(value: str | None, max_len: int = 20000) -> str:
    """Sanitize free-form content before persistence/display."""
    if value is None:
        return ""
    cleaned = str(value).replace("\x00", "").strip()
    return cleaned[:max_len]


def optional_text(value: str | None, max_len: int = 20000) -> str | None:
    cleaned = sanitize_text(value, max_len=max_len)
    return cleaned or None


def is_valid_email(value: str | None) -> bool:
    return bool(value) and EMAIL_PATTERN.match(value.strip()) is not None


def is_valid_phone(value: str | None) -> bool:
    """E.164-like: optional +, digits/spaces/dashes, at least ten digits."""
    if not value or PHONE_PATTERN.match(value.strip()) is None:
        return False
    return sum(ch.isdigit() for ch in value) >= MIN_PHONE_DIGITS


def digits_only(value: str) -> str:
    return re.sub(r"\D", "", value)


def agent_field_errors(payload: Mapping[str, Any], partial: bool = False) -> dict[str, str]:
    """Collect every field error of an agent form at once.

    With `partial=True` only the keys present in `payload` are checked.
    """
    errors: dict[str, str] = {}
    if not partial or "name" in payload:
        if not sanitize_text(payload.get("name")):
            errors["name"] = "Name is required."
    if not partial or "email" in payload:
        email = payload.get("email")
        if not sanitize_text(email):
            errors["email"] = "Email is required."
        elif not is_valid_email(email):
            errors["email"] = "Email is not valid."
    if not partial or "whatsapp_number" in payload:
        phone = payload.get("whatsapp_number")
        if not sanitize_text(phone):
            errors["whatsapp_number"] = "WhatsApp number is required."
        elif not is_valid_phone(phone):
            errors["whatsapp_number"] = "WhatsApp number must contain at least 10 digits."
    return errors


def parse_effective_date(value: date | datetime | str | None) -> date | None:
    """Accept a date, datetime or ISO string; None when missing or malformed."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None
