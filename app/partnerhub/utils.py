from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Iterable

_DIGITS_RE = re.compile(r"^\d+$")
_URL_RE = re.compile(r"^https?://[^\s]+$", re.IGNORECASE)
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def clean_str(value: Any) -> str | None:
    """Trim strings; blank strings and non-strings become None."""
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)
    value = value.strip()
    return value or None


def is_digits(value: str | None) -> bool:
    return bool(value) and bool(_DIGITS_RE.match(value or ""))


def is_url(value: str | None) -> bool:
    return bool(value) and bool(_URL_RE.match(value or ""))


def is_email(value: str | None) -> bool:
    return bool(value) and bool(_EMAIL_RE.match(value or ""))


def parse_date(s: Any) -> date | None:
    """Parse YYYY-MM-DD (or a full ISO timestamp) into a date."""
    s = clean_str(s)
    if not s:
        return None
    return date.fromisoformat(s[:10])


def parse_datetime(s: Any) -> datetime | None:
    s = clean_str(s)
    if not s:
        return None
    if s.endswith("Z"):
        s = s[:-1]
    dt = datetime.fromisoformat(s)
    return dt.replace(tzinfo=None)


def serialize(obj: Any, fields: Iterable[tuple[str, str]]) -> dict[str, Any]:
    """Map model attributes onto camelCase JSON keys: fields = ((json_key, attr), ...)."""
    out: dict[str, Any] = {}
    for key, attr in fields:
        value = getattr(obj, attr)
        if isinstance(value, (date, datetime)):
            value = value.isoformat()
        out[key] = value
    return out


def page_args(args, *, default_limit: int = 20, max_limit: int = 50) -> tuple[int, int]:
    """Clamp ?page= and ?limit= from a request's query args."""
    try:
        page = int(args.get("page") or 1)
    except ValueError:
        page = 1
    try:
        limit = int(args.get("limit") or default_limit)
    except ValueError:
        limit = default_limit
    return max(1, page), min(max_limit, max(1, limit))


def pagination(page: int, limit: int, total: int) -> dict[str, int]:
    return {"page": page, "limit": limit, "total": total, "totalPages": -(-total // limit) if total else 0}


def json_body() -> dict[str, Any]:
    """Request JSON object, or {} for missing/invalid bodies."""
    from flask import request

    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
