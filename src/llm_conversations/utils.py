from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def slugify(value: str, default: str = "conversation", max_len: int = 50) -> str:
    cleaned = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    if not cleaned:
        cleaned = default
    return cleaned[:max_len].rstrip("-") or default


def truncate_to_millis(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def from_epoch_seconds(value: Any) -> datetime | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        millis = round(float(value) * 1000)
    except (TypeError, ValueError, OverflowError):
        return None
    try:
        return EPOCH + timedelta(milliseconds=millis)
    except OverflowError:
        return None


def parse_iso_datetime(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    return truncate_to_millis(parsed)


def format_instant(value: datetime) -> str:
    """Fixed-width UTC form, e.g. ``2024-03-01T12:00:00.000Z``."""
    return truncate_to_millis(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def now_utc() -> datetime:
    return truncate_to_millis(datetime.now(tz=timezone.utc))


def atomic_write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(content, encoding="utf-8")
    tmp_path.replace(path)
