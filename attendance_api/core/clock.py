from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .config import get_settings


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def resolve_zone(name: str | None) -> ZoneInfo:
    """Return the tenant zone, falling back to the configured default."""
    try:
        return ZoneInfo(name or get_settings().default_timezone)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo(get_settings().default_timezone)


def as_utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def tenant_now(instant: datetime, zone_name: str | None) -> datetime:
    """Wall-clock time in the tenant zone. Naive values are taken as UTC, as stored."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(resolve_zone(zone_name))


def tenant_today(instant: datetime, zone_name: str | None) -> date:
    return tenant_now(instant, zone_name).date()


def format_timestamp(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.strftime("%Y-%m-%d %H:%M:%S")


def format_clock(value: datetime | None) -> str:
    if value is None:
        return "N/A"
    return value.strftime("%I:%M %p")
