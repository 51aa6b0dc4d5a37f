# ─────────────────────────────────────────────────────────────────
# timefmt.py — Timestamp helpers
#
# Alerts and readings carry ISO-8601 strings. Backend timestamps
# arrive in whatever form the API emits; the ones we create use the
# millisecond "Z" form, e.g. "2026-03-01T10:34:22.123Z".
# ─────────────────────────────────────────────────────────────────

from datetime import datetime, timezone

# Sort key for anything we cannot parse: older than every real alert
EPOCH_FLOOR = datetime.min.replace(tzinfo=timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(value) -> datetime:
    """
    Parse an ISO-8601 string into an aware UTC datetime.

    Naive values are taken to be UTC. Anything unparseable maps to
    EPOCH_FLOOR so it sorts last and falls out of retention windows.
    """
    if not value or not isinstance(value, str):
        return EPOCH_FLOOR
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return EPOCH_FLOOR
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def epoch_ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def time_ago(timestamp, now: datetime = None) -> str:
    """Human readable age of a timestamp, e.g. "5 mins ago"."""
    if not timestamp:
        return "Unknown time"
    now = now or utc_now()
    seconds = int((now - parse_iso(timestamp)).total_seconds())
    if seconds < 60:
        return "Just now"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes} {'min' if minutes == 1 else 'mins'} ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours} {'hour' if hours == 1 else 'hours'} ago"
    days = hours // 24
    return f"{days} {'day' if days == 1 else 'days'} ago"
