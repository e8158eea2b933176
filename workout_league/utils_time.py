from datetime import datetime, timezone

def to_epoch(value) -> int:
    """Unix seconds from an int, a datetime or an ISO-8601 string (naive means UTC)."""
    if isinstance(value, bool):
        raise ValueError("timestamp must be a number or ISO-8601 string")
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        s = value.strip()
        if s.lstrip("-").isdigit():
            return int(s)
        value = datetime.fromisoformat(s.replace("Z", "+00:00"))
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp())
    raise ValueError(f"unsupported timestamp {value!r}")

def now_epoch() -> int:
    return int(datetime.now(timezone.utc).timestamp())
