# Date helpers shared by models, queries and the presence overlay
# Timestamps are stored as naive UTC

from datetime import datetime, timezone


def utcnow():
    # Current time as naive UTC, comparable with stored DateTime columns
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_iso(value):
    # Render a stored timestamp as ISO-8601 with a Z suffix
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.strftime('%Y-%m-%dT%H:%M:%SZ')


def parse_iso(value):
    # Parse ISO-8601 (with Z or offset) into naive UTC, passing None through
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed
