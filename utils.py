import uuid
from datetime import datetime, timezone

def utc_now():
    return datetime.now(timezone.utc)

def ensure_utc(value):
    """Naive timestamps are UTC; SQLite hands DateTime columns back naive."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

def gen_id():
    return str(uuid.uuid4())
