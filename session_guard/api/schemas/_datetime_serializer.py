# session_guard/api/schemas/_datetime_serializer.py
from datetime import datetime, timezone


def serialize_dt(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    if dt.tzinfo is None:
        # colunas guardam UTC sem tzinfo
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()
