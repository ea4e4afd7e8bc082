from collections import Counter
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from buildr.models.event_log import EventLog
from buildr.schemas.event_log import LogEventCreate

BUILD_TYPES = ("build_success", "build_error")
ERROR_SEVERITIES = ("error", "critical")


def _clip(value: str | None, limit: int) -> str | None:
    return value[:limit] if value else value


async def record_event(
    db: AsyncSession,
    data: LogEventCreate,
    user_agent: str | None = None,
    url: str | None = None,
) -> EventLog:
    event = EventLog(
        type=data.type,
        severity=data.severity,
        message=data.message,
        stack=data.stack,
        session_id=data.session_id,
        project_id=data.project_id,
        endpoint=data.endpoint,
        request_duration_ms=data.request_duration_ms,
        response_status=data.response_status,
        prompt=_clip(data.prompt, 2000),
        bytes_received=data.bytes_received,
        last_valid_chunk=_clip(data.last_valid_chunk, 1000),
        code_length=data.code_length,
        user_agent=user_agent,
        url=url,
        metadata_=data.metadata,
    )
    db.add(event)
    await db.commit()
    await db.refresh(event)
    return event


async def query_events(
    db: AsyncSession,
    hours: int = 24,
    limit: int = 50,
    type: str | None = None,
    severity: str | None = None,
) -> list[EventLog]:
    since = datetime.now(timezone.utc) - timedelta(hours=hours)
    query = select(EventLog).where(EventLog.created_at >= since)
    if type:
        query = query.where(EventLog.type == type)
    if severity:
        query = query.where(EventLog.severity == severity)
    result = await db.execute(query.order_by(EventLog.created_at.desc(), EventLog.id.desc()).limit(limit))
    return list(result.scalars().all())


def _average(values: list[int]) -> int:
    return round(sum(values) / len(values)) if values else 0


async def summarize_events(db: AsyncSession, hours: int = 24) -> dict:
    """Aggregate counts over the window, independent of any list filters."""
    since = datetime.now(timezone.utc) - timedelta(hours=hours)
    result = await db.execute(
        select(EventLog.type, EventLog.severity, EventLog.request_duration_ms, EventLog.code_length)
        .where(EventLog.created_at >= since)
    )
    rows = result.all()

    builds = [r for r in rows if r.type in BUILD_TYPES or r.type == "api_call"]
    return {
        "totalLogs": len(rows),
        "byType": dict(Counter(r.type for r in rows)),
        "bySeverity": dict(Counter(r.severity for r in rows)),
        "timeRange": f"Last {hours} hours",
        "builds": {
            "totalBuilds": sum(1 for r in rows if r.type in BUILD_TYPES),
            "successfulBuilds": sum(1 for r in rows if r.type == "build_success"),
            "failedBuilds": sum(1 for r in rows if r.type == "build_error"),
            "avgDurationMs": _average([r.request_duration_ms for r in builds if r.request_duration_ms]),
            "avgCodeLength": _average([r.code_length for r in builds if r.code_length]),
        },
        "generatedAt": datetime.now(timezone.utc).isoformat(),
    }


def serialize_event(event: EventLog, detailed: bool = False) -> dict:
    data = {
        "id": event.id,
        "time": event.created_at.isoformat() if event.created_at else None,
        "type": event.type,
        "severity": event.severity,
        "message": event.message,
        "endpoint": event.endpoint,
        "responseStatus": event.response_status,
        "durationMs": event.request_duration_ms,
        "bytesReceived": event.bytes_received,
    }
    if detailed:
        prompt = event.prompt or ""
        data.update({
            "prompt": prompt[:200] + ("..." if len(prompt) > 200 else ""),
            "lastChunk": (event.last_valid_chunk or "")[:300],
            "metadata": event.metadata_,
        })
    else:
        data["codeLength"] = event.code_length
    return data


async def debug_report(
    db: AsyncSession,
    hours: int = 24,
    limit: int = 50,
    type: str | None = None,
    severity: str | None = None,
) -> dict:
    events = await query_events(db, hours=hours, limit=limit, type=type, severity=severity)
    errors = [e for e in events if e.severity in ERROR_SEVERITIES][:10]
    return {
        "summary": await summarize_events(db, hours),
        "recentErrors": [serialize_event(e, detailed=True) for e in errors],
        "allLogs": [serialize_event(e) for e in events],
    }
