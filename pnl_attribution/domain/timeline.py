"""Stage-event helper for workflow diagnostics timelines."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def domain_build_stage_event(
    stage: str,
    status: str,
    details: dict[str, Any] | None = None,
    at_utc: datetime | None = None,
) -> dict[str, object]:
    """Build one structured timeline event payload.

    Args:
        stage: Stage name such as `check` or `resync`.
        status: Stage status marker (`started`, `completed`, `failed`).
        details: Optional structured details object.
        at_utc: Optional event timestamp, defaults to current UTC time.

    Returns:
        dict[str, object]: JSON-serializable timeline event.

    Raises:
        ValueError: Raised when stage or status is blank.
    """

    if not stage.strip():
        raise ValueError("stage must not be blank")
    if not status.strip():
        raise ValueError("status must not be blank")

    event_timestamp = at_utc or datetime.now(timezone.utc)
    event_payload: dict[str, object] = {
        "stage": stage.strip(),
        "status": status.strip(),
        "at_utc": event_timestamp.astimezone(timezone.utc).isoformat(),
    }
    if details is not None:
        event_payload["details"] = details
    return event_payload
