from __future__ import annotations

import json

from src.scripthub.domain.events import TaskEvent


def encode_event(event: TaskEvent) -> dict[str, str]:
    """Flatten an event into Redis stream fields; the payload is a JSON string."""
    return {
        "event_id": event.event_id,
        "type": event.type.value,
        "task_id": event.task_id,
        "ts": event.ts.isoformat(),
        "payload": json.dumps(event.payload),
    }
