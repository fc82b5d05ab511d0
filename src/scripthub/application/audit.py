from __future__ import annotations

import logging
from collections.abc import Sequence

from src.scripthub.domain.events import TaskEvent
from src.scripthub.domain.repositories import AuditSink

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("scripthub.audit")


class LoggingAuditSink(AuditSink):
    """Writes audit events to the ``scripthub.audit`` logger."""

    async def publish(self, event: TaskEvent) -> None:
        audit_logger.info(
            event.type.value,
            extra={
                "event_id": event.event_id,
                "task_id": event.task_id,
                "ts": event.ts.isoformat(),
                "payload": event.payload,
            },
        )


class AuditLog:
    """Fans task events out to sinks; a failing sink never fails the caller."""

    def __init__(self, sinks: Sequence[AuditSink] | None = None) -> None:
        self._sinks = list(sinks) if sinks is not None else [LoggingAuditSink()]

    async def record(self, event: TaskEvent) -> None:
        for sink in self._sinks:
            try:
                await sink.publish(event)
            except Exception:
                logger.warning(
                    "Audit sink failed to publish event",
                    extra={"sink": type(sink).__name__, "type": event.type.value},
                    exc_info=True,
                )

    async def close(self) -> None:
        """Release sink connections; sinks without resources are skipped."""
        for sink in self._sinks:
            close = getattr(sink, "close", None)
            if close is None:
                continue
            try:
                await close()
            except Exception:
                logger.warning(
                    "Audit sink failed to close",
                    extra={"sink": type(sink).__name__},
                    exc_info=True,
                )
