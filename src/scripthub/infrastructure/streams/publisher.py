from __future__ import annotations

import asyncio

from src.scripthub.domain.events import TaskEvent
from src.scripthub.domain.repositories import AuditSink
from src.scripthub.infrastructure.streams.client import StreamsClient, SyncStreamsClient
from src.scripthub.infrastructure.streams.serializers import encode_event


class StreamsAuditSink(AuditSink):
    """Appends audit events to a capped Redis stream."""

    def __init__(
        self,
        client: StreamsClient,
        stream: str,
        *,
        maxlen: int | None = None,
        approximate: bool = True,
    ) -> None:
        self._client = client
        self._stream = stream
        self._maxlen = maxlen
        self._approximate = approximate

    async def publish(self, event: TaskEvent) -> None:
        await self._client.redis.xadd(
            self._stream,
            encode_event(event),
            maxlen=self._maxlen,
            approximate=self._approximate,
        )

    async def close(self) -> None:
        await self._client.close()


class StreamsSyncAuditSink(AuditSink):
    """
    Stream sink for the Celery worker.

    Each task runs in a fresh event loop, so the blocking client is used from
    a thread instead of an async pool tied to a loop that is later closed.
    """

    def __init__(
        self,
        client: SyncStreamsClient,
        stream: str,
        *,
        maxlen: int | None = None,
        approximate: bool = True,
    ) -> None:
        self._client = client
        self._stream = stream
        self._maxlen = maxlen
        self._approximate = approximate

    async def publish(self, event: TaskEvent) -> None:
        await asyncio.to_thread(
            self._client.redis.xadd,
            self._stream,
            encode_event(event),
            maxlen=self._maxlen,
            approximate=self._approximate,
        )

    async def close(self) -> None:
        self._client.close()
