from pydantic import ConfigDict
from pydantic_settings import BaseSettings

from src.scripthub.domain.repositories import AuditSink
from src.scripthub.infrastructure.streams.client import StreamsClient, SyncStreamsClient
from src.scripthub.infrastructure.streams.publisher import StreamsAuditSink, StreamsSyncAuditSink


class StreamSettings(BaseSettings):
    """Configuration for the Redis stream receiving audit events."""
    REDIS_URL: str = "redis://redis:6379/0"
    AUDIT_STREAM_ENABLED: bool = False
    AUDIT_STREAM_NAME: str = "scripthub:audit"
    AUDIT_STREAM_MAXLEN: int | None = 100_000

    model_config = ConfigDict(env_file=".env", extra="ignore")


def build_audit_stream_sink(
    settings: StreamSettings | None = None, *, sync: bool = False
) -> AuditSink | None:
    """
    Create the stream sink, or None when audit streaming is disabled.

    ``sync`` selects the blocking client used by the Celery worker, whose tasks
    each run in their own short-lived event loop.
    """
    if settings is None:
        settings = StreamSettings()
    if not settings.AUDIT_STREAM_ENABLED:
        return None
    if sync:
        return StreamsSyncAuditSink(
            SyncStreamsClient(settings.REDIS_URL),
            settings.AUDIT_STREAM_NAME,
            maxlen=settings.AUDIT_STREAM_MAXLEN,
        )
    return StreamsAuditSink(
        StreamsClient(settings.REDIS_URL),
        settings.AUDIT_STREAM_NAME,
        maxlen=settings.AUDIT_STREAM_MAXLEN,
    )
