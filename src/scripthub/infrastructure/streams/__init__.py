from src.scripthub.infrastructure.streams.client import StreamsClient, SyncStreamsClient
from src.scripthub.infrastructure.streams.publisher import StreamsAuditSink, StreamsSyncAuditSink

__all__ = [
    "StreamsClient",
    "SyncStreamsClient",
    "StreamsAuditSink",
    "StreamsSyncAuditSink",
]
