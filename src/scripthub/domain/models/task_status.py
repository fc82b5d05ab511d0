from enum import Enum


class TaskStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def values(cls) -> list[str]:
        return [status.value for status in cls]

    def is_final(self) -> bool:
        """Completed and failed tasks never leave their state."""
        return self in _FINAL_STATES

    def can_process(self) -> bool:
        """Whether a processing, completion or failure transition may be attempted."""
        return self in _PROCESSABLE_STATES


_FINAL_STATES = frozenset({TaskStatus.COMPLETED, TaskStatus.FAILED})
_PROCESSABLE_STATES = frozenset({TaskStatus.PENDING, TaskStatus.PROCESSING})
