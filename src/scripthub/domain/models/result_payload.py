from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PayloadKind(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    MALFORMED = "malformed"


class ResultPayload(BaseModel):
    """Callback body sent by the worker once a task has been processed."""

    model_config = ConfigDict(populate_by_name=True)

    output: str | None = Field(
        default=None, alias="new_script", description="Transformed script."
    )
    metadata: dict[str, Any] | None = Field(
        default=None, alias="analysis", description="Worker analysis of the change."
    )
    error_message: str | None = Field(
        default=None, alias="error", description="Error reported by the worker."
    )

    @property
    def kind(self) -> PayloadKind:
        # Output wins over an error that arrives alongside it.
        if self.output:
            return PayloadKind.SUCCESS
        if self.error_message:
            return PayloadKind.FAILURE
        return PayloadKind.MALFORMED

    def is_success(self) -> bool:
        return self.kind == PayloadKind.SUCCESS

    def is_error(self) -> bool:
        return self.kind == PayloadKind.FAILURE

    @classmethod
    def success(cls, output: str, metadata: dict[str, Any] | None = None) -> ResultPayload:
        return cls(output=output, metadata=metadata)

    @classmethod
    def error(cls, message: str) -> ResultPayload:
        return cls(error_message=message)
