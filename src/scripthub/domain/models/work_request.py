from pydantic import BaseModel, ConfigDict, Field


class WorkRequest(BaseModel):
    """Outbound request asking the worker to transform a task's script."""

    model_config = ConfigDict(populate_by_name=True)

    task_id: str = Field(description="Identifier echoed back in the callback.")
    reference_input: str = Field(
        serialization_alias="reference_script", description="Script to transform."
    )
    outcome_goal: str = Field(
        serialization_alias="outcome_description", description="Desired outcome."
    )
    callback_url: str | None = Field(
        default=None, description="Where the worker should post its result."
    )


class WorkerResponse(BaseModel):
    success: bool = Field(default=True, description="Whether the worker accepted the request.")
    message: str | None = Field(default=None, description="Optional worker message.")
