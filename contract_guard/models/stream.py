"""Chunks written to the client-facing message stream."""

from typing import Annotated, Any, Literal

from pydantic import Field

from contract_guard.models.messages import WireModel


class StartChunk(WireModel):
    """Opens a new assistant message."""

    type: Literal["start"] = "start"
    message_id: str


class TextDeltaChunk(WireModel):
    """Incremental assistant text."""

    type: Literal["text-delta"] = "text-delta"
    delta: str


class ToolInputStartChunk(WireModel):
    """Tool call whose arguments have started streaming."""

    type: Literal["tool-input-start"] = "tool-input-start"
    tool_call_id: str
    tool_name: str


class ToolInputChunk(WireModel):
    """Tool call whose arguments are final."""

    type: Literal["tool-input-available"] = "tool-input-available"
    tool_call_id: str
    tool_name: str
    input: dict[str, Any] | None = None


class ToolOutputChunk(WireModel):
    """Tool call that produced an output."""

    type: Literal["tool-output-available"] = "tool-output-available"
    tool_call_id: str
    output: Any = None


class ToolErrorChunk(WireModel):
    """Tool call that failed."""

    type: Literal["tool-output-error"] = "tool-output-error"
    tool_call_id: str
    error_text: str


class ErrorChunk(WireModel):
    """Best-effort error text for the client when the reply could not be built."""

    type: Literal["error"] = "error"
    error_text: str


class FinishChunk(WireModel):
    """Closes the assistant message."""

    type: Literal["finish"] = "finish"


StreamChunk = Annotated[
    StartChunk
    | TextDeltaChunk
    | ToolInputStartChunk
    | ToolInputChunk
    | ToolOutputChunk
    | ToolErrorChunk
    | ErrorChunk
    | FinishChunk,
    Field(discriminator="type"),
]
