"""Conversation message and part models."""

from datetime import UTC, datetime
from typing import Annotated, Any, Literal

from cuid2 import cuid_wrapper
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

cuid = cuid_wrapper()

ToolState = Literal["input-streaming", "input-available", "output-available", "output-error"]
Role = Literal["user", "assistant", "system"]


def generate_id() -> str:
    """Generate a CUID for messages and tool calls."""
    return cuid()


class WireModel(BaseModel):
    """Base model serialised with camelCase keys for the chat client."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class TextPart(WireModel):
    """Plain text content within a message."""

    type: Literal["text"] = "text"
    text: str


class ToolInvocationPart(WireModel):
    """A request from the model to run a named tool."""

    type: Literal["tool-invocation"] = "tool-invocation"
    tool_call_id: str
    tool_name: str
    state: ToolState
    input: dict[str, Any] | None = None
    output: Any = None

    @property
    def is_pending(self) -> bool:
        """Arguments are final but no output has been produced yet."""
        return self.state == "input-available"

    @property
    def is_resolved(self) -> bool:
        return self.state in ("output-available", "output-error")


Part = Annotated[TextPart | ToolInvocationPart, Field(discriminator="type")]


class MessageMetadata(WireModel):
    """Optional bookkeeping attached to a message."""

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ConversationMessage(WireModel):
    """One turn of a conversation."""

    id: str = Field(default_factory=generate_id)
    role: Role
    parts: list[Part] = Field(default_factory=list)
    metadata: MessageMetadata | None = None

    @property
    def text(self) -> str:
        """Concatenated text of all text parts."""
        return "".join(part.text for part in self.parts if isinstance(part, TextPart))

    def tool_invocations(self) -> list[ToolInvocationPart]:
        return [part for part in self.parts if isinstance(part, ToolInvocationPart)]

    @classmethod
    def user(cls, text: str) -> "ConversationMessage":
        """Build a user message holding a single text part."""
        return cls(role="user", parts=[TextPart(text=text)], metadata=MessageMetadata())
