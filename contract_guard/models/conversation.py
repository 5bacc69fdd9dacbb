"""Request and response models for the HTTP API."""

from datetime import datetime

from pydantic import BaseModel, model_validator

from contract_guard.models.messages import ConversationMessage, WireModel

DEFAULT_DEBUG_CONTRACT = "Test contract: The user agrees to wash the company car every day for no pay."


class ChatRequest(WireModel):
    """Request body for the chat endpoint.

    Either a single new ``message`` is appended to the stored history, or a
    full ``messages`` list replaces it.
    """

    message: str | None = None
    messages: list[ConversationMessage] | None = None

    @model_validator(mode="after")
    def check_payload(self) -> "ChatRequest":
        if self.message is None and self.messages is None:
            raise ValueError("Either 'message' or 'messages' is required")
        return self


class ToolDecisionRequest(WireModel):
    """Human decision for a tool call that needs confirmation."""

    tool_call_id: str
    approved: bool


class DebugContractRequest(WireModel):
    """Optional body for the debug review endpoint."""

    contract_text: str = DEFAULT_DEBUG_CONTRACT


class HistoryResponse(WireModel):
    """Stored conversation history for a session."""

    session_id: str
    message_count: int
    created_at: datetime
    last_activity: datetime
    messages: list[ConversationMessage]


class KeyCheckResponse(BaseModel):
    """Response model for the credential check endpoint."""

    success: bool


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    timestamp: datetime
    version: str
