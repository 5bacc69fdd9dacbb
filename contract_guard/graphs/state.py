"""State definitions for the review graph."""

from collections.abc import Sequence
from typing import Annotated

from langchain_core.messages import BaseMessage
from langgraph.graph import add_messages
from pydantic import BaseModel


class ReviewState(BaseModel):
    """State passed through the agent and tools nodes.

    The system prompt is not stored here; the agent node prepends it on
    every model call.
    """

    messages: Annotated[Sequence[BaseMessage], add_messages]

    # Model calls made so far in this run
    step_count: int = 0

    total_input_tokens: int = 0
    total_output_tokens: int = 0

    class Config:
        """Pydantic configuration."""

        arbitrary_types_allowed = True  # Allow BaseMessage types
