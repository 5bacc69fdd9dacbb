"""Token estimation, validation and history truncation."""

import json
from collections.abc import Sequence
from dataclasses import dataclass

import tiktoken

from contract_guard.models.messages import ConversationMessage, TextPart, ToolInvocationPart
from contract_guard.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class TokenBudgetConfig:
    """Token limits for validation and truncation."""

    max_message_tokens: int = 16000  # Contracts are pasted whole
    max_conversation_tokens: int = 128000  # gpt-4o context window
    token_headroom: int = 4000  # Reserve tokens for response


class TokenBudget:
    """Keeps outbound conversations inside the model's context window."""

    tokenizer: tiktoken.Encoding | None = None

    def __init__(self, config: TokenBudgetConfig | None = None, encoding_model: str | None = "gpt-4o"):
        """Initialize the budget.

        Args:
            config: Token limits
            encoding_model: Model whose tiktoken encoding is used for counting;
                None falls back to the 4-characters-per-token estimate
        """
        self.config = config or TokenBudgetConfig()

        if encoding_model is None:
            return
        try:
            self.tokenizer = tiktoken.encoding_for_model(encoding_model)
        except Exception:
            # Unknown model name or encoding files unavailable offline
            self.tokenizer = None

    def estimate_tokens(self, text: str) -> int:
        """Estimate token count for a piece of text."""
        try:
            return len(self.tokenizer.encode(text)) if self.tokenizer else len(text) // 4
        except Exception:
            # Fallback: roughly 4 characters per token
            return len(text) // 4

    def estimate_message_tokens(self, message: ConversationMessage) -> int:
        content = ""
        for part in message.parts:
            if isinstance(part, TextPart):
                content += part.text
            elif isinstance(part, ToolInvocationPart):
                content += part.tool_name + json.dumps(part.input or {}, default=str)
                if part.output is not None:
                    content += json.dumps(part.output, default=str)
        return self.estimate_tokens(content)

    def validate_message(self, text: str) -> None:
        """Validate that a single user message fits.

        Raises:
            ValueError: If message exceeds token limit
        """
        token_count = self.estimate_tokens(text)
        if token_count > self.config.max_message_tokens:
            raise ValueError(
                f"Message exceeds token limit: {token_count} tokens > {self.config.max_message_tokens} limit"
            )

    def truncate(self, messages: Sequence[ConversationMessage], system_prompt: str) -> list[ConversationMessage]:
        """Drop the oldest messages until the conversation fits.

        Only the outbound copy is shortened; stored history is untouched.

        Raises:
            ValueError: If even the newest message does not fit on its own
        """
        if not messages:
            return []

        available_tokens = (
            self.config.max_conversation_tokens - self.config.token_headroom - self.estimate_tokens(system_prompt)
        )

        truncated: list[ConversationMessage] = []
        current_tokens = 0

        for message in reversed(messages):
            message_tokens = self.estimate_message_tokens(message)
            if current_tokens + message_tokens > available_tokens:
                break
            truncated.insert(0, message)
            current_tokens += message_tokens

        if not truncated:
            raise ValueError(
                f"Latest message exceeds the conversation token limit: "
                f"{self.estimate_message_tokens(messages[-1])} tokens > {available_tokens} available"
            )

        if len(truncated) < len(messages):
            logger.warning(
                f"Truncated conversation from {len(messages)} to {len(truncated)} messages "
                f"to fit within {available_tokens} token limit"
            )

        return truncated
