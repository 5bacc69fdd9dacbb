"""Session state models."""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from contract_guard.models.messages import ConversationMessage
from contract_guard.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class Session:
    """Conversation history for one chat, plus the lock that serialises tool execution on it.

    Anything that reads pending tool calls, runs them and writes the result
    back must hold ``lock`` for the whole sequence, so concurrent requests
    never run the same call twice.
    """

    session_id: str
    messages: list[ConversationMessage] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    last_activity: datetime = field(default_factory=lambda: datetime.now(UTC))
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    @property
    def busy(self) -> bool:
        """Whether a request is currently resolving tool calls on this session."""
        return self.lock.locked()

    def as_dict(self) -> dict[str, Any]:
        """History payload for the messages endpoint."""
        return {
            "session_id": self.session_id,
            "message_count": len(self.messages),
            "created_at": self.created_at,
            "last_activity": self.last_activity,
            "messages": self.messages,
        }

    def update_activity(self) -> None:
        """Update the last activity timestamp."""
        self.last_activity = datetime.now(UTC)

    def append_message(self, message: ConversationMessage) -> None:
        """Append a message to the history."""
        self.messages = [*self.messages, message]
        self.update_activity()

    def replace_messages(self, messages: list[ConversationMessage]) -> None:
        """Swap in a rewritten history."""
        logger.debug(f"Replacing {len(self.messages)} messages with {len(messages)} in session {self.session_id}")
        self.messages = list(messages)
        self.update_activity()
