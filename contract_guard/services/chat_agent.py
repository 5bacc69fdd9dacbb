"""Chat agent: turns a session's history into a streamed model reply."""

from collections.abc import AsyncIterator, Callable

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from contract_guard.clients.model import ModelConfig, ModelRateLimiter, create_chat_model
from contract_guard.graphs.prompts import CONTRACT_SYSTEM_PROMPT, DEBUG_SYSTEM_PROMPT, debug_review_prompt
from contract_guard.graphs.review import create_review_graph, stream_review
from contract_guard.models.messages import ConversationMessage, ToolInvocationPart
from contract_guard.models.session import Session
from contract_guard.models.stream import ErrorChunk, FinishChunk, StartChunk, StreamChunk
from contract_guard.services.conversion import AssistantMessageBuilder, message_text, to_langchain_messages
from contract_guard.services.streaming import UIMessageStream, create_ui_message_stream
from contract_guard.services.tokens import TokenBudget
from contract_guard.services.tool_calls import (
    find_tool_invocation,
    reconcile_tool_calls,
    resolve_tool_decision,
    sanitize_messages,
)
from contract_guard.tools.registry import ToolsRegistry, get_tools_registry
from contract_guard.utils.logging import get_logger

logger = get_logger(__name__)


class CollectingSink:
    """Result sink that keeps chunks in memory, for non-streaming callers."""

    def __init__(self) -> None:
        self.chunks: list[StreamChunk] = []

    def write(self, chunk: StreamChunk) -> None:
        self.chunks.append(chunk)


class ChatAgent:
    """Contract review chat agent.

    Each reply repairs the stored history (sanitize, then reconcile pending
    tool calls), sends it to the model through the review graph, and streams
    the result back while recording the assistant message.
    """

    def __init__(
        self,
        tools_registry: ToolsRegistry | None = None,
        model_config: ModelConfig | None = None,
        model_factory: Callable[[ModelConfig], BaseChatModel] = create_chat_model,
        token_budget: TokenBudget | None = None,
        system_prompt: str = CONTRACT_SYSTEM_PROMPT,
    ):
        self.tools_registry = tools_registry or get_tools_registry()
        self.model_config = model_config or ModelConfig()
        self.model_factory = model_factory
        self.token_budget = token_budget or TokenBudget()
        self.system_prompt = system_prompt
        self.rate_limiter = ModelRateLimiter(
            self.model_config.requests_per_minute,
            self.model_config.tokens_per_minute,
        )
        self._model: BaseChatModel | None = None
        self._graph = None

    @property
    def model(self) -> BaseChatModel:
        # Built on first use so a missing API key only fails the model call
        if self._model is None:
            self._model = self.model_factory(self.model_config)
        return self._model

    @property
    def graph(self):
        if self._graph is None:
            self._graph = create_review_graph(
                self.model,
                self.tools_registry.get_langchain_tools(),
                [tool.name for tool in self.tools_registry.get_auto_tools()],
                max_steps=self.model_config.max_steps,
                system_prompt=self.system_prompt,
                rate_limiter=self.rate_limiter,
                token_budget=self.token_budget,
            )
        return self._graph

    def add_user_message(self, session: Session, text: str) -> ConversationMessage:
        """Append a user message after dropping an interrupted assistant turn.

        Raises:
            ValueError: If the message exceeds the token limit
        """
        self.token_budget.validate_message(text)
        session.replace_messages(sanitize_messages(session.messages))

        message = ConversationMessage.user(text)
        session.append_message(message)
        return message

    def replace_history(self, session: Session, messages: list[ConversationMessage]) -> None:
        """Swap in a history supplied by the client.

        Raises:
            ValueError: If the newest user message exceeds the token limit
        """
        latest_user = next((m for m in reversed(messages) if m.role == "user"), None)
        if latest_user is not None:
            self.token_budget.validate_message(latest_user.text)
        session.replace_messages(messages)

    async def execute(self, session: Session, stream: UIMessageStream) -> None:
        """Produce one assistant reply into ``stream``."""
        builder = AssistantMessageBuilder()
        stream.write(StartChunk(message_id=builder.message.id))

        try:
            async with session.lock:
                cleaned = sanitize_messages(session.messages)
                logger.debug(f"Session {session.session_id}: {len(cleaned)} messages after cleanup")

                processed = await reconcile_tool_calls(cleaned, self.tools_registry.auto_executors(), stream)
                session.replace_messages(processed)

            outbound = self.token_budget.truncate(processed, self.system_prompt)
            model_messages = to_langchain_messages(outbound)
            logger.info(f"Sending {len(model_messages)} messages to the model for session {session.session_id}")

            async for chunk in stream_review(self.graph, model_messages, self.model_config.max_steps):
                builder.apply(chunk)
                stream.write(chunk)

        except Exception as e:
            logger.error(f"Reply failed for session {session.session_id}: {e}", exc_info=True)
            stream.write(ErrorChunk(error_text=f"Error: {e!s}"))

        finally:
            # Also runs on cancellation, so an interrupted turn is kept and
            # repaired on the next request
            if builder.has_content:
                session.append_message(builder.message)
            stream.write(FinishChunk())

    def stream_reply(self, session: Session) -> AsyncIterator[StreamChunk]:
        """Stream the assistant reply for the session's current history."""
        return create_ui_message_stream(lambda stream: self.execute(session, stream))

    async def apply_tool_decision(self, session: Session, tool_call_id: str, approved: bool) -> ToolInvocationPart:
        """Record a human approval or denial and return the resolved tool part.

        Raises:
            ToolCallNotFoundError: If the session has no such tool call
            ToolCallNotPendingError: If the tool call is already resolved
        """
        sink = CollectingSink()
        async with session.lock:
            updated = await resolve_tool_decision(
                session.messages,
                tool_call_id,
                approved,
                self.tools_registry.confirmation_executors(),
                sink,
            )
            session.replace_messages(updated)

        _, _, part = find_tool_invocation(updated, tool_call_id)
        return part

    async def debug_review(self, contract_text: str) -> str:
        """One-shot plain-text risk answer, without history or tools."""
        logger.info(f"Running debug review on {len(contract_text)} characters")
        response = await self.model.ainvoke(
            [SystemMessage(content=DEBUG_SYSTEM_PROMPT), HumanMessage(content=debug_review_prompt(contract_text))]
        )
        return message_text(response)


_chat_agent: ChatAgent | None = None


def get_chat_agent() -> ChatAgent:
    """Get or create chat agent instance."""
    global _chat_agent
    if _chat_agent is None:
        _chat_agent = ChatAgent()
    return _chat_agent
