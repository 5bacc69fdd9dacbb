"""Repair and resolution of tool calls in stored conversation history.

Before a history is replayed to the model it goes through two passes:

1. ``sanitize_messages`` drops a trailing assistant message whose tool call
   never finished streaming its arguments (an interrupted turn).
2. ``reconcile_tool_calls`` runs the automatic handler for every pending
   tool call that has one, recording the outcome in-band and writing each
   update to the client stream as it happens.

Tool calls without a handler are left pending so a human can approve or
deny them; ``resolve_tool_decision`` applies that decision.
"""

import inspect
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any

from contract_guard.models.messages import ConversationMessage, ToolInvocationPart
from contract_guard.models.stream import ToolErrorChunk, ToolOutputChunk
from contract_guard.services.streaming import ResultSink
from contract_guard.utils.logging import get_logger

logger = get_logger(__name__)

ToolExecutor = Callable[[dict[str, Any]], Any | Awaitable[Any]]
ToolRegistry = Mapping[str, ToolExecutor | None]

DENIED_MESSAGE = "Error: User denied access to tool execution"


class ToolCallNotFoundError(LookupError):
    """No tool invocation with the given id exists in the history."""


class ToolCallNotPendingError(ValueError):
    """The tool invocation has already been resolved or is still streaming."""


def sanitize_messages(messages: Sequence[ConversationMessage]) -> list[ConversationMessage]:
    """Drop the last message if it is an assistant turn with an incomplete tool call."""
    if not messages:
        return []

    last = messages[-1]
    if last.role == "assistant" and any(part.state == "input-streaming" for part in last.tool_invocations()):
        logger.debug(f"Dropping trailing assistant message {last.id} with incomplete tool call")
        return list(messages[:-1])

    return list(messages)


async def _execute(executor: ToolExecutor, part: ToolInvocationPart, sink: ResultSink) -> ToolInvocationPart:
    """Run one executor against a pending part. Never raises."""
    try:
        result = executor(part.input or {})
        if inspect.isawaitable(result):
            result = await result
    except Exception as e:
        logger.error(f"Tool {part.tool_name} ({part.tool_call_id}) failed: {e}", exc_info=True)
        error_text = f"Error: {e!s}"
        sink.write(ToolErrorChunk(tool_call_id=part.tool_call_id, error_text=error_text))
        return part.model_copy(update={"state": "output-error", "output": error_text})

    logger.debug(f"Tool {part.tool_name} ({part.tool_call_id}) succeeded: {str(result)[:100]}")
    sink.write(ToolOutputChunk(tool_call_id=part.tool_call_id, output=result))
    return part.model_copy(update={"state": "output-available", "output": result})


async def reconcile_tool_calls(
    messages: Sequence[ConversationMessage],
    registry: ToolRegistry,
    sink: ResultSink,
) -> list[ConversationMessage]:
    """Resolve pending tool calls that have an automatic handler.

    Messages are walked in order and parts in order within each message;
    handlers are awaited one at a time. A failing handler marks only its
    own part as ``output-error``. Messages and parts come back as copies,
    never aliases of the input; ids, order and untouched parts compare
    equal, so a fully resolved history reconciles to an equal history.
    """
    reconciled: list[ConversationMessage] = []

    for message in messages:
        parts = []
        for part in message.parts:
            if isinstance(part, ToolInvocationPart) and part.is_pending:
                executor = registry.get(part.tool_name)
                if executor is not None:
                    logger.info(f"Executing pending tool call {part.tool_call_id} ({part.tool_name})")
                    parts.append(await _execute(executor, part, sink))
                    continue
                logger.debug(f"Tool call {part.tool_call_id} ({part.tool_name}) awaits a human decision")
            parts.append(part.model_copy(deep=True))

        reconciled.append(message.model_copy(update={"parts": parts}))

    return reconciled


def find_tool_invocation(
    messages: Sequence[ConversationMessage], tool_call_id: str
) -> tuple[int, int, ToolInvocationPart]:
    """Locate a tool invocation by id.

    Returns:
        (message index, part index, part)

    Raises:
        ToolCallNotFoundError: If no part carries the id
    """
    for message_index, message in enumerate(messages):
        for part_index, part in enumerate(message.parts):
            if isinstance(part, ToolInvocationPart) and part.tool_call_id == tool_call_id:
                return message_index, part_index, part
    raise ToolCallNotFoundError(f"Unknown tool call: {tool_call_id}")


async def resolve_tool_decision(
    messages: Sequence[ConversationMessage],
    tool_call_id: str,
    approved: bool,
    executors: Mapping[str, ToolExecutor],
    sink: ResultSink,
) -> list[ConversationMessage]:
    """Apply a human approval or denial to a pending tool call.

    An approved call runs its confirmation executor once, with the same
    success and failure handling as ``reconcile_tool_calls``. A denied call,
    or one with no executor, is recorded as ``output-error``.
    """
    message_index, part_index, part = find_tool_invocation(messages, tool_call_id)
    if not part.is_pending:
        raise ToolCallNotPendingError(f"Tool call {tool_call_id} is {part.state}, not awaiting a decision")

    executor = executors.get(part.tool_name)
    if approved and executor is not None:
        logger.info(f"Tool call {tool_call_id} ({part.tool_name}) approved, executing")
        resolved = await _execute(executor, part, sink)
    else:
        error_text = DENIED_MESSAGE if not approved else f"Error: No executor registered for {part.tool_name}"
        logger.info(f"Tool call {tool_call_id} ({part.tool_name}) not executed: {error_text}")
        sink.write(ToolErrorChunk(tool_call_id=tool_call_id, error_text=error_text))
        resolved = part.model_copy(update={"state": "output-error", "output": error_text})

    message = messages[message_index]
    parts = list(message.parts)
    parts[part_index] = resolved

    updated = list(messages)
    updated[message_index] = message.model_copy(update={"parts": parts})
    return updated
