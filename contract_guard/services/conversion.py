"""Conversion between stored conversation messages and LangChain messages."""

import json
from collections.abc import Sequence
from typing import Any

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage, ToolMessage

from contract_guard.models.messages import (
    ConversationMessage,
    MessageMetadata,
    TextPart,
    ToolInvocationPart,
)
from contract_guard.models.stream import (
    StreamChunk,
    TextDeltaChunk,
    ToolErrorChunk,
    ToolInputChunk,
    ToolInputStartChunk,
    ToolOutputChunk,
)


def message_text(message: BaseMessage) -> str:
    """Text content of a LangChain message.

    OpenAI models return a string; Anthropic models return a list of
    content blocks.
    """
    content = message.content
    if isinstance(content, str):
        return content
    texts = []
    for block in content:
        if isinstance(block, str):
            texts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            texts.append(block.get("text", ""))
    return "".join(texts)


def _stringify(output: Any) -> str:
    return output if isinstance(output, str) else json.dumps(output, default=str)


def parse_tool_output(content: Any) -> Any:
    """Recover structured tool output that ToolNode serialised to JSON."""
    if not isinstance(content, str):
        return content
    try:
        return json.loads(content)
    except ValueError:
        return content


def _assistant_to_langchain(message: ConversationMessage) -> list[BaseMessage]:
    """Split an assistant turn into model steps.

    A text part that follows resolved tool calls starts a new step. Tool
    calls without a result are left out: chat APIs reject a tool call that
    has no matching tool message.
    """
    converted: list[BaseMessage] = []
    text: list[str] = []
    tool_calls: list[dict[str, Any]] = []
    results: list[ToolMessage] = []

    for part in message.parts:
        if isinstance(part, TextPart):
            if tool_calls:
                converted.append(AIMessage(content="".join(text), tool_calls=tool_calls))
                converted.extend(results)
                text, tool_calls, results = [], [], []
            text.append(part.text)
        elif part.is_resolved:
            tool_calls.append({"id": part.tool_call_id, "name": part.tool_name, "args": part.input or {}})
            results.append(
                ToolMessage(
                    content=_stringify(part.output),
                    tool_call_id=part.tool_call_id,
                    name=part.tool_name,
                    status="error" if part.state == "output-error" else "success",
                )
            )

    if text or tool_calls:
        converted.append(AIMessage(content="".join(text), tool_calls=tool_calls))
        converted.extend(results)

    return converted


def to_langchain_messages(messages: Sequence[ConversationMessage]) -> list[BaseMessage]:
    """Convert stored history into model input."""
    converted: list[BaseMessage] = []
    for message in messages:
        if message.role == "user":
            converted.append(HumanMessage(content=message.text, id=message.id))
        elif message.role == "system":
            converted.append(SystemMessage(content=message.text, id=message.id))
        else:
            converted.extend(_assistant_to_langchain(message))
    return converted


class AssistantMessageBuilder:
    """Assembles the assistant message from the chunks streamed to the client."""

    def __init__(self) -> None:
        self.message = ConversationMessage(role="assistant", metadata=MessageMetadata())

    @property
    def has_content(self) -> bool:
        return bool(self.message.parts)

    def _find(self, tool_call_id: str) -> int | None:
        for index, part in enumerate(self.message.parts):
            if isinstance(part, ToolInvocationPart) and part.tool_call_id == tool_call_id:
                return index
        return None

    def _set_tool_part(self, part: ToolInvocationPart) -> None:
        index = self._find(part.tool_call_id)
        if index is None:
            self.message.parts.append(part)
        else:
            self.message.parts[index] = part

    def apply(self, chunk: StreamChunk) -> None:
        parts = self.message.parts
        if isinstance(chunk, TextDeltaChunk):
            if parts and isinstance(parts[-1], TextPart):
                parts[-1] = TextPart(text=parts[-1].text + chunk.delta)
            else:
                parts.append(TextPart(text=chunk.delta))
        elif isinstance(chunk, ToolInputStartChunk):
            self._set_tool_part(
                ToolInvocationPart(tool_call_id=chunk.tool_call_id, tool_name=chunk.tool_name, state="input-streaming")
            )
        elif isinstance(chunk, ToolInputChunk):
            self._set_tool_part(
                ToolInvocationPart(
                    tool_call_id=chunk.tool_call_id,
                    tool_name=chunk.tool_name,
                    state="input-available",
                    input=chunk.input,
                )
            )
        elif isinstance(chunk, ToolOutputChunk | ToolErrorChunk):
            # Updates for tool calls of earlier messages are not ours to record
            index = self._find(chunk.tool_call_id)
            if index is None:
                return
            part = parts[index]
            if isinstance(chunk, ToolOutputChunk):
                parts[index] = part.model_copy(update={"state": "output-available", "output": chunk.output})
            else:
                parts[index] = part.model_copy(update={"state": "output-error", "output": chunk.error_text})
