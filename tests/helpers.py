"""Test doubles and message builders."""

from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_core.outputs import ChatGeneration, ChatResult
from pydantic import Field

from contract_guard.models.messages import ConversationMessage, TextPart, ToolInvocationPart


class ScriptedChatModel(BaseChatModel):
    """Chat model that replays canned responses and records what it was sent.

    A response that is an exception is raised instead of returned.
    """

    responses: list[Any] = Field(default_factory=list)
    calls: list[Any] = Field(default_factory=list)

    @property
    def _llm_type(self) -> str:
        return "scripted"

    def _generate(self, messages, stop=None, run_manager=None, **kwargs) -> ChatResult:
        self.calls.append(list(messages))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return ChatResult(generations=[ChatGeneration(message=response)])

    def bind_tools(self, tools, **kwargs):
        return self


class ListSink:
    """Result sink that records every chunk."""

    def __init__(self):
        self.chunks = []

    def write(self, chunk):
        self.chunks.append(chunk)


def tool_call(call_id: str, name: str, args: dict[str, Any]) -> dict[str, Any]:
    return {"id": call_id, "name": name, "args": args, "type": "tool_call"}


def user_message(text: str, message_id: str = "msg_user") -> ConversationMessage:
    return ConversationMessage(id=message_id, role="user", parts=[TextPart(text=text)])


def assistant_with_tool(
    tool_name: str,
    state: str,
    tool_call_id: str = "call_1",
    tool_input: dict[str, Any] | None = None,
    message_id: str = "msg_assistant",
    output: Any = None,
) -> ConversationMessage:
    return ConversationMessage(
        id=message_id,
        role="assistant",
        parts=[
            ToolInvocationPart(
                tool_call_id=tool_call_id,
                tool_name=tool_name,
                state=state,
                input=tool_input,
                output=output,
            )
        ],
    )
