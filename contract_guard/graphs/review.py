"""Contract review graph and its translation into client stream chunks."""

from collections.abc import AsyncIterator, Sequence
from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, ToolMessage
from langchain_core.tools import BaseTool
from langgraph.graph import END, StateGraph
from langgraph.prebuilt import ToolNode

from contract_guard.clients.model import ModelRateLimiter
from contract_guard.graphs.edges import route_agent_output
from contract_guard.graphs.nodes import make_agent_node
from contract_guard.graphs.prompts import CONTRACT_SYSTEM_PROMPT
from contract_guard.graphs.state import ReviewState
from contract_guard.models.stream import (
    StreamChunk,
    TextDeltaChunk,
    ToolErrorChunk,
    ToolInputChunk,
    ToolInputStartChunk,
    ToolOutputChunk,
)
from contract_guard.services.conversion import message_text, parse_tool_output
from contract_guard.services.tokens import TokenBudget
from contract_guard.utils.logging import get_logger

logger = get_logger(__name__)


def create_review_graph(
    model: BaseChatModel,
    tools: Sequence[BaseTool],
    auto_tool_names: Sequence[str],
    max_steps: int = 10,
    system_prompt: str = CONTRACT_SYSTEM_PROMPT,
    rate_limiter: ModelRateLimiter | None = None,
    token_budget: TokenBudget | None = None,
):
    """Create the review graph.

    The agent node calls the model with every tool bound. Calls to tools in
    ``auto_tool_names`` run in the tools node and loop back to the agent;
    anything else ends the run with the call left pending.

    Args:
        model: Chat model to drive the agent node
        tools: All tools the model may call
        auto_tool_names: Tools that run without a human decision
        max_steps: Maximum number of model calls per run

    Returns:
        Compiled LangGraph workflow
    """
    logger.info(f"Creating review graph with {len(tools)} tools, max_steps: {max_steps}")

    auto_names = set(auto_tool_names)
    auto_tools = [tool for tool in tools if tool.name in auto_names]

    workflow = StateGraph(ReviewState)

    workflow.add_node(
        "agent",
        make_agent_node(
            model,
            tools,
            system_prompt,
            rate_limiter or ModelRateLimiter(),
            token_budget or TokenBudget(),
        ),
    )
    # A raising tool becomes an error ToolMessage and the model sees it
    workflow.add_node("tools", ToolNode(auto_tools, handle_tool_errors=True))

    workflow.set_entry_point("agent")

    def route(state: ReviewState) -> str:
        return route_agent_output(state, auto_names, max_steps)

    workflow.add_conditional_edges("agent", route, {"tools": "tools", "end": END})
    workflow.add_edge("tools", "agent")

    return workflow.compile()


def _agent_chunks(message: BaseMessage) -> list[StreamChunk]:
    chunks: list[StreamChunk] = []
    text = message_text(message)
    if text:
        chunks.append(TextDeltaChunk(delta=text))
    for tool_call_chunk in getattr(message, "tool_call_chunks", None) or []:
        # Only the first chunk of a streamed tool call carries its id and name
        if tool_call_chunk.get("id") and tool_call_chunk.get("name"):
            chunks.append(ToolInputStartChunk(tool_call_id=tool_call_chunk["id"], tool_name=tool_call_chunk["name"]))
    return chunks


def _update_chunks(node: str, update: dict[str, Any] | None) -> list[StreamChunk]:
    chunks: list[StreamChunk] = []
    for message in (update or {}).get("messages", []):
        if node == "agent" and isinstance(message, AIMessage):
            for tool_call in message.tool_calls:
                chunks.append(
                    ToolInputChunk(tool_call_id=tool_call["id"], tool_name=tool_call["name"], input=tool_call["args"])
                )
        elif node == "tools" and isinstance(message, ToolMessage):
            if message.status == "error":
                chunks.append(ToolErrorChunk(tool_call_id=message.tool_call_id, error_text=str(message.content)))
            else:
                chunks.append(
                    ToolOutputChunk(tool_call_id=message.tool_call_id, output=parse_tool_output(message.content))
                )
    return chunks


async def stream_review(graph, messages: Sequence[BaseMessage], max_steps: int = 10) -> AsyncIterator[StreamChunk]:
    """Run the graph and yield client stream chunks as the model produces them.

    Text arrives token by token from the ``messages`` stream mode; finished
    tool calls and tool results come from node ``updates``.
    """
    config = {"recursion_limit": 2 * max_steps + 1}
    last_agent_update: dict[str, Any] = {}

    async for mode, payload in graph.astream(
        {"messages": list(messages)}, config, stream_mode=["messages", "updates"]
    ):
        if mode == "messages":
            message, metadata = payload
            if metadata.get("langgraph_node") == "agent" and isinstance(message, AIMessage):
                for chunk in _agent_chunks(message):
                    yield chunk
        elif mode == "updates":
            for node, update in payload.items():
                if node == "agent" and update:
                    last_agent_update = update
                for chunk in _update_chunks(node, update):
                    yield chunk

    logger.info(
        f"Review finished after {last_agent_update.get('step_count', 0)} model calls: "
        f"{last_agent_update.get('total_input_tokens', 0)} input tokens, "
        f"{last_agent_update.get('total_output_tokens', 0)} output tokens"
    )
