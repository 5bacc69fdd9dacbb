"""Node implementations for the review graph."""

from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage, SystemMessage
from langchain_core.runnables import RunnableConfig
from langchain_core.tools import BaseTool

from contract_guard.clients.model import ModelRateLimiter
from contract_guard.graphs.state import ReviewState
from contract_guard.services.conversion import message_text
from contract_guard.services.tokens import TokenBudget
from contract_guard.utils.logging import get_logger

logger = get_logger(__name__)

AgentNode = Callable[[ReviewState, RunnableConfig], Awaitable[dict[str, Any]]]


def estimate_request_tokens(budget: TokenBudget, system_prompt: str, messages: Sequence[BaseMessage]) -> int:
    """Rough size of a model request, used for the tokens-per-minute limit."""
    return budget.estimate_tokens(system_prompt + "".join(message_text(m) for m in messages))


def make_agent_node(
    model: BaseChatModel,
    tools: Sequence[BaseTool],
    system_prompt: str,
    rate_limiter: ModelRateLimiter,
    token_budget: TokenBudget,
) -> AgentNode:
    """Build the agent node around a chat model bound to every tool.

    Tools needing confirmation are bound too, so the model can ask for them;
    routing decides whether they run.
    """
    bound_model = model.bind_tools(list(tools)) if tools else model

    async def agent_node(state: ReviewState, config: RunnableConfig) -> dict[str, Any]:
        """Call the model once and record the response and token usage."""
        step = state.step_count + 1
        logger.info(f"Agent step {step} with {len(state.messages)} messages")

        await rate_limiter.check_rate_limit(estimate_request_tokens(token_budget, system_prompt, state.messages))

        response = await bound_model.ainvoke([SystemMessage(content=system_prompt), *state.messages], config)

        usage = getattr(response, "usage_metadata", None) or {}
        tool_calls = getattr(response, "tool_calls", None) or []
        if tool_calls:
            logger.info(f"Agent requesting {len(tool_calls)} tool calls: {[tc['name'] for tc in tool_calls]}")

        return {
            "messages": [response],
            "step_count": step,
            "total_input_tokens": state.total_input_tokens + usage.get("input_tokens", 0),
            "total_output_tokens": state.total_output_tokens + usage.get("output_tokens", 0),
        }

    return agent_node
