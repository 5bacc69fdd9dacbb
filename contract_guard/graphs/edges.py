"""Edge logic and routing for the review graph."""

from collections.abc import Collection
from typing import Literal

from contract_guard.graphs.state import ReviewState
from contract_guard.utils.logging import get_logger

logger = get_logger(__name__)


def route_agent_output(
    state: ReviewState, auto_tool_names: Collection[str], max_steps: int
) -> Literal["tools", "end"]:
    """Route from agent node based on the last model message.

    Ends the run when the model is done, when the step ceiling is reached,
    or when any requested tool needs a human decision. The calls left
    unexecuted stay pending in the history.
    """
    last_message = state.messages[-1] if state.messages else None
    tool_calls = getattr(last_message, "tool_calls", None) or []

    if not tool_calls:
        return "end"

    if state.step_count >= max_steps:
        logger.warning(f"Step ceiling ({max_steps}) reached with {len(tool_calls)} tool calls outstanding")
        return "end"

    needs_confirmation = [tc["name"] for tc in tool_calls if tc["name"] not in auto_tool_names]
    if needs_confirmation:
        logger.info(f"Tool calls awaiting confirmation: {', '.join(needs_confirmation)}")
        return "end"

    return "tools"
