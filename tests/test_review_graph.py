"""Tests for the review graph and its stream translation."""

import pytest
from helpers import ScriptedChatModel, tool_call
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage
from langchain_core.tools import tool

from contract_guard.graphs.edges import route_agent_output
from contract_guard.graphs.review import create_review_graph, stream_review
from contract_guard.graphs.state import ReviewState
from contract_guard.models.stream import TextDeltaChunk, ToolErrorChunk, ToolInputChunk, ToolOutputChunk
from contract_guard.tools.registry import ToolsRegistry

AUTO_TOOLS = ["lookup_clause", "scan_risk_terms"]


@tool
def offline_lookup(clause: str) -> str:
    """Look up a clause in an index that is down."""
    raise RuntimeError("clause index offline")


def _graph(model, token_budget, max_steps=10):
    registry = ToolsRegistry()
    return create_review_graph(
        model,
        registry.get_langchain_tools(),
        AUTO_TOOLS,
        max_steps=max_steps,
        token_budget=token_budget,
    )


async def _run(graph, text="Review: the tenant waives all claims.", max_steps=10):
    return [chunk async for chunk in stream_review(graph, [HumanMessage(content=text)], max_steps)]


class TestRouteAgentOutput:
    """Tests for routing after the agent node."""

    def test_no_tool_calls_ends(self):
        """Test that a plain answer ends the run."""
        state = ReviewState(messages=[AIMessage(content="done")])
        assert route_agent_output(state, AUTO_TOOLS, 10) == "end"

    def test_auto_tool_calls_go_to_tools(self):
        """Test that auto tools are executed."""
        state = ReviewState(
            messages=[AIMessage(content="", tool_calls=[tool_call("c1", "lookup_clause", {"clause": "x"})])],
            step_count=1,
        )
        assert route_agent_output(state, AUTO_TOOLS, 10) == "tools"

    def test_confirmation_tool_ends(self):
        """Test that a call needing confirmation stops the run."""
        state = ReviewState(
            messages=[
                AIMessage(
                    content="",
                    tool_calls=[
                        tool_call("c1", "lookup_clause", {"clause": "x"}),
                        tool_call("c2", "request_attorney_review", {"summary": "x"}),
                    ],
                )
            ],
            step_count=1,
        )
        assert route_agent_output(state, AUTO_TOOLS, 10) == "end"

    def test_step_ceiling_ends(self):
        """Test that the step ceiling stops further tool rounds."""
        state = ReviewState(
            messages=[AIMessage(content="", tool_calls=[tool_call("c1", "lookup_clause", {"clause": "x"})])],
            step_count=10,
        )
        assert route_agent_output(state, AUTO_TOOLS, 10) == "end"


class TestReviewGraph:
    """Tests for running the graph end to end with a scripted model."""

    @pytest.mark.asyncio
    async def test_text_reply_streams(self, token_budget, text_reply):
        """Test that a plain reply arrives as text."""
        model = ScriptedChatModel(responses=[text_reply])

        chunks = await _run(_graph(model, token_budget))

        text = "".join(c.delta for c in chunks if isinstance(c, TextDeltaChunk))
        assert text == text_reply.content

    @pytest.mark.asyncio
    async def test_system_prompt_prepended(self, token_budget, text_reply):
        """Test that the model sees the contract system prompt first."""
        model = ScriptedChatModel(responses=[text_reply])

        await _run(_graph(model, token_budget))

        sent = model.calls[0]
        assert isinstance(sent[0], SystemMessage)
        assert "Contract Guard" in sent[0].content
        assert isinstance(sent[1], HumanMessage)

    @pytest.mark.asyncio
    async def test_auto_tool_runs_and_loops(self, token_budget):
        """Test that an auto tool executes and the model is called again."""
        model = ScriptedChatModel(
            responses=[
                AIMessage(content="", tool_calls=[tool_call("c1", "lookup_clause", {"clause": "termination"})]),
                AIMessage(content="Analysis complete"),
            ]
        )

        chunks = await _run(_graph(model, token_budget))

        inputs = [c for c in chunks if isinstance(c, ToolInputChunk)]
        outputs = [c for c in chunks if isinstance(c, ToolOutputChunk)]
        assert inputs == [ToolInputChunk(tool_call_id="c1", tool_name="lookup_clause", input={"clause": "termination"})]
        assert outputs[0].tool_call_id == "c1"
        assert outputs[0].output.startswith("Termination:")
        assert "".join(c.delta for c in chunks if isinstance(c, TextDeltaChunk)) == "Analysis complete"

        second_call = model.calls[1]
        assert isinstance(second_call[-1], ToolMessage)
        assert second_call[-1].tool_call_id == "c1"

    @pytest.mark.asyncio
    async def test_structured_tool_output(self, token_budget):
        """Test that list output from a tool reaches the stream as data."""
        model = ScriptedChatModel(
            responses=[
                AIMessage(
                    content="",
                    tool_calls=[tool_call("c1", "scan_risk_terms", {"contract_text": "work for no pay"})],
                ),
                AIMessage(content="done"),
            ]
        )

        chunks = await _run(_graph(model, token_budget))

        output = next(c for c in chunks if isinstance(c, ToolOutputChunk)).output
        assert output == [{"term": "for no pay", "risk": "high", "note": "Work without compensation."}]

    @pytest.mark.asyncio
    async def test_confirmation_tool_left_pending(self, token_budget):
        """Test that a confirmation tool is announced but not executed."""
        model = ScriptedChatModel(
            responses=[
                AIMessage(
                    content="I suggest an attorney review.",
                    tool_calls=[tool_call("c1", "request_attorney_review", {"summary": "Uncapped liability lease"})],
                )
            ]
        )

        chunks = await _run(_graph(model, token_budget))

        assert any(isinstance(c, ToolInputChunk) and c.tool_call_id == "c1" for c in chunks)
        assert not any(isinstance(c, ToolOutputChunk) for c in chunks)
        assert len(model.calls) == 1

    @pytest.mark.asyncio
    async def test_step_ceiling(self, token_budget):
        """Test that the model is called at most max_steps times."""
        looping = [
            AIMessage(content="", tool_calls=[tool_call(f"c{i}", "lookup_clause", {"clause": "payment"})])
            for i in range(5)
        ]
        model = ScriptedChatModel(responses=looping)

        await _run(_graph(model, token_budget, max_steps=3), max_steps=3)

        assert len(model.calls) == 3

    @pytest.mark.asyncio
    async def test_failing_auto_tool_reported_in_band(self, token_budget):
        """Test that a raising auto tool becomes a tool error and the model answers anyway."""
        model = ScriptedChatModel(
            responses=[
                AIMessage(content="", tool_calls=[tool_call("c1", "offline_lookup", {"clause": "payment"})]),
                AIMessage(content="The clause index is unavailable."),
            ]
        )
        graph = create_review_graph(model, [offline_lookup], ["offline_lookup"], token_budget=token_budget)

        chunks = await _run(graph)

        errors = [c for c in chunks if isinstance(c, ToolErrorChunk)]
        assert errors[0].tool_call_id == "c1"
        assert "clause index offline" in errors[0].error_text
        assert "".join(c.delta for c in chunks if isinstance(c, TextDeltaChunk)) == "The clause index is unavailable."
        assert len(model.calls) == 2

    @pytest.mark.asyncio
    async def test_token_usage_logged(self, token_budget, caplog):
        """Test that accumulated token usage is reported when the run ends."""
        model = ScriptedChatModel(
            responses=[
                AIMessage(
                    content="",
                    tool_calls=[tool_call("c1", "lookup_clause", {"clause": "termination"})],
                    usage_metadata={"input_tokens": 120, "output_tokens": 15, "total_tokens": 135},
                ),
                AIMessage(
                    content="done",
                    usage_metadata={"input_tokens": 200, "output_tokens": 30, "total_tokens": 230},
                ),
            ]
        )

        with caplog.at_level("INFO", logger="contract_guard.graphs.review"):
            await _run(_graph(model, token_budget))

        assert "Review finished after 2 model calls: 320 input tokens, 45 output tokens" in caplog.text
