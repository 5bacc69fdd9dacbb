"""Shared fixtures for tests."""

import pytest
from helpers import ListSink, ScriptedChatModel
from langchain_core.messages import AIMessage

from contract_guard.clients.model import ModelConfig
from contract_guard.services.chat_agent import ChatAgent
from contract_guard.services.tokens import TokenBudget


@pytest.fixture
def sink():
    """Collecting result sink."""
    return ListSink()


@pytest.fixture
def token_budget():
    """Token budget using the character estimate, so no encoding download is needed."""
    return TokenBudget(encoding_model=None)


@pytest.fixture
def make_agent(token_budget):
    """Factory for a ChatAgent driven by scripted model responses."""

    def _make(*responses) -> tuple[ChatAgent, ScriptedChatModel]:
        model = ScriptedChatModel(responses=list(responses))
        agent = ChatAgent(
            model_config=ModelConfig(provider="openai", model="scripted"),
            model_factory=lambda config: model,
            token_budget=token_budget,
        )
        return agent, model

    return _make


@pytest.fixture
def text_reply():
    """A plain assistant reply."""
    return AIMessage(content='{"summary": "One-sided car washing deal.", "overall_risk": "high"}')
