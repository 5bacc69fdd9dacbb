"""Chat model construction and rate limiting."""

import asyncio
import os
import time
from dataclasses import dataclass, field
from typing import Literal

from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI
from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter

from contract_guard.utils.logging import get_logger

logger = get_logger(__name__)

Provider = Literal["openai", "anthropic"]

API_KEY_ENV: dict[str, str] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}

DEFAULT_MODELS: dict[str, str] = {
    "openai": "gpt-4o-2024-11-20",
    "anthropic": "claude-3-5-sonnet-20241022",
}


def _env_provider() -> Provider:
    provider = os.getenv("MODEL_PROVIDER", "openai").lower()
    if provider not in API_KEY_ENV:
        raise ValueError(f"Unsupported MODEL_PROVIDER: {provider}")
    return provider  # type: ignore[return-value]


@dataclass
class ModelConfig:
    """Configuration for the hosted completion model."""

    provider: Provider = field(default_factory=_env_provider)
    model: str | None = field(default_factory=lambda: os.getenv("MODEL_NAME"))
    temperature: float = 0.1
    max_tokens: int = 4096
    max_retries: int = 3
    max_steps: int = 10

    requests_per_minute: int = 50
    tokens_per_minute: int = 200_000

    @property
    def model_name(self) -> str:
        return self.model or DEFAULT_MODELS[self.provider]

    @property
    def api_key_env(self) -> str:
        return API_KEY_ENV[self.provider]

    def has_api_key(self) -> bool:
        return bool(os.getenv(self.api_key_env))


def create_chat_model(config: ModelConfig | None = None) -> BaseChatModel:
    """Build the LangChain chat model for the configured provider."""
    config = config or ModelConfig()
    api_key = os.getenv(config.api_key_env)

    logger.debug(f"Creating {config.provider} chat model: {config.model_name}")

    if config.provider == "anthropic":
        return ChatAnthropic(
            model=config.model_name,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            max_retries=config.max_retries,
            anthropic_api_key=api_key,
        )

    return ChatOpenAI(
        model=config.model_name,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        max_retries=config.max_retries,
        api_key=api_key,
    )


class ModelRateLimiter:
    """Moving-window limits on requests and tokens per minute."""

    def __init__(self, requests_per_minute: int = 50, tokens_per_minute: int = 200_000):
        """Initialize rate limiter.

        Args:
            requests_per_minute: Maximum requests per minute
            tokens_per_minute: Maximum tokens per minute
        """
        self.storage = MemoryStorage()
        self.limiter = MovingWindowRateLimiter(self.storage)

        self.request_limit = parse(f"{requests_per_minute}/minute")
        self.token_limit = parse(f"{tokens_per_minute}/minute")

    async def check_rate_limit(self, estimated_tokens: int, identifier: str = "model") -> None:
        """Wait until the request fits within both limits."""
        logger.debug(f"Checking rate limit for {estimated_tokens} tokens, identifier: {identifier}")

        if not self.limiter.hit(self.request_limit, identifier):
            await self._wait_for_reset(self.request_limit, identifier, "Request")

        token_identifier = f"{identifier}_tokens"
        if not self.limiter.hit(self.token_limit, token_identifier, cost=max(estimated_tokens, 1)):
            await self._wait_for_reset(self.token_limit, token_identifier, "Token")

    async def _wait_for_reset(self, limit, identifier: str, kind: str) -> None:
        window_stats = self.limiter.get_window_stats(limit, identifier)
        if window_stats:
            wait_time = max(0.0, window_stats.reset_time - time.time())
            if wait_time > 0:
                logger.warning(f"{kind} rate limit exceeded, waiting {wait_time:.2f}s")
                await asyncio.sleep(wait_time)
