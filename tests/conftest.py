"""Shared test fixtures and configuration.

Provides a scripted provider gateway and orchestrator fixtures. The fake
gateway never talks to a real model: each call pops the next scripted
reply (text, ProviderResponse or exception) and records the prompts it
received, so tests can assert on both results and requests.
"""

from __future__ import annotations

import asyncio
import itertools
from typing import Any

import pytest

from copy_maker.content.models import ConfigurationModel
from copy_maker.content.orchestrator import ContentOrchestrator
from copy_maker.providers.config import EngineSettings
from copy_maker.providers.text import ProviderResponse


def words(count: int, word: str = "word") -> str:
    """Text with exactly ``count`` whitespace-separated words."""
    return " ".join([word] * count)


class FakeGateway:
    """Provider gateway returning scripted replies in order.

    Usage:
        gateway = FakeGateway(["first draft", ProviderError(...), "second"])
        response = await gateway.generate(system, user)
    """

    def __init__(self, replies: list[Any] | None = None, tokens_per_call: int = 10):
        self.replies: list[Any] = list(replies or [])
        self.tokens_per_call = tokens_per_call
        self.calls: list[tuple[str, str]] = []
        self.before_reply: Any = None

    def queue(self, *replies: Any) -> None:
        self.replies.extend(replies)

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        cancellation_token: Any = None,
    ) -> ProviderResponse:
        self.calls.append((system_prompt, user_prompt))
        if self.before_reply is not None:
            await self.before_reply()
        if not self.replies:
            raise AssertionError("FakeGateway ran out of scripted replies")
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, ProviderResponse):
            return reply
        return ProviderResponse(
            text=reply,
            tokens_used=self.tokens_per_call,
            provider="fake",
            model="fake-model",
        )

    @property
    def user_prompts(self) -> list[str]:
        return [user for _, user in self.calls]


@pytest.fixture
def gateway() -> FakeGateway:
    """Create an empty scripted gateway.

    Returns:
        FakeGateway with no replies queued.
    """
    return FakeGateway()


@pytest.fixture
def engine_settings() -> EngineSettings:
    """Engine settings without retry delays."""
    return EngineSettings(retry_delay_seconds=0.0)


@pytest.fixture
def id_factory():
    """Deterministic node ids: n1, n2, n3..."""
    counter = itertools.count(1)
    return lambda: f"n{next(counter)}"


@pytest.fixture
def orchestrator(gateway: FakeGateway, engine_settings: EngineSettings, id_factory) -> ContentOrchestrator:
    """Create an orchestrator wired to the fake gateway.

    Returns:
        ContentOrchestrator with deterministic ids and no retry delay.
    """
    return ContentOrchestrator(
        gateway=gateway,
        settings=engine_settings,
        id_factory=id_factory,
    )


@pytest.fixture
def base_config() -> ConfigurationModel:
    """A minimal valid configuration without a word-count target."""
    return ConfigurationModel(
        business_description="Tallybook is bookkeeping software for freelancers.",
        product_service_name="Tallybook",
        target_audience="Freelance designers",
        tone="Friendly",
    )


@pytest.fixture
def sample_score_json() -> str:
    return (
        '{"overall": 82, "clarity": "Clear", "persuasiveness": "Strong", '
        '"tone_match": "Good", "engagement": "High", "word_count_accuracy": 95, '
        '"improvement_explanation": "Tighten the opening."}'
    )


@pytest.fixture
def sample_seo_json() -> str:
    return (
        '{"url_slugs": ["freelancer-bookkeeping"], '
        '"meta_descriptions": ["Bookkeeping that runs itself for freelancers."], '
        '"h1_variants": ["Bookkeeping for freelancers"], '
        '"h2_headings": ["Import transactions", "Estimate taxes"], '
        '"h3_headings": ["Bank sync", "Receipts"], '
        '"og_titles": ["Tallybook"], '
        '"og_descriptions": ["Bookkeeping that runs itself."]}'
    )


@pytest.fixture
def sample_geo_json() -> str:
    return (
        '{"overall": 64, "breakdown": [{"criterion": "TL;DR", "score": 20, '
        '"max_score": 20, "detected": true, "explanation": "Summary present"}], '
        '"suggestions": ["Add statistics"]}'
    )


async def wait_until(predicate, timeout: float = 1.0) -> None:
    """Poll until predicate() is true or fail the test."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0)
