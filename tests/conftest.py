"""
Test Configuration Module
"""

from typing import List

import pytest

from llm_bridge.adapters import AnthropicAdapter, OpenAIChatAdapter


class SleepRecorder:
    """Awaitable sleep that records the requested delays instead of waiting."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def openai_adapter() -> OpenAIChatAdapter:
    return OpenAIChatAdapter()


@pytest.fixture
def anthropic_adapter() -> AnthropicAdapter:
    return AnthropicAdapter()
