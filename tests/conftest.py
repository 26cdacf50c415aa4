"""
Shared pytest fixtures and configuration for all tests.
"""

import asyncio
import sys
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

# Add src directory to path so imports work
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from imagearena.models import GenerationRequest  # noqa: E402
from imagearena.orchestrator import FanOutOrchestrator  # noqa: E402
from imagearena.providers import ProviderDescriptor, ProviderRegistry  # noqa: E402

Outcome = str | None | BaseException | Callable[[GenerationRequest], Awaitable[Any]]


class FakeEndpoint:
    """In-memory image endpoint.

    ``behaviors`` maps a provider key to ``(delay_seconds, outcome)``. The
    outcome is returned as the image reference, raised if it is an exception,
    or awaited if it is a coroutine function taking the request.
    """

    def __init__(self, behaviors: dict[str, tuple[float, Outcome]] | None = None):
        self.behaviors = behaviors or {}
        self.requests: list[GenerationRequest] = []
        self.closed = False

    async def generate(self, request: GenerationRequest) -> str | None:
        self.requests.append(request)
        delay, outcome = self.behaviors.get(
            request.provider, (0, f"https://images.test/{request.provider}.png")
        )
        if delay:
            await asyncio.sleep(delay)
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            return await outcome(request)
        return outcome

    async def aclose(self) -> None:
        self.closed = True


class FakeClock:
    """Clock that advances by ``step`` on every read."""

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(milliseconds=10)):
        self.now = start or datetime(2026, 1, 1, tzinfo=UTC)
        self.step = step
        self.reads = 0

    def __call__(self) -> datetime:
        current = self.now
        self.now += self.step
        self.reads += 1
        return current


@pytest.fixture
def registry() -> ProviderRegistry:
    return ProviderRegistry(
        [
            ProviderDescriptor(key="alpha", models=["m1", "m1-fast"]),
            ProviderDescriptor(key="beta", models=["m2"]),
            ProviderDescriptor(key="gamma", models=["m3"]),
        ]
    )


@pytest.fixture
def endpoint() -> FakeEndpoint:
    return FakeEndpoint()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def orchestrator(endpoint: FakeEndpoint, registry: ProviderRegistry, clock: FakeClock) -> FanOutOrchestrator:
    return FanOutOrchestrator(endpoint, registry=registry, clock=clock)


# Test markers
def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: mark test as slow running")
