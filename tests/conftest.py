import asyncio
import os
import sys
from pathlib import Path

import pytest

# Add src/ to sys.path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

# Keep a developer's config.toml out of the test run
os.environ.setdefault("LUCIUS_CONFIG", str(Path(__file__).resolve().parent / "no-config.toml"))
os.environ.setdefault("OPENAI_API_KEY", "test-openai")
os.environ.setdefault("OPENAI_MODEL", "test-model")


class FakeClock:
    """Monotonic clock the tests advance by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedReader:
    """Reader double: returns canned results per locator and records calls."""

    def __init__(self, results=None, delays=None) -> None:
        self.results = dict(results or {})
        self.delays = dict(delays or {})
        self.calls: list[str] = []

    async def read(self, descriptor):
        from lucius.packs import ReadResult

        self.calls.append(descriptor.locator)
        delay = self.delays.get(descriptor.locator)
        if delay:
            await asyncio.sleep(delay)
        return self.results.get(descriptor.locator, ReadResult(content=descriptor.locator))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scripted_reader():
    return ScriptedReader()


@pytest.fixture
def make_reader():
    return ScriptedReader
