from pathlib import Path

import pytest

from shopscan.config import ResolverConfig
from shopscan.context import ResolverContext

FIXTURES = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def context(clock, sleeps):
    ctx = ResolverContext(ResolverConfig(), clock=clock, sleep=sleeps.append)
    yield ctx
    ctx.close()
