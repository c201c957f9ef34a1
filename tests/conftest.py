from __future__ import annotations

from typing import Callable, Iterator, List

import pytest

from rscxray.classify import classify_source
from rscxray.rules import ClassifiedFile
from rscxray.syntax import SourceFile


@pytest.fixture
def classified() -> Callable[[str, str], ClassifiedFile]:
    """Parse and classify an in-memory source file."""

    def _build(file_name: str, code: str) -> ClassifiedFile:
        source = SourceFile(file_name, code)
        return ClassifiedFile(file_name=file_name, source=source, kind=classify_source(source))

    return _build


class FakeClock:
    """Deterministic clock advancing a fixed step (in seconds) per call."""

    def __init__(self, step: float = 0.002) -> None:
        self.step = step
        self.now = 0.0
        self.calls: List[float] = []

    def __call__(self) -> float:
        self.now += self.step
        self.calls.append(self.now)
        return self.now


@pytest.fixture
def fake_clock() -> Iterator[FakeClock]:
    yield FakeClock()


@pytest.fixture
def clock_factory() -> Callable[[], FakeClock]:
    """Fresh deterministic clocks for tests that build several orchestrators."""
    return FakeClock
