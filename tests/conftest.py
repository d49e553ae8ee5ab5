"""Shared test fixtures for the difficient test suite."""

from __future__ import annotations

from typing import Any

import pytest

from difficient.config import DiffConfig
from difficient.engine import DeltaEngine


class RecordingMetricsHook:
    """A metrics backend that records all calls for assertion."""

    def __init__(self) -> None:
        self.increments: list[dict[str, Any]] = []
        self.timings: list[dict[str, Any]] = []
        self.gauges: list[dict[str, Any]] = []

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.increments.append({"name": name, "value": value, "tags": tags})

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.timings.append({"name": name, "ms": ms, "tags": tags})

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.gauges.append({"name": name, "value": value, "tags": tags})

    def names(self) -> list[str]:
        return [c["name"] for c in self.increments]


@pytest.fixture
def config() -> DiffConfig:
    """Default engine configuration."""
    return DiffConfig()


@pytest.fixture
def engine(config: DiffConfig) -> DeltaEngine:
    """A fresh engine, so registrations never leak between tests."""
    return DeltaEngine(config)


@pytest.fixture
def recorder() -> RecordingMetricsHook:
    return RecordingMetricsHook()


@pytest.fixture
def recorded_engine(recorder: RecordingMetricsHook) -> DeltaEngine:
    """An engine whose metrics land in ``recorder``."""
    return DeltaEngine(DiffConfig(metrics=recorder))
