"""Pytest fixtures for batched-queue tests."""

from __future__ import annotations

from typing import Any

import pytest

from batched_queue.queues.diagnostics import RecordingDiagnostics


class FlushRecorder:
    """플러시 리스너 호출 기록."""

    def __init__(self) -> None:
        self.calls: list[tuple[list[Any], bool]] = []

    def __call__(self, batch: list[Any], saturated: bool) -> None:
        self.calls.append((batch, saturated))

    @property
    def batches(self) -> list[list[Any]]:
        return [batch for batch, _ in self.calls]


class CargoRecorder:
    """카고 핸들러 호출 기록 (done은 테스트가 직접 호출)."""

    def __init__(self) -> None:
        self.chunks: list[list[Any]] = []
        self.dones: list[Any] = []

    def __call__(self, chunk: list[Any], done: Any) -> None:
        self.chunks.append(chunk)
        self.dones.append(done)


@pytest.fixture
def diagnostics() -> RecordingDiagnostics:
    """진단 이벤트 기록 싱크."""
    return RecordingDiagnostics()


@pytest.fixture
def flushes() -> FlushRecorder:
    """플러시 리스너."""
    return FlushRecorder()


@pytest.fixture
def cargo() -> CargoRecorder:
    """수동 완료 카고 핸들러."""
    return CargoRecorder()
