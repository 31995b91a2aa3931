"""큐 진단 이벤트 싱크 모듈.

드롭/플러시/카고 타임아웃 이벤트를 주입 가능한 싱크로 전달.
기본 싱크는 logging 모듈로 기록하고, 테스트에서는 RecordingDiagnostics로
이벤트를 직접 검증한다.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class QueueDiagnostics(Protocol):
    """BatchedQueue 진단 싱크 프로토콜."""

    def on_drop(self, item: Any, length: int, limit: int) -> None: ...

    def on_flush(self, size: int, saturated: bool, interval_ms: int) -> None: ...

    def on_cargo_timeout(self, chunk_size: int, timeout_ms: int) -> None: ...

    def on_no_loop(self, timer: str, length: int) -> None: ...


class LoggingDiagnostics:
    """logging 기반 기본 진단 싱크."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def on_drop(self, item: Any, length: int, limit: int) -> None:
        self._log.warning(
            f"안전 한도 도달 ({length}/{limit}), 추가 항목은 드롭됩니다"
        )

    def on_flush(self, size: int, saturated: bool, interval_ms: int) -> None:
        if saturated:
            self._log.debug(f"포화 플러시: {size}건")
        else:
            self._log.debug(f"시간 기반 플러시 ({interval_ms}ms): {size}건")

    def on_cargo_timeout(self, chunk_size: int, timeout_ms: int) -> None:
        self._log.warning(
            f"카고 핸들러가 {timeout_ms}ms 내에 완료되지 않음 ({chunk_size}건), 플러시 재개"
        )

    def on_no_loop(self, timer: str, length: int) -> None:
        self._log.warning(
            f"실행 중인 이벤트 루프 없음, {timer} 타이머 설정 생략 (대기 {length}건)"
        )


@dataclass
class DiagnosticEvent:
    """기록된 진단 이벤트."""

    kind: str
    data: dict[str, Any]


@dataclass
class RecordingDiagnostics:
    """이벤트를 메모리에 보관하는 진단 싱크 (테스트용)."""

    events: list[DiagnosticEvent] = field(default_factory=list)

    def on_drop(self, item: Any, length: int, limit: int) -> None:
        self.events.append(
            DiagnosticEvent("drop", {"item": item, "length": length, "limit": limit})
        )

    def on_flush(self, size: int, saturated: bool, interval_ms: int) -> None:
        self.events.append(
            DiagnosticEvent(
                "flush",
                {"size": size, "saturated": saturated, "interval_ms": interval_ms},
            )
        )

    def on_cargo_timeout(self, chunk_size: int, timeout_ms: int) -> None:
        self.events.append(
            DiagnosticEvent(
                "cargo_timeout", {"chunk_size": chunk_size, "timeout_ms": timeout_ms}
            )
        )

    def on_no_loop(self, timer: str, length: int) -> None:
        self.events.append(DiagnosticEvent("no_loop", {"timer": timer, "length": length}))

    def of_kind(self, kind: str) -> list[DiagnosticEvent]:
        """종류별 이벤트 조회."""
        return [event for event in self.events if event.kind == kind]

    def clear(self) -> None:
        self.events.clear()
