"""배치 플러시 큐 모듈.

항목을 모아서 크기 임계값 도달 또는 시간 간격 경과 중 먼저 발생하는
조건에 따라 배치로 방출한다.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from functools import partial
from typing import TYPE_CHECKING, Any

from batched_queue.queues.diagnostics import LoggingDiagnostics, QueueDiagnostics

if TYPE_CHECKING:
    from batched_queue.config.settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_FLUSH_LIMIT = 10000
DEFAULT_INTERVAL_MS = 1000
DEFAULT_CARGO_LIMIT = 1
SAFETY_QUEUE_LIMIT = 2_000_000

FlushListener = Callable[[list[Any], bool], Any]
CargoHandler = Callable[[list[Any], Callable[[], None]], Awaitable[Any] | None]


def _or_default(value: int | None, default: int) -> int:
    """0, 음수, None은 기본값으로 대체."""
    if value is None or value <= 0:
        return default
    return value


class BatchedQueue:
    """크기/시간 기반 배치 플러시 큐.

    기능:
    - 크기 기반 플러시 (limit 도달 시 즉시, 동기)
    - 시간 기반 플러시 (첫 항목 추가 후 interval ms 경과 시)
    - pause/resume 제어
    - 카고 모드 (cargo_limit 단위로 핸들러에 전달, 완료 신호까지 대기)
    - 안전 한도 초과 항목 드롭

    단일 이벤트 루프에서 사용하는 것을 전제로 하며 내부 락은 없다.
    타이머 설정에는 실행 중인 이벤트 루프(또는 ``loop`` 인자)가 필요하다.
    루프가 없으면 타이머 없이 진단 이벤트만 남기고, 크기 기반 플러시는 그대로 동작한다.

    Examples:
        ```python
        queue = BatchedQueue(limit=100, interval=500)
        queue.subscribe(lambda batch, saturated: print(len(batch), saturated))
        queue.push({"id": 1}).push({"id": 2})

        # 카고 모드
        async def upload(chunk, done):
            await client.bulk_insert(chunk)
            done()

        cargo_queue = BatchedQueue(cargo=upload, cargo_limit=50)
        ```
    """

    def __init__(
        self,
        limit: int | None = None,
        interval: int | None = None,
        cargo: CargoHandler | None = None,
        cargo_limit: int | None = None,
        safety_limit: int | None = None,
        cargo_timeout: int | None = None,
        diagnostics: QueueDiagnostics | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        """초기화.

        Args:
            limit: 플러시 크기 임계값 (기본 10000)
            interval: 플러시 시간 임계값, 밀리초 (기본 1000)
            cargo: 카고 핸들러 (지정 시 카고 모드)
            cargo_limit: 카고 핸들러 1회당 최대 항목 수 (기본 1)
            safety_limit: 버퍼 최대 길이 (기본 2,000,000)
            cargo_timeout: 카고 완료 대기 한도, 밀리초 (기본 None = 무제한)
            diagnostics: 진단 싱크 (기본 LoggingDiagnostics)
            loop: 타이머용 이벤트 루프 (기본: 실행 중인 루프)
        """
        if cargo is not None and not callable(cargo):
            raise TypeError(f"cargo 핸들러는 callable이어야 합니다: {cargo!r}")

        self._items: deque[Any] = deque()
        self._limit = _or_default(limit, DEFAULT_FLUSH_LIMIT)
        self._interval = _or_default(interval, DEFAULT_INTERVAL_MS)
        self._cargo = cargo
        self._cargo_limit = _or_default(cargo_limit, DEFAULT_CARGO_LIMIT)
        self._safety_limit = _or_default(safety_limit, SAFETY_QUEUE_LIMIT)
        self._cargo_timeout = cargo_timeout if cargo_timeout and cargo_timeout > 0 else None
        self._diagnostics: QueueDiagnostics = diagnostics or LoggingDiagnostics()
        self._loop = loop

        self._listeners: list[FlushListener] = []
        self._flushing = True
        self._timer: asyncio.TimerHandle | None = None
        self._cargo_token: object | None = None
        self._cargo_timer: asyncio.TimerHandle | None = None
        self._checking = False
        self._recheck = False

        self._total_added = 0
        self._total_dropped = 0
        self._total_flushed = 0
        self._flush_count = 0

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        cargo: CargoHandler | None = None,
        diagnostics: QueueDiagnostics | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> BatchedQueue:
        """Settings로부터 큐 생성."""
        return cls(
            limit=settings.limit,
            interval=settings.interval,
            cargo=cargo,
            cargo_limit=settings.cargo_limit,
            safety_limit=settings.safety_limit,
            cargo_timeout=settings.cargo_timeout,
            diagnostics=diagnostics,
            loop=loop,
        )

    # === 상태 조회 ===

    @property
    def length(self) -> int:
        """버퍼 길이."""
        return len(self._items)

    def __len__(self) -> int:
        return len(self._items)

    @property
    def saturated(self) -> bool:
        """즉시 플러시가 필요한 크기에 도달했는지 여부."""
        if self._cargo is not None:
            return len(self._items) >= self._cargo_limit
        return len(self._items) >= self._limit

    @property
    def cargo_mode(self) -> bool:
        return self._cargo is not None

    @property
    def cargo_in_flight(self) -> bool:
        """카고 핸들러 완료 대기 중인지 여부."""
        return self._cargo_token is not None

    @property
    def flushing(self) -> bool:
        """플러시 활성화 여부 (pause 또는 카고 대기 중이면 False)."""
        return self._flushing and self._cargo_token is None

    @property
    def timer_pending(self) -> bool:
        return self._timer is not None

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def interval(self) -> int:
        return self._interval

    @property
    def cargo_limit(self) -> int:
        return self._cargo_limit

    @property
    def safety_limit(self) -> int:
        return self._safety_limit

    # === 리스너 ===

    def subscribe(self, listener: FlushListener) -> Callable[[], None]:
        """플러시 리스너 등록.

        Args:
            listener: ``listener(batch, saturated)`` 형태의 콜백

        Returns:
            등록 해제 함수
        """
        self._listeners.append(listener)
        return partial(self.unsubscribe, listener)

    def unsubscribe(self, listener: FlushListener) -> None:
        """플러시 리스너 해제 (미등록 리스너는 무시)."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    # === 큐 조작 ===

    def push(self, item: Any) -> BatchedQueue:
        """버퍼 끝에 항목 추가."""
        if self._reject(item):
            return self
        self._items.append(item)
        self._total_added += 1
        self._flush_check()
        return self

    def unshift(self, item: Any) -> BatchedQueue:
        """버퍼 앞에 항목 추가 (재등록 또는 우선 처리용)."""
        if self._reject(item):
            return self
        self._items.appendleft(item)
        self._total_added += 1
        self._flush_check()
        return self

    def empty(self) -> BatchedQueue:
        """버퍼를 플러시 없이 비우고 대기 중인 타이머 취소."""
        self._items.clear()
        self._clear_timer()
        return self

    def pause(self) -> BatchedQueue:
        """플러시 중지. 항목은 계속 쌓인다."""
        self._flushing = False
        self._clear_timer()
        return self

    def resume(self) -> BatchedQueue:
        """플러시 재개 후 즉시 플러시 조건 확인."""
        self._flushing = True
        self._flush_check()
        return self

    def flush(self) -> BatchedQueue:
        """임계값과 무관한 강제 플러시.

        pause 상태에서도 동작하지만, 카고 핸들러 완료 대기 중에는 무시된다.
        """
        if self._cargo_token is None:
            self._flush()
        return self

    def close(self) -> None:
        """큐 종료: 타이머와 카고 타임아웃 취소 (버퍼는 유지)."""
        self.pause()
        self._clear_cargo_timer()

    # === 통계 ===

    def get_stats(self) -> dict[str, Any]:
        """통계 조회."""
        return {
            "pending_count": len(self._items),
            "limit": self._limit,
            "interval": self._interval,
            "cargo_mode": self.cargo_mode,
            "cargo_limit": self._cargo_limit,
            "safety_limit": self._safety_limit,
            "flushing": self.flushing,
            "cargo_in_flight": self.cargo_in_flight,
            "total_added": self._total_added,
            "total_dropped": self._total_dropped,
            "total_flushed": self._total_flushed,
            "flush_count": self._flush_count,
        }

    def reset_stats(self) -> None:
        """통계 초기화."""
        self._total_added = 0
        self._total_dropped = 0
        self._total_flushed = 0
        self._flush_count = 0

    # === 내부 ===

    def _reject(self, item: Any) -> bool:
        """안전 한도 초과 시 항목 드롭."""
        if len(self._items) < self._safety_limit:
            return False
        self._total_dropped += 1
        self._diagnostics.on_drop(item, len(self._items), self._safety_limit)
        return True

    def _flush_check(self) -> None:
        # 재진입(리스너 내부 push, 카고 핸들러의 동기 done 호출)은
        # 바깥 루프에서 다시 확인한다.
        if self._checking:
            self._recheck = True
            return

        self._checking = True
        try:
            self._recheck = True
            while self._recheck:
                self._recheck = False
                if not self.flushing:
                    return
                if self.saturated:
                    if not self._flush():
                        return
                    self._recheck = True
                    continue
                if self._items and self._timer is None:
                    self._arm_timer()
        finally:
            self._checking = False

    def _flush(self) -> bool:
        """플러시 수행. 버퍼에서 항목을 내보냈으면 True."""
        self._clear_timer()
        if not self._items:
            return False

        saturated = self.saturated
        if self._cargo is not None:
            return self._flush_cargo(saturated)

        batch = list(self._items)
        self._items.clear()
        self._record_flush(len(batch), saturated)
        for listener in list(self._listeners):
            listener(batch, saturated)
        return True

    def _flush_cargo(self, saturated: bool) -> bool:
        # 비동기 핸들러는 루프 없이 실행할 수 없으므로 청크를 꺼내기 전에 확인
        loop = self._get_loop()
        if loop is None and inspect.iscoroutinefunction(self._cargo):
            self._diagnostics.on_no_loop("cargo", len(self._items))
            return False

        count = min(self._cargo_limit, len(self._items))
        chunk = [self._items.popleft() for _ in range(count)]
        self._record_flush(len(chunk), saturated)

        token = object()
        self._cargo_token = token
        done = partial(self._complete_cargo, token)

        if self._cargo_timeout is not None:
            if loop is None:
                self._diagnostics.on_no_loop("cargo_timeout", len(self._items))
            else:
                self._cargo_timer = loop.call_later(
                    self._cargo_timeout / 1000,
                    self._on_cargo_timeout,
                    token,
                    len(chunk),
                )

        try:
            result = self._cargo(chunk, done)
        except Exception:
            # 동기 핸들러 실패: 대기 상태만 해제하고 예외는 호출자에게 전달
            self._release_cargo(token)
            raise

        if inspect.isawaitable(result):
            if loop is None:
                # 실행할 수 없는 awaitable: 청크를 되돌리고 대기 상태 해제
                if inspect.iscoroutine(result):
                    result.close()
                self._items.extendleft(reversed(chunk))
                self._total_flushed -= len(chunk)
                self._flush_count -= 1
                self._release_cargo(token)
                self._diagnostics.on_no_loop("cargo", len(self._items))
                return False
            task = asyncio.ensure_future(result, loop=loop)
            task.add_done_callback(self._on_cargo_task_done)
        return True

    def _complete_cargo(self, token: object) -> None:
        # 이미 완료된(또는 타임아웃 처리된) 토큰은 무시
        if self._release_cargo(token):
            self._flush_check()

    def _release_cargo(self, token: object) -> bool:
        if token is not self._cargo_token:
            return False
        self._cargo_token = None
        self._clear_cargo_timer()
        return True

    def _on_cargo_timeout(self, token: object, chunk_size: int) -> None:
        self._cargo_timer = None
        if token is not self._cargo_token:
            return
        self._diagnostics.on_cargo_timeout(chunk_size, self._cargo_timeout or 0)
        self._complete_cargo(token)

    def _on_cargo_task_done(self, task: asyncio.Future[Any]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"카고 핸들러 오류: {exc!r}")

    def _on_timer(self) -> None:
        self._timer = None
        self._flush()

    def _arm_timer(self) -> None:
        # 루프가 없으면 타이머 없이 두고, 루프 안에서의 다음 push가 설정한다
        loop = self._get_loop()
        if loop is None:
            self._diagnostics.on_no_loop("interval", len(self._items))
            return
        self._timer = loop.call_later(self._interval / 1000, self._on_timer)

    def _clear_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _clear_cargo_timer(self) -> None:
        if self._cargo_timer is not None:
            self._cargo_timer.cancel()
            self._cargo_timer = None

    def _get_loop(self) -> asyncio.AbstractEventLoop | None:
        if self._loop is not None:
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(length={len(self._items)}, limit={self._limit}, "
            f"interval={self._interval}, cargo_mode={self.cargo_mode}, "
            f"flushing={self.flushing})"
        )
