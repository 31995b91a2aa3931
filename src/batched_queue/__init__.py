"""batched-queue: 크기/시간 기반 배치 플러시 큐."""

from batched_queue.config.settings import Settings
from batched_queue.queues.batched_queue import BatchedQueue
from batched_queue.queues.diagnostics import (
    LoggingDiagnostics,
    QueueDiagnostics,
    RecordingDiagnostics,
)

__version__ = "0.1.0"

__all__ = [
    "BatchedQueue",
    "LoggingDiagnostics",
    "QueueDiagnostics",
    "RecordingDiagnostics",
    "Settings",
]
