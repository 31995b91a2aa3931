"""Queues 패키지.

배치 플러시 큐와 진단 싱크.
"""

from batched_queue.queues.batched_queue import BatchedQueue
from batched_queue.queues.diagnostics import (
    DiagnosticEvent,
    LoggingDiagnostics,
    QueueDiagnostics,
    RecordingDiagnostics,
)

__all__ = [
    "BatchedQueue",
    "DiagnosticEvent",
    "LoggingDiagnostics",
    "QueueDiagnostics",
    "RecordingDiagnostics",
]
