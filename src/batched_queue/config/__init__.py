"""Config 패키지."""

from batched_queue.config.settings import Settings

__all__ = ["Settings"]
