"""Settings 클래스 단위 테스트."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from batched_queue.config.settings import Settings
from batched_queue.queues.batched_queue import BatchedQueue


class TestSettings:
    """Settings 기본 동작 테스트."""

    def test_default_values(self) -> None:
        """기본값 확인."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.limit == 10000
        assert settings.interval == 1000
        assert settings.cargo_limit == 1
        assert settings.cargo_timeout is None
        assert settings.safety_limit == 2_000_000
        assert settings.log_level == "INFO"

    def test_env_prefix(self) -> None:
        """환경 변수 PREFIX (BATCHED_QUEUE_) 확인."""
        env = {
            "BATCHED_QUEUE_LIMIT": "500",
            "BATCHED_QUEUE_INTERVAL": "2500",
            "BATCHED_QUEUE_CARGO_LIMIT": "50",
            "BATCHED_QUEUE_CARGO_TIMEOUT": "30000",
            "BATCHED_QUEUE_LOG_LEVEL": "debug",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = Settings(_env_file=None)

        assert settings.limit == 500
        assert settings.interval == 2500
        assert settings.cargo_limit == 50
        assert settings.cargo_timeout == 30000
        assert settings.log_level == "DEBUG"

    def test_limit_bounds(self) -> None:
        """limit은 1 이상."""
        with patch.dict(os.environ, {"BATCHED_QUEUE_LIMIT": "0"}, clear=True):
            with pytest.raises(ValueError):
                Settings(_env_file=None)

    def test_interval_bounds(self) -> None:
        """interval 범위 검증 (1 ~ 3,600,000)."""
        with patch.dict(os.environ, {"BATCHED_QUEUE_INTERVAL": "3600001"}, clear=True):
            with pytest.raises(ValueError):
                Settings(_env_file=None)

    def test_invalid_log_level(self) -> None:
        """알 수 없는 로그 레벨 거부."""
        with patch.dict(os.environ, {"BATCHED_QUEUE_LOG_LEVEL": "VERBOSE"}, clear=True):
            with pytest.raises(ValueError):
                Settings(_env_file=None)

    def test_to_dict(self) -> None:
        """to_dict()는 모든 필드 포함."""
        with patch.dict(os.environ, {}, clear=True):
            data = Settings(_env_file=None).to_dict()

        assert data["limit"] == 10000
        assert "safety_limit" in data


class TestFromSettings:
    """Settings 기반 큐 생성 테스트."""

    def test_from_settings(self, cargo) -> None:
        """설정값이 큐에 반영."""
        settings = Settings(
            _env_file=None, limit=5, interval=200, cargo_limit=2, safety_limit=50
        )
        queue = BatchedQueue.from_settings(settings, cargo=cargo)

        assert queue.limit == 5
        assert queue.interval == 200
        assert queue.cargo_limit == 2
        assert queue.safety_limit == 50
        assert queue.cargo_mode is True
