"""BatchedQueue 설정 모듈.

환경 변수 기반 Settings 클래스.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """BatchedQueue 설정.

    환경 변수 PREFIX: BATCHED_QUEUE_

    Examples:
        ```bash
        export BATCHED_QUEUE_LIMIT=500
        export BATCHED_QUEUE_INTERVAL=2000
        export BATCHED_QUEUE_CARGO_LIMIT=50
        ```
    """

    model_config = SettingsConfigDict(
        env_prefix="BATCHED_QUEUE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === 플러시 임계값 ===
    limit: int = Field(
        default=10000,
        ge=1,
        description="플러시 크기 임계값",
    )
    interval: int = Field(
        default=1000,
        ge=1,
        le=3_600_000,
        description="플러시 시간 임계값 (밀리초)",
    )

    # === 카고 모드 ===
    cargo_limit: int = Field(
        default=1,
        ge=1,
        description="카고 핸들러 1회당 최대 항목 수",
    )
    cargo_timeout: int | None = Field(
        default=None,
        ge=1,
        description="카고 완료 대기 한도 (밀리초, 미설정 시 무제한)",
    )

    # === 안전 한도 ===
    safety_limit: int = Field(
        default=2_000_000,
        ge=1,
        description="버퍼 최대 길이 (초과 항목 드롭)",
    )

    # === 로깅 설정 ===
    log_level: str = Field(
        default="INFO",
        description="로그 레벨 (DEBUG, INFO, WARNING, ERROR)",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """로그 레벨 검증."""
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"알 수 없는 로그 레벨: {value}")
        return level

    @model_validator(mode="after")
    def validate_limits(self) -> Settings:
        """한도 관계 검증."""
        # safety_limit보다 큰 limit은 크기 기반 플러시가 절대 발생하지 않음
        if self.safety_limit < self.limit:
            logger.warning(
                f"safety_limit({self.safety_limit}) < limit({self.limit}): "
                "크기 기반 플러시가 발생하지 않습니다"
            )
        return self

    def to_dict(self) -> dict[str, Any]:
        """설정을 딕셔너리로 변환."""
        return self.model_dump()
