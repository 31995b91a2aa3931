"""batched-queue CLI 진입점.

표준 입력의 각 줄을 큐에 넣고, 배치마다 JSON 한 줄을 표준 출력에 기록.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, TextIO

from batched_queue.config.settings import Settings
from batched_queue.queues.batched_queue import BatchedQueue

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """CLI 인자 파싱."""
    parser = argparse.ArgumentParser(
        description="표준 입력 줄을 배치로 묶어 JSON으로 출력",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="배치 크기 임계값 (기본: BATCHED_QUEUE_LIMIT)",
    )
    parser.add_argument(
        "--interval",
        type=int,
        default=None,
        help="플러시 간격 밀리초 (기본: BATCHED_QUEUE_INTERVAL)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="로그 레벨 (기본: BATCHED_QUEUE_LOG_LEVEL)",
    )
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> Settings:
    """환경 변수 설정에 CLI 인자 덮어쓰기."""
    overrides = {
        key: value
        for key, value in (
            ("limit", args.limit),
            ("interval", args.interval),
            ("log_level", args.log_level),
        )
        if value is not None
    }
    return Settings(**overrides)


def write_batch(out: TextIO, batch: list[Any], saturated: bool) -> None:
    """배치를 JSON 한 줄로 기록."""
    out.write(json.dumps({"saturated": saturated, "items": batch}, ensure_ascii=False))
    out.write("\n")
    out.flush()


async def run(settings: Settings, source: TextIO, out: TextIO) -> int:
    """입력이 끝날 때까지 줄 단위로 큐에 넣고, 끝나면 남은 항목 플러시.

    Returns:
        처리한 줄 수
    """
    queue = BatchedQueue.from_settings(settings)
    queue.subscribe(lambda batch, saturated: write_batch(out, batch, saturated))

    loop = asyncio.get_running_loop()
    count = 0
    try:
        while True:
            line = await loop.run_in_executor(None, source.readline)
            if not line:
                break
            queue.push(line.rstrip("\n"))
            count += 1
    finally:
        queue.flush()
        queue.close()

    stats = queue.get_stats()
    logger.info(
        f"완료: {count}줄, {stats['flush_count']}개 배치, 드롭 {stats['total_dropped']}건"
    )
    return count


def main(argv: list[str] | None = None) -> None:
    """메인 함수."""
    args = parse_args(argv)
    settings = build_settings(args)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        asyncio.run(run(settings, sys.stdin, sys.stdout))
    except KeyboardInterrupt:
        logger.info("키보드 인터럽트 감지")


if __name__ == "__main__":
    main()
