"""
Order Book Aggregator CLI (얇은 진입 계층)

책임:
- CLI 인자 파싱 / 수량 검증
- 설정 로드 (.env + 환경 preset + YAML)
- 엔진 실행 후 결과 출력

금지:
- 병합/평가 로직 구현 (AggregatorEngine에 위임)

Usage:
    ob-aggregator --qty 10.0
    python -m aggregator --qty 2.5 --env production
"""

import argparse
import asyncio
import logging
import sys
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from aggregator.engine import AggregationReport, AggregatorEngine, build_http_client, build_rate_limiters
from aggregator.exceptions import UpstreamUnavailableError
from aggregator.formatting import format_report
from aggregator.logging_utils import setup_logging
from config.base import VALID_LOG_LEVELS, AggregatorConfig, ConfigError
from config.loader import load_config

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def parse_qty(raw: str) -> str:
    """
    수량 인자 검증 (argparse type)

    Decimal로 바꾸지 않고 문자열 그대로 반환 (정밀도 손실 방지, 출력에도 입력 그대로 사용).
    """
    try:
        value = Decimal(raw)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"Not a valid quantity: {raw!r}")

    if not value.is_finite():
        raise argparse.ArgumentTypeError("Value must be finite")
    if value <= 0:
        raise argparse.ArgumentTypeError("Value must be greater than 0")
    return raw


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ob-aggregator",
        description="Compute the cost of buying or selling BTC across the merged Coinbase + Gemini order book",
    )
    parser.add_argument("-q", "--qty", type=parse_qty, default=None, help="Quantity (기본값: config default_quantity, 10.0)")
    parser.add_argument("--env", choices=["development", "production"], default=None, help="Environment (기본: AGGREGATOR_ENV)")
    parser.add_argument("--config", dest="config_file", default=None, help="YAML 설정 파일")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=VALID_LOG_LEVELS,
        default=None,
        help="로그 레벨 override (DEBUG/INFO/WARNING/ERROR/CRITICAL)",
    )
    return parser


async def run_once(config: AggregatorConfig, quantity: str) -> AggregationReport:
    """엔진 1회 실행 (클라이언트 세션 수명 관리)"""
    coinbase_limiter, gemini_limiter = build_rate_limiters(config)
    async with build_http_client(config) as client:
        engine = AggregatorEngine(client, coinbase_limiter, gemini_limiter, config)
        return await engine.run(quantity)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(env=args.env, config_file=args.config_file)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    setup_logging(
        level=args.log_level or config.monitoring.log_level,
        log_dir=config.monitoring.log_dir,
    )
    logger.info("[CLI] Orderbook aggregator started")

    quantity = args.qty or config.default_quantity

    try:
        report = asyncio.run(run_once(config, quantity))
    except UpstreamUnavailableError as e:
        logger.error(f"[CLI] {e}")
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    print("--------------------------------")
    print(format_report(report, quantity))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
