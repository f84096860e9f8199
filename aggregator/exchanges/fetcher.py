"""
Snapshot Fetcher

rate limit → HTTP GET → 파싱. 실패 시 None 반환 (degraded mode는 엔진이 결정).
"""

import logging
from typing import Any, Callable, Optional, TypeVar

from aggregator.exceptions import ExchangeError, RateLimitExceeded
from aggregator.exchanges.http_client import AsyncHttpClient
from aggregator.infrastructure.rate_limiter import TokenBucketRateLimiter

logger = logging.getLogger(__name__)

BookT = TypeVar("BookT")


async def fetch_snapshot(
    client: AsyncHttpClient,
    limiter: TokenBucketRateLimiter,
    url: str,
    parser: Callable[[Any], BookT],
    source: str,
) -> Optional[BookT]:
    """
    단일 거래소 스냅샷 조회

    Args:
        client: HTTP 클라이언트
        limiter: 해당 거래소(또는 공유) rate limiter
        url: 호가 endpoint
        parser: JSON → 타입 book 변환 함수
        source: 로그용 거래소 이름

    Returns:
        파싱된 book 또는 None (네트워크/파싱/레이트리밋 실패)
    """
    await limiter.acquire()

    try:
        payload = await client.get_json(url)
    except (ExchangeError, RateLimitExceeded) as e:
        logger.error(f"[FETCH] Error fetching {source} data: {e}")
        return None

    try:
        book = parser(payload)
    except ExchangeError as e:
        logger.error(f"[FETCH] Error parsing {source} data: {e}")
        return None

    logger.info(f"[FETCH] {source} snapshot loaded: bids={len(book.bids)}, asks={len(book.asks)}")
    return book
