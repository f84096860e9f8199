# -*- coding: utf-8 -*-
"""
Async HTTP Client with Retry

exponential backoff 재시도 기능을 제공하는 aiohttp 기반 HTTP 클라이언트.
레이트 리밋 자체는 TokenBucketRateLimiter가 담당 (호출자가 acquire).
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp

from aggregator.exceptions import NetworkError, OrderBookParseError, RateLimitExceeded

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "ob-aggregator/0.1",
}


@dataclass
class RetryConfig:
    """재시도 설정"""
    timeout_seconds: float = 30.0  # 요청 전체 타임아웃 (초)
    max_retry: int = 3  # 최대 시도 횟수
    base_backoff_seconds: float = 0.5  # 기본 backoff 시간 (초)


class AsyncHttpClient:
    """
    HTTP 클라이언트 with exponential backoff 재시도

    역할:
    - JSON GET 요청 실행
    - 429/5xx/timeout/연결 에러 시 exponential backoff 재시도
    - 모든 재시도 실패 시 예외 발생 (RateLimitExceeded / NetworkError)

    Example:
        >>> async with AsyncHttpClient() as client:
        ...     data = await client.get_json("https://api.gemini.com/v1/book/BTCUSD")
    """

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Args:
            config: RetryConfig 인스턴스
            session: 외부에서 주입한 세션 (없으면 connect() 시 생성)
        """
        self.config = config or RetryConfig()
        self._session = session
        self._owns_session = session is None

        logger.info(
            f"[HTTP_CLIENT] Initialized: "
            f"timeout={self.config.timeout_seconds}s, "
            f"max_retry={self.config.max_retry}, "
            f"base_backoff={self.config.base_backoff_seconds}s"
        )

    async def connect(self) -> None:
        """세션 생성"""
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout, headers=DEFAULT_HEADERS)
            self._owns_session = True

    async def close(self) -> None:
        """세션 종료 (직접 생성한 세션만)"""
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "AsyncHttpClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _backoff(self, attempt: int) -> float:
        return self.config.base_backoff_seconds * (2 ** attempt)

    async def get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        JSON GET 요청 (재시도 포함)

        Args:
            url: 요청 URL
            params: 쿼리 파라미터

        Returns:
            디코딩된 JSON

        Raises:
            RateLimitExceeded: 429가 재시도 후에도 계속될 때
            NetworkError: HTTP 요청 실패 (모든 재시도 소진) 또는 4xx 응답
        """
        if self._session is None:
            await self.connect()

        last_error: Optional[Exception] = None
        for attempt in range(self.config.max_retry):
            is_last = attempt >= self.config.max_retry - 1
            try:
                logger.debug(f"[HTTP_CLIENT] GET {url} (attempt {attempt + 1}/{self.config.max_retry})")

                async with self._session.get(url, params=params) as resp:
                    if resp.status == 429:
                        if is_last:
                            raise RateLimitExceeded(
                                f"Rate limit exceeded after {self.config.max_retry} retries: {url}"
                            )
                        backoff = self._backoff(attempt)
                        logger.warning(f"[HTTP_CLIENT] Rate limited (429): backoff {backoff:.2f}s before retry")
                        await asyncio.sleep(backoff)
                        continue

                    if resp.status >= 500:
                        last_error = NetworkError(f"Server error ({resp.status}) from {url}")
                        if not is_last:
                            backoff = self._backoff(attempt)
                            logger.warning(
                                f"[HTTP_CLIENT] Server error ({resp.status}): backoff {backoff:.2f}s before retry"
                            )
                            await asyncio.sleep(backoff)
                            continue
                        raise last_error

                    if resp.status >= 400:
                        raise NetworkError(f"HTTP {resp.status} from {url}")

                    try:
                        data = await resp.json(content_type=None)
                    except ValueError as e:
                        raise OrderBookParseError(f"Invalid JSON from {url}: {e}") from e
                    logger.debug(f"[HTTP_CLIENT] Response: {resp.status} (attempt {attempt + 1})")
                    return data

            except (asyncio.TimeoutError, aiohttp.ClientError) as e:
                last_error = e
                if is_last:
                    raise NetworkError(f"{type(e).__name__} fetching {url}: {e}") from e
                backoff = self._backoff(attempt)
                logger.warning(f"[HTTP_CLIENT] {type(e).__name__}: backoff {backoff:.2f}s before retry")
                await asyncio.sleep(backoff)

        raise NetworkError(f"Request failed for {url}: {last_error}")
