# -*- coding: utf-8 -*-
"""
Exchange Adapter Layer

- http_client: aiohttp 기반 JSON GET + 재시도
- coinbase / gemini: 거래소별 응답 파서
- fetcher: rate limit 적용 스냅샷 조회
"""

from .coinbase import parse_coinbase_book
from .fetcher import fetch_snapshot
from .gemini import parse_gemini_book
from .http_client import AsyncHttpClient, RetryConfig

__all__ = [
    "AsyncHttpClient",
    "RetryConfig",
    "fetch_snapshot",
    "parse_coinbase_book",
    "parse_gemini_book",
]
