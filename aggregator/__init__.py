"""
Order Book Aggregator

Coinbase + Gemini 호가를 하나의 depth ladder로 병합하고
요청 수량의 체결 비용(VWAP 기반 총액)을 계산한다.

- infrastructure: token bucket rate limiter
- orderbook: ladder 병합 / depth 평가
- exchanges: HTTP 조회 + 거래소별 파서
- engine: 오케스트레이션
"""

__version__ = "0.1.0"
