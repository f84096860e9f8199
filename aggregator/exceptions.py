# -*- coding: utf-8 -*-
"""
Order Book Aggregator - Exceptions

집계기 전반에서 사용하는 예외 정의.
"""


class AggregatorError(Exception):
    """집계기 기본 예외"""
    pass


class RateLimiterConfigError(AggregatorError, ValueError):
    """Rate limiter 생성 파라미터 오류 (capacity/refill_rate <= 0)"""
    pass


class RateLimitExceeded(AggregatorError):
    """레이트 리밋 초과"""
    pass


class InvalidQuantityError(AggregatorError, ValueError):
    """유효하지 않은 수량 (0 이하 또는 NaN/Infinity)"""
    pass


class ExchangeError(AggregatorError):
    """거래소 관련 기본 예외"""
    pass


class NetworkError(ExchangeError):
    """네트워크 관련 예외"""
    pass


class OrderBookParseError(ExchangeError):
    """호가 응답 파싱 실패"""
    pass


class UpstreamUnavailableError(AggregatorError):
    """두 거래소 모두 스냅샷을 가져오지 못함"""
    pass
