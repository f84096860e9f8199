"""
Base Configuration Models (Dataclass-based)

SSOT (Single Source of Truth) for all configuration parameters.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional


class ConfigError(Exception):
    """설정 로드/검증 실패"""
    pass


VALID_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')

# 공개 L2 호가 endpoint (BTC-USD)
COINBASE_BOOK_URL = 'https://api.exchange.coinbase.com/products/BTC-USD/book?level=2'
GEMINI_BOOK_URL = 'https://api.gemini.com/v1/book/BTCUSD'


@dataclass(frozen=True)
class ExchangeEndpointConfig:
    """거래소 호가 endpoint 설정"""

    name: str
    url: str

    def __post_init__(self):
        if not self.url or not self.url.startswith(('http://', 'https://')):
            raise ConfigError(f"{self.name}: url must be an http(s) URL (got {self.url!r})")


@dataclass(frozen=True)
class RateLimitConfig:
    """업스트림 호출 rate limit 설정"""

    # "최대 interval_seconds에 capacity회"
    interval_seconds: float = 2.0
    capacity: int = 1

    # True: 두 거래소가 limiter 하나를 공유, False: 거래소별 limiter
    shared: bool = True

    def __post_init__(self):
        if self.interval_seconds <= 0:
            raise ConfigError(f"interval_seconds must be > 0 (got {self.interval_seconds})")
        if self.capacity <= 0:
            raise ConfigError(f"capacity must be > 0 (got {self.capacity})")


@dataclass(frozen=True)
class HttpConfig:
    """HTTP 클라이언트 설정"""

    timeout_seconds: float = 30.0
    max_retry: int = 3
    base_backoff_seconds: float = 0.5

    def __post_init__(self):
        if self.timeout_seconds <= 0:
            raise ConfigError(f"timeout_seconds must be > 0 (got {self.timeout_seconds})")
        if self.max_retry < 1:
            raise ConfigError(f"max_retry must be >= 1 (got {self.max_retry})")
        if self.base_backoff_seconds < 0:
            raise ConfigError(f"base_backoff_seconds must be >= 0 (got {self.base_backoff_seconds})")


@dataclass(frozen=True)
class MonitoringConfig:
    """로깅 설정"""

    log_level: str = 'INFO'  # 'DEBUG', 'INFO', 'WARNING', 'ERROR'
    log_dir: Optional[Path] = None  # None이면 콘솔만

    def __post_init__(self):
        level = self.log_level.upper()
        if level not in VALID_LOG_LEVELS:
            raise ConfigError(f"Invalid log_level {self.log_level!r}. Valid values: {', '.join(VALID_LOG_LEVELS)}")
        object.__setattr__(self, 'log_level', level)


@dataclass(frozen=True)
class AggregatorConfig:
    """
    Order Book Aggregator Configuration (SSOT)

    통합 설정 모델. 모든 하위 설정을 포함.
    """

    # Environment
    env: str  # 'development', 'production'

    # Sub-configurations
    coinbase: ExchangeEndpointConfig
    gemini: ExchangeEndpointConfig
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)

    # CLI 기본 수량 (문자열 유지, 정밀도 손실 방지)
    default_quantity: str = '10.0'

    def __post_init__(self):
        """Validation"""
        try:
            quantity = Decimal(self.default_quantity)
        except InvalidOperation as e:
            raise ConfigError(f"default_quantity is not a number: {self.default_quantity!r}") from e
        if not quantity.is_finite() or quantity <= 0:
            raise ConfigError(f"default_quantity must be > 0 (got {self.default_quantity})")
