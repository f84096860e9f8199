"""
Configuration Loader

ENV 환경변수 기반으로 적절한 Config를 로드합니다.

우선순위 (뒤가 이김):
1. 환경별 preset (development / production)
2. 환경변수 (.env 포함): COINBASE_API, GEMINI_API, RATE_LIMIT_INTERVAL_SECONDS,
   RATE_LIMIT_SHARED, HTTP_TIMEOUT_SECONDS, LOG_LEVEL
3. YAML 설정 파일 (--config 또는 AGGREGATOR_CONFIG_FILE)
"""

import logging
import os
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Union

import yaml
from dotenv import load_dotenv

from config.base import (
    AggregatorConfig,
    ConfigError,
    ExchangeEndpointConfig,
    HttpConfig,
    MonitoringConfig,
    RateLimitConfig,
)
from config.environments.development import get_development_config
from config.environments.production import get_production_config

logger = logging.getLogger(__name__)

# Environment 타입
EnvType = Literal['development', 'production']

VALID_ENVS = ('development', 'production')

_TRUE_VALUES = ('1', 'true', 'yes', 'on')
_FALSE_VALUES = ('0', 'false', 'no', 'off')


def get_current_env() -> EnvType:
    """
    현재 환경 감지

    우선순위:
    1. AGGREGATOR_ENV 환경변수
    2. ENV 환경변수
    3. 기본값: development

    Returns:
        현재 환경 ('development', 'production')
    """
    env = os.getenv('AGGREGATOR_ENV') or os.getenv('ENV') or 'development'
    env = env.lower()

    if env not in VALID_ENVS:
        logger.warning(
            f"Invalid environment '{env}', falling back to 'development'. "
            f"Valid values: {', '.join(VALID_ENVS)}"
        )
        env = 'development'

    return env  # type: ignore


def _parse_bool(name: str, raw: Union[str, bool]) -> bool:
    if isinstance(raw, bool):
        return raw
    value = str(raw).strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean (got {raw!r})")


def _parse_float(name: str, raw: Any) -> float:
    try:
        return float(raw)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be a number (got {raw!r})") from e


def _apply_env_overrides(config: AggregatorConfig) -> AggregatorConfig:
    """환경변수 override 적용"""
    coinbase_url = os.getenv('COINBASE_API')
    if coinbase_url:
        config = replace(config, coinbase=ExchangeEndpointConfig(name='coinbase', url=coinbase_url))

    gemini_url = os.getenv('GEMINI_API')
    if gemini_url:
        config = replace(config, gemini=ExchangeEndpointConfig(name='gemini', url=gemini_url))

    interval = os.getenv('RATE_LIMIT_INTERVAL_SECONDS')
    if interval:
        config = replace(
            config,
            rate_limit=replace(
                config.rate_limit,
                interval_seconds=_parse_float('RATE_LIMIT_INTERVAL_SECONDS', interval),
            ),
        )

    shared = os.getenv('RATE_LIMIT_SHARED')
    if shared:
        config = replace(
            config,
            rate_limit=replace(config.rate_limit, shared=_parse_bool('RATE_LIMIT_SHARED', shared)),
        )

    timeout = os.getenv('HTTP_TIMEOUT_SECONDS')
    if timeout:
        config = replace(
            config,
            http=replace(config.http, timeout_seconds=_parse_float('HTTP_TIMEOUT_SECONDS', timeout)),
        )

    log_level = os.getenv('LOG_LEVEL')
    if log_level:
        config = replace(config, monitoring=replace(config.monitoring, log_level=log_level))

    return config


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at top level")
    return data


def _section(data: Dict[str, Any], key: str, prefix: str = '') -> Dict[str, Any]:
    """YAML 하위 섹션 (없으면 빈 dict, mapping이 아니면 ConfigError)"""
    section = data.get(key)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigError(f"{prefix}{key} must be a mapping (got {type(section).__name__})")
    return section


def _apply_file_overrides(config: AggregatorConfig, data: Dict[str, Any]) -> AggregatorConfig:
    """
    YAML override 적용

    예시:
        exchanges:
          coinbase: {url: "https://..."}
          gemini: {url: "https://..."}
        rate_limit: {interval_seconds: 2.0, capacity: 1, shared: true}
        http: {timeout_seconds: 30, max_retry: 3, base_backoff_seconds: 0.5}
        logging: {level: INFO, log_dir: logs}
        default_quantity: "10.0"
    """
    exchanges = _section(data, 'exchanges')
    for name in ('coinbase', 'gemini'):
        section = _section(exchanges, name, prefix='exchanges.')
        if 'url' in section:
            config = replace(config, **{name: ExchangeEndpointConfig(name=name, url=str(section['url']))})

    rate_limit = _section(data, 'rate_limit')
    if rate_limit:
        config = replace(
            config,
            rate_limit=RateLimitConfig(
                interval_seconds=_parse_float(
                    'rate_limit.interval_seconds',
                    rate_limit.get('interval_seconds', config.rate_limit.interval_seconds),
                ),
                capacity=int(rate_limit.get('capacity', config.rate_limit.capacity)),
                shared=_parse_bool('rate_limit.shared', rate_limit.get('shared', config.rate_limit.shared)),
            ),
        )

    http = _section(data, 'http')
    if http:
        config = replace(
            config,
            http=HttpConfig(
                timeout_seconds=_parse_float('http.timeout_seconds', http.get('timeout_seconds', config.http.timeout_seconds)),
                max_retry=int(http.get('max_retry', config.http.max_retry)),
                base_backoff_seconds=_parse_float(
                    'http.base_backoff_seconds',
                    http.get('base_backoff_seconds', config.http.base_backoff_seconds),
                ),
            ),
        )

    logging_section = _section(data, 'logging')
    if logging_section:
        log_dir = logging_section.get('log_dir', config.monitoring.log_dir)
        config = replace(
            config,
            monitoring=MonitoringConfig(
                log_level=str(logging_section.get('level', config.monitoring.log_level)),
                log_dir=Path(log_dir) if log_dir else None,
            ),
        )

    if 'default_quantity' in data:
        config = replace(config, default_quantity=str(data['default_quantity']))

    return config


def load_config(
    env: Optional[EnvType] = None,
    config_file: Optional[Union[str, Path]] = None,
    env_file: Optional[Union[str, Path]] = None,
) -> AggregatorConfig:
    """
    환경에 맞는 Config 로드

    Args:
        env: 환경 지정 (None이면 자동 감지)
        config_file: YAML override 파일 (None이면 AGGREGATOR_CONFIG_FILE)
        env_file: .env 파일 경로 (None이면 python-dotenv 기본 탐색)

    Returns:
        AggregatorConfig 인스턴스

    Raises:
        ConfigError: Config 로드 실패 시

    Examples:
        >>> config = load_config()
        >>> config = load_config(env='production', config_file='aggregator.yaml')
    """
    load_dotenv(env_file)

    if env is None:
        env = get_current_env()

    logger.info(f"[CONFIG] Loading configuration for environment: {env}")

    try:
        if env == 'development':
            config = get_development_config()
        elif env == 'production':
            config = get_production_config()
        else:
            raise ConfigError(f"Unknown environment: {env}")

        config = _apply_env_overrides(config)

        config_file = config_file or os.getenv('AGGREGATOR_CONFIG_FILE')
        if config_file:
            config = _apply_file_overrides(config, _load_yaml(Path(config_file)))

    except ConfigError as e:
        logger.error(f"[CONFIG] ❌ Failed to load configuration: {e}")
        raise
    except (TypeError, ValueError) as e:
        logger.error(f"[CONFIG] ❌ Failed to load configuration: {e}")
        raise ConfigError(f"Configuration loading failed: {e}") from e

    logger.info(
        f"[CONFIG] ✅ Configuration loaded successfully: "
        f"env={config.env}, rate_limit={config.rate_limit.interval_seconds}s "
        f"(shared={config.rate_limit.shared}), timeout={config.http.timeout_seconds}s"
    )
    return config
