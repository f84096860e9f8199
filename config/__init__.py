"""
Configuration Module for Order Book Aggregator

Environment-aware configuration with validation and
SSOT (Single Source of Truth) principles.

Usage:
    from config import load_config

    # Automatically loads based on AGGREGATOR_ENV environment variable
    config = load_config()

    # Or explicitly specify environment
    config = load_config(env='production')
"""

# Lazy imports to avoid circular dependency
def __getattr__(name):
    if name == 'load_config':
        from config.loader import load_config
        return load_config
    elif name == 'get_current_env':
        from config.loader import get_current_env
        return get_current_env
    elif name in ['AggregatorConfig', 'ConfigError', 'ExchangeEndpointConfig', 'HttpConfig', 'MonitoringConfig', 'RateLimitConfig']:
        from config import base
        return getattr(base, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

__all__ = [
    'load_config',
    'get_current_env',
    'AggregatorConfig',
    'ConfigError',
    'ExchangeEndpointConfig',
    'HttpConfig',
    'MonitoringConfig',
    'RateLimitConfig',
]

__version__ = '0.1.0'
