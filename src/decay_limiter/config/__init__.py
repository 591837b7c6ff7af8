"""Limiter options and service settings."""

from .options import DEFAULT_IDENTITY_PROPERTY, LimiterOptions
from .settings import (
    ApplicationSettings,
    Environment,
    LedgerBackend,
    LogLevel,
    ObservabilitySettings,
    RateLimitSettings,
    RedisSettings,
    get_settings,
)

__all__ = [
    "LimiterOptions",
    "DEFAULT_IDENTITY_PROPERTY",
    "ApplicationSettings",
    "Environment",
    "LedgerBackend",
    "LogLevel",
    "ObservabilitySettings",
    "RateLimitSettings",
    "RedisSettings",
    "get_settings",
]
