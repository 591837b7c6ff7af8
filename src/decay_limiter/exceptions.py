"""Exception hierarchy for the decay limiter."""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes carried by limiter exceptions."""

    INVALID_RATE_LIMIT = "INVALID_RATE_LIMIT"
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"
    STORE_ERROR = "STORE_ERROR"


class LimiterException(Exception):
    """Base exception for the decay limiter."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class InvalidRateLimitError(LimiterException, TypeError):
    """Rate limit is missing, non-numeric or not greater than zero."""

    def __init__(self, value: Any):
        super().__init__(
            "'rate_limit' must be a number greater than 0",
            ErrorCode.INVALID_RATE_LIMIT,
            {"value": repr(value)},
        )
        self.value = value


class InvalidConfigurationError(LimiterException, ValueError):
    """Limiter options contradict each other or have the wrong type."""

    def __init__(self, message: str, option: str | None = None):
        super().__init__(
            message,
            ErrorCode.INVALID_CONFIGURATION,
            {"option": option} if option else None,
        )
        self.option = option


class LedgerStoreError(LimiterException):
    """External ledger store failed to read or write a counter."""

    def __init__(self, message: str, key: str, operation: str):
        super().__init__(
            message,
            ErrorCode.STORE_ERROR,
            {"key": key, "operation": operation},
        )
        self.key = key
        self.operation = operation
