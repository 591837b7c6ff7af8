"""Validated limiter options.

Options are immutable once built. Validation runs in ``__post_init__`` so an
invalid combination never produces an object, and an engine can never be
constructed in an invalid state.
"""

import math
import numbers
from collections.abc import Callable, Mapping
from dataclasses import dataclass, fields
from typing import Any

from ..exceptions import InvalidConfigurationError, InvalidRateLimitError

DEFAULT_IDENTITY_PROPERTY = "client.host"
DECAY_WINDOW_SECONDS = 60.0


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


@dataclass(frozen=True)
class LimiterOptions:
    """Configuration for an admission engine.

    Attributes:
        rate_limit: Requests allowed per 60 second window.
        identity_property: Dotted attribute path on the request used as the
            identity key. Defaults to ``client.host`` when no header is set.
        identity_header: Request header used as the identity key.
        rejection_handler: Called as ``handler(request, call_next)`` instead
            of the default 429 response once a caller is over the limit.
        store_accessor: Reads a counter by key from an external store.
        store_mutator: Writes a counter by key to an external store.
        decay_interval: Seconds between decay ticks.
        evict_settled: Drop counters that decay to zero or below.
    """

    rate_limit: Any = None
    identity_property: str | None = None
    identity_header: str | None = None
    rejection_handler: Callable[..., Any] | None = None
    store_accessor: Callable[..., Any] | None = None
    store_mutator: Callable[..., Any] | None = None
    decay_interval: float = 1.0
    evict_settled: bool = False

    def __post_init__(self) -> None:
        if not _is_number(self.rate_limit) or math.isnan(self.rate_limit):
            raise InvalidRateLimitError(self.rate_limit)
        if self.rate_limit <= 0:
            raise InvalidRateLimitError(self.rate_limit)

        if self.identity_property is not None and self.identity_header is not None:
            raise InvalidConfigurationError(
                "only 'identity_property' or 'identity_header' should be "
                "defined, not both",
                option="identity_header",
            )

        if self.rejection_handler is not None and not callable(
            self.rejection_handler
        ):
            raise InvalidConfigurationError(
                "'rejection_handler' must be a function", option="rejection_handler"
            )

        if (self.store_accessor is None) != (self.store_mutator is None):
            raise InvalidConfigurationError(
                "'store_accessor' and 'store_mutator' must be provided together",
                option="store_mutator"
                if self.store_mutator is None
                else "store_accessor",
            )
        for name in ("store_accessor", "store_mutator"):
            value = getattr(self, name)
            if value is not None and not callable(value):
                raise InvalidConfigurationError(
                    f"'{name}' must be a function", option=name
                )

        if not _is_number(self.decay_interval) or not self.decay_interval > 0:
            raise InvalidConfigurationError(
                "'decay_interval' must be a number greater than 0",
                option="decay_interval",
            )

        if self.identity_property is None and self.identity_header is None:
            object.__setattr__(self, "identity_property", DEFAULT_IDENTITY_PROPERTY)

    @classmethod
    def from_value(
        cls, value: "LimiterOptions | Mapping[str, Any] | Any"
    ) -> "LimiterOptions":
        """Build options from options, a mapping, or a bare rate limit.

        A bare number is shorthand for ``{"rate_limit": number}``.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            known = {f.name for f in fields(cls)}
            unknown = sorted(set(value) - known)
            if unknown:
                raise InvalidConfigurationError(
                    f"unknown limiter options: {', '.join(unknown)}",
                    option=unknown[0],
                )
            return cls(**value)
        return cls(rate_limit=value)

    @property
    def uses_header(self) -> bool:
        """Whether the identity key comes from a request header."""
        return self.identity_header is not None

    @property
    def uses_store(self) -> bool:
        """Whether counters live in an external store."""
        return self.store_accessor is not None

    @property
    def decay_amount(self) -> float:
        """Amount subtracted from each positive counter per tick."""
        return self.rate_limit / DECAY_WINDOW_SECONDS * self.decay_interval
