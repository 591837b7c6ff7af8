"""Per-identity request admission control with a linearly decaying ledger."""

__version__ = "0.1.0"
__description__ = (
    "Admission-control middleware that rejects callers exceeding a "
    "requests-per-minute budget"
)

from .config.options import LimiterOptions  # noqa: E402
from .engine import AdmissionDecision, AdmissionEngine  # noqa: E402
from .exceptions import (  # noqa: E402
    ErrorCode,
    InvalidConfigurationError,
    InvalidRateLimitError,
    LedgerStoreError,
    LimiterException,
)
from .ledger import (  # noqa: E402
    CallbackLedgerStore,
    Ledger,
    LedgerStore,
    RedisLedgerStore,
    StoreLedger,
    TokenLedger,
)
from .middleware import DecayRateLimitMiddleware, limiter_lifespan  # noqa: E402

__all__ = [
    "__version__",
    "__description__",
    "AdmissionDecision",
    "AdmissionEngine",
    "LimiterOptions",
    "DecayRateLimitMiddleware",
    "limiter_lifespan",
    "Ledger",
    "TokenLedger",
    "LedgerStore",
    "CallbackLedgerStore",
    "RedisLedgerStore",
    "StoreLedger",
    "ErrorCode",
    "LimiterException",
    "InvalidRateLimitError",
    "InvalidConfigurationError",
    "LedgerStoreError",
]
