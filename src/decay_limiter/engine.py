"""Admission engine.

Turns a request into an identity key, checks the key's usage counter against
the configured rate limit, and either lets the request continue or rejects
it. A background decay task drains every positive counter by
``rate_limit / 60`` per second, so one unit of allowance comes back every
``60 / rate_limit`` seconds.
"""

import inspect
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from operator import attrgetter
from typing import Any

import structlog
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from .config.options import LimiterOptions
from .decay import DecayScheduler
from .ledger import CallbackLedgerStore, Ledger, StoreLedger, TokenLedger
from .observability.metrics import AdmissionMetrics

logger = structlog.get_logger()

UNKNOWN_IDENTITY = "unknown"
TOO_MANY_REQUESTS = 429

CallNext = Callable[[Request], Awaitable[Response]]


@dataclass(frozen=True)
class AdmissionDecision:
    """Outcome of one admission check."""

    key: str
    allowed: bool
    usage: float
    limit: float


class AdmissionEngine:
    """Per-identity admission control over a decaying token ledger."""

    def __init__(
        self,
        options: LimiterOptions | Mapping[str, Any] | float | None = None,
        *,
        ledger: Ledger | None = None,
        metrics: AdmissionMetrics | None = None,
    ):
        """Initialize admission engine.

        Args:
            options: Limiter options, a mapping of option names, or a bare
                requests-per-minute number
            ledger: Ledger to use instead of the one implied by the options
            metrics: Metrics to record decisions and decay ticks into

        Raises:
            InvalidRateLimitError: The rate limit is missing or not positive
            InvalidConfigurationError: The options contradict each other
        """
        self.options = LimiterOptions.from_value(options)

        if ledger is None:
            if self.options.uses_store:
                store = CallbackLedgerStore(
                    self.options.store_accessor, self.options.store_mutator
                )
                ledger = StoreLedger(store, evict_settled=self.options.evict_settled)
            else:
                ledger = TokenLedger(evict_settled=self.options.evict_settled)
        self.ledger = ledger
        self.metrics = metrics

        self._property_getter = (
            None
            if self.options.uses_header
            else attrgetter(self.options.identity_property)
        )
        self._scheduler = DecayScheduler(
            self.decay_tick, self.options.decay_interval, name="ledger-decay"
        )
        self._closed = False

        self.logger = logger.bind(rate_limit=self.options.rate_limit)
        self.logger.info(
            "Admission engine created",
            identity_header=self.options.identity_header,
            identity_property=self.options.identity_property,
            ledger=type(self.ledger).__name__,
            custom_handler=self.options.rejection_handler is not None,
        )

    @property
    def rate_limit(self) -> float:
        """Requests allowed per 60 second window."""
        return self.options.rate_limit

    @property
    def running(self) -> bool:
        """Whether the decay task is running."""
        return self._scheduler.running

    def identify(self, request: Request) -> str:
        """Derive the identity key for a request."""
        if self._property_getter is None:
            value = request.headers.get(self.options.identity_header)
        else:
            try:
                value = self._property_getter(request)
            except AttributeError:
                value = None

        if value is None:
            return UNKNOWN_IDENTITY
        return str(value)

    async def admit(self, key: str) -> AdmissionDecision:
        """Decide whether key may make another request, and count it if so.

        A counter of exactly zero is treated the same as an absent one, and
        a negative counter is treated as far under the limit.
        """
        async with self.ledger.key_lock(key):
            usage = await self.ledger.get(key)
            if usage and usage >= self.rate_limit:
                decision = AdmissionDecision(key, False, usage, self.rate_limit)
            else:
                usage = await self.ledger.increment(key)
                decision = AdmissionDecision(key, True, usage, self.rate_limit)

        if self.metrics is not None:
            self.metrics.record_decision(decision.allowed)
        if not decision.allowed:
            self.logger.warning("Rate limit exceeded", key=key, usage=usage)

        return decision

    async def reject(self, request: Request, call_next: CallNext) -> Any:
        """Produce the response for a request that is over the limit.

        A configured rejection handler fully owns the response and its
        result is returned unchanged.
        """
        handler = self.options.rejection_handler
        if handler is not None:
            result = handler(request, call_next)
            if inspect.isawaitable(result):
                result = await result
            return result
        return self.default_rejection()

    @staticmethod
    def default_rejection() -> JSONResponse:
        """The 429 response sent when no rejection handler is configured."""
        return JSONResponse(
            {"error": {"code": TOO_MANY_REQUESTS, "message": "too many requests"}},
            status_code=TOO_MANY_REQUESTS,
        )

    async def process(self, request: Request, call_next: CallNext) -> Any:
        """Run the admission check for a request and continue or reject."""
        decision = await self.admit(self.identify(request))
        if decision.allowed:
            return await call_next(request)
        return await self.reject(request, call_next)

    async def decay_tick(self) -> int:
        """Apply one decay step to every positive counter."""
        decayed = await self.ledger.decay_all(self.options.decay_amount)
        if self.metrics is not None:
            self.metrics.record_decay(len(await self.ledger.keys()))
        return decayed

    def start(self) -> None:
        """Start the decay task on the running event loop."""
        self._closed = False
        self._scheduler.start()

    def ensure_started(self) -> None:
        """Start the decay task unless it is running or the engine was stopped."""
        if not self._closed and not self._scheduler.running:
            self._scheduler.start()

    async def stop(self) -> None:
        """Stop the decay task."""
        self._closed = True
        await self._scheduler.stop()

    async def __aenter__(self) -> "AdmissionEngine":
        self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()
