"""ASGI middleware enforcing the admission engine."""

from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from .config.options import LimiterOptions
from .engine import AdmissionEngine


class DecayRateLimitMiddleware(BaseHTTPMiddleware):
    """Middleware that admits or rejects each request by caller identity.

    Pass a ready ``engine`` to share it with the rest of the application
    (lifespan, metrics), or pass limiter options and let the middleware build
    its own. Starlette builds middleware lazily, so option errors surface
    when the middleware stack is first built unless an engine is passed in.
    """

    def __init__(
        self,
        app: ASGIApp,
        engine: AdmissionEngine | None = None,
        options: LimiterOptions | Mapping[str, Any] | float | None = None,
        **option_values: Any,
    ) -> None:
        super().__init__(app)
        if engine is None:
            engine = AdmissionEngine(
                options if options is not None else (option_values or None)
            )
        self.engine = engine

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Admit the request or return the rejection response."""
        self.engine.ensure_started()
        return await self.engine.process(request, call_next)  # type: ignore[no-any-return]


@asynccontextmanager
async def limiter_lifespan(engine: AdmissionEngine) -> AsyncIterator[AdmissionEngine]:
    """Run the engine's decay task for the lifetime of an application."""
    engine.start()
    try:
        yield engine
    finally:
        await engine.stop()
