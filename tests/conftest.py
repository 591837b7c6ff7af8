"""Test configuration and fixtures."""

import os

import pytest
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from starlette.requests import Request

# Set required environment variables for tests
os.environ["ENVIRONMENT"] = "testing"

from decay_limiter.engine import AdmissionEngine  # noqa: E402
from decay_limiter.middleware import DecayRateLimitMiddleware  # noqa: E402


def make_request(
    headers: dict[str, str] | None = None,
    client: tuple[str, int] | None = ("10.0.0.1", 50000),
) -> Request:
    """Build a bare Starlette request from an HTTP scope."""
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "query_string": b"",
        "headers": [
            (name.lower().encode(), value.encode())
            for name, value in (headers or {}).items()
        ],
    }
    if client is not None:
        scope["client"] = client
    return Request(scope)


def make_app(**middleware_kwargs) -> FastAPI:
    """Create an app answering "OK" behind the rate limit middleware."""
    app = FastAPI()
    app.add_middleware(DecayRateLimitMiddleware, **middleware_kwargs)

    @app.get("/")
    async def index() -> PlainTextResponse:
        return PlainTextResponse("OK")

    return app


@pytest.fixture
def engine():
    """Create an engine allowing 3 requests per minute."""
    return AdmissionEngine({"rate_limit": 3})


@pytest.fixture
def memory_store():
    """Dict-backed async accessor/mutator pair."""
    data: dict[str, float] = {}

    async def accessor(key: str) -> float | None:
        return data.get(key)

    async def mutator(key: str, value: float) -> None:
        data[key] = value

    return data, accessor, mutator


@pytest.fixture
def request_factory():
    """Factory for bare Starlette requests."""
    return make_request


@pytest.fixture
def app_factory():
    """Factory for apps behind the rate limit middleware."""
    return make_app
