"""Tests for the rate limit middleware."""

import pytest
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from fastapi.testclient import TestClient

from decay_limiter.engine import AdmissionEngine
from decay_limiter.exceptions import InvalidRateLimitError
from decay_limiter.middleware import DecayRateLimitMiddleware, limiter_lifespan


class TestMiddleware:
    """Test the middleware against a real application."""

    def test_rejects_too_many_requests(self, app_factory):
        """Test the fourth request gets the default 429."""
        app = app_factory(rate_limit=3)

        with TestClient(app) as client:
            for _ in range(3):
                assert client.get("/").text == "OK"

            response = client.get("/")

        assert response.status_code == 429
        assert response.json() == {
            "error": {"code": 429, "message": "too many requests"}
        }

    def test_shorthand_options(self, app_factory):
        """Test a bare number configures the rate limit."""
        app = app_factory(options=3)

        with TestClient(app) as client:
            statuses = [client.get("/").status_code for _ in range(4)]

        assert statuses == [200, 200, 200, 429]

    def test_calls_handler_when_provided(self, app_factory):
        """Test the rejection handler owns the over-limit response."""

        def handler(request, call_next):
            return PlainTextResponse("test message", status_code=512)

        app = app_factory(rate_limit=3, rejection_handler=handler)

        with TestClient(app) as client:
            for _ in range(3):
                assert client.get("/").text == "OK"

            response = client.get("/")

        assert response.status_code == 512
        assert response.text == "test message"

    def test_checks_the_header_provided(self, app_factory):
        """Test header identities are limited independently."""
        app = app_factory(rate_limit=3, identity_header="token")

        with TestClient(app) as client:
            for _ in range(3):
                assert client.get("/", headers={"token": "first"}).text == "OK"

            rejected = client.get("/", headers={"token": "first"})
            other = client.get("/", headers={"token": "second"})

        assert rejected.status_code == 429
        assert rejected.json()["error"]["code"] == 429
        assert other.text == "OK"

    def test_shared_engine(self, app_factory):
        """Test a passed engine is used and started by the first request."""
        engine = AdmissionEngine(3)
        app = app_factory(engine=engine)

        with TestClient(app) as client:
            client.get("/")
            assert engine.running is True

        assert engine.ledger.snapshot() == {"testclient": 1.0}

    def test_invalid_options_fail_construction(self):
        """Test the middleware refuses to build without a rate limit."""
        with pytest.raises(InvalidRateLimitError):
            DecayRateLimitMiddleware(FastAPI())


class TestLimiterLifespan:
    """Test tying decay to the application lifespan."""

    def test_decay_runs_for_application_lifetime(self):
        """Test decay starts at startup and stops at shutdown."""
        engine = AdmissionEngine(3)
        app = FastAPI(lifespan=lambda app: limiter_lifespan(engine))
        app.add_middleware(DecayRateLimitMiddleware, engine=engine)

        with TestClient(app):
            assert engine.running is True

        assert engine.running is False

    @pytest.mark.asyncio
    async def test_lifespan_yields_engine(self, engine):
        """Test the lifespan helper exposes the engine."""
        async with limiter_lifespan(engine) as running_engine:
            assert running_engine is engine
            assert engine.running is True

        assert engine.running is False
