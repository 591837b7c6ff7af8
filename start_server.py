#!/usr/bin/env python3
"""Start the rate-limited application with uvicorn."""

import uvicorn

from decay_limiter.config.settings import get_settings


def main():
    """Start the FastAPI server."""
    settings = get_settings()

    print("🚀 Starting Decay Limiter...")
    print(f"🔍 Host: {settings.host}")
    print(f"🔍 Port: {settings.port}")
    print(f"🔍 Environment: {settings.environment.value}")
    print(f"🔍 Limit: {settings.rate_limit.requests_per_minute} requests/minute")

    uvicorn.run(
        "decay_limiter.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level="info",
        access_log=True,
    )


if __name__ == "__main__":
    main()
