"""
Kit Network API - main entry point.

Configures logging and serves kitnet.api.app:app with uvicorn.
"""

from __future__ import annotations

import logging

import uvicorn

from kitnet.config import get_settings


def main():
    """Main entry point."""
    settings = get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    uvicorn.run(
        "kitnet.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug and not settings.is_production,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
