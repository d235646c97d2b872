#!/usr/bin/env python3
"""Run script for accountkeeper."""

import logging

import uvicorn

from accountkeeper.config import load_settings

if __name__ == "__main__":
    # Fails here, before binding the port, if JWT_SECRET_KEY is missing
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    uvicorn.run(
        "accountkeeper.api.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
    )
