#!/usr/bin/env python3
"""
Entrypoint for the theme service API.

Configures logging and serves the FastAPI application with uvicorn.
"""

import logging
import os
import sys

import uvicorn


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


def main():
    """Main entry point for the API server."""
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))

    logger.info(f"Starting theme service on {host}:{port}...")

    try:
        uvicorn.run("theme_service.main:app", host=host, port=port, log_config=None)
    except Exception as e:
        logger.error(f"Server failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
