#!/usr/bin/env python3
"""
Forum API Server
Configures logging and serves the FastAPI application with uvicorn
"""
import logging
import sys

import uvicorn

from config import DEFAULT_HOST, DEFAULT_PORT, DB_PATH, LOG_LEVEL

logger = logging.getLogger("run_server")


def main():
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    logger.info(f"Starting forum API on {DEFAULT_HOST}:{DEFAULT_PORT} (database: {DB_PATH})")

    try:
        from app import app

        uvicorn.run(
            app,
            host=DEFAULT_HOST,
            port=DEFAULT_PORT,
            reload=False,
            access_log=True,
            log_config=None
        )
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception:
        logger.exception("Error starting server")
        sys.exit(1)

if __name__ == "__main__":
    main()
