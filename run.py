"""
RUN SCRIPT - Start the Superset Help Assistant server
=====================================================

PURPOSE:
  Single entry point to start the backend (locally or on Render).

WHAT IT DOES:
  - Validates the configuration first. Without a provider API key the process
    prints the problem and exits with status 1 before anything listens.
  - Runs superset_bot.main:app with uvicorn on HOST:PORT (default 0.0.0.0:5050).

USAGE:
  python run.py

  Then open http://localhost:5050/api/health, or point the web UI at it.

NOTE:
  Set GEMINI_API_KEY, GROQ_API_KEY or OPENAI_API_KEY (and optionally
  LLM_PROVIDER, FRONTEND_ORIGIN, PORT) in .env.
"""

import logging
import sys

import uvicorn

import config
from superset_bot.errors import StartupConfigError


logger = logging.getLogger("SupersetBot")


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    try:
        settings = config.validate_config()
    except StartupConfigError as e:
        logger.error("Cannot start: %s", e)
        return 1

    logger.info("Starting server on %s:%s with %s", config.HOST, config.PORT, settings.name)
    uvicorn.run(
        "superset_bot.main:app",
        host=config.HOST,
        port=config.PORT,
        log_level="info",
    )
    return 0


# ------------------------------------------------------------------------------
# ENTRY POINT
# ------------------------------------------------------------------------------
if __name__ == "__main__":
    sys.exit(main())
