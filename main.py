"""
Voice assistant entry point.

Serves the HTTP API used by the browser client (speech, classification,
slot filling, member record and server-side dialogue sessions), or runs
the offline console demo for development.

Usage:
    API server:   python main.py
    Console mode: python main.py console
"""

import logging
import sys

from super_assistant.config import settings

logger = logging.getLogger(__name__)


def _run_server() -> None:
    """Start the HTTP API (LLM and speech calls need cloud credentials)."""
    import uvicorn

    logger.info("Starting %s on %s:%d", settings.agent_name, settings.server.host, settings.server.port)
    uvicorn.run(
        "super_assistant.api.server:app",
        host=settings.server.host,
        port=settings.server.port,
        log_level=settings.log_level.lower(),
    )


def _run_console_mode() -> None:
    """Start the offline console demo (no API keys required)."""
    from console_demo import ConsoleSession

    session = ConsoleSession()
    session.run()


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "console":
        _run_console_mode()
    else:
        _run_server()
