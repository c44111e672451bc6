# =============================================================================
# main.py  —  Entry Point for the Web Data Tool Gateway
# =============================================================================
#
# HOW TO RUN:
#   uv run python main.py                       # HTTP on $PORT (default 8080)
#   MCP_TRANSPORT=stdio uv run python main.py   # stdio, token from $API_TOKEN
#
# WHAT HAPPENS:
#   1. Loads .env (if present) into the environment
#   2. Parses Settings; a malformed RATE_LIMIT stops the process right here
#   3. Builds the ToolGate (rate limiter, usage stats, upstream pool)
#   4. Builds the FastMCP server with every tool routed through the gate
#   5. Serves it:
#        http  → uvicorn + CORS + per-request authentication at $MCP_PATH
#        stdio → no inbound auth; tools fall back to $API_TOKEN
# =============================================================================

import logging
import sys

from dotenv import load_dotenv

# Must run before Settings.from_env() reads the environment.
load_dotenv()

import uvicorn

from core.config import Settings
from core.errors import ConfigurationError
from tools.http_auth import create_http_app, current_session
from tools.invocation import ToolGate
from tools.mcp_server import configure_logging, create_server


def main() -> int:
    try:
        settings = Settings.from_env()
    except ConfigurationError as exc:
        configure_logging()
        logging.error(f"Configuration error: {exc}")
        return 1

    configure_logging(settings.log_level)
    if settings.rate_limit is not None:
        logging.info(f"Rate limiting enabled: {settings.rate_limit.display}")

    gate = ToolGate(settings, session_provider=current_session)
    mcp = create_server(gate)

    if settings.transport == "stdio":
        logging.info("Starting server on stdio...")
        mcp.run()
        return 0

    app = create_http_app(mcp, gate)
    logging.info(
        f"Server running on http://{settings.host}:{settings.port}{settings.path}"
    )
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    return 0


if __name__ == "__main__":
    sys.exit(main())
