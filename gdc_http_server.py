import os
import logging

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import PlainTextResponse

from mcp_tools.gdc_graphql_tool import MCP_HOST, MCP_PORT, mcp

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())
if not logger.handlers:
    ch = logging.StreamHandler()
    formatter = logging.Formatter("%(asctime)s %(levelname)s:%(name)s: %(message)s")
    ch.setFormatter(formatter)
    logger.addHandler(ch)

NOT_FOUND_TEXT = (
    "NCI GDC MCP Server - Path not found.\n"
    "Available MCP paths:\n"
    "- /mcp (for Streamable HTTP transport)\n"
    "- /sse (for Server-Sent Events transport)"
)


async def not_found(request: Request, exc: Exception) -> PlainTextResponse:
    logger.error(
        "NCI GDC MCP Server. Requested path %s not found. Available transports: /mcp (HTTP), /sse (SSE).",
        request.url.path,
    )
    return PlainTextResponse(NOT_FOUND_TEXT, status_code=404)


def create_app() -> Starlette:
    """
    Serves streamable HTTP at /mcp and legacy SSE at /sse from one process.
    """
    # streamable_http_app() creates the session manager the lifespan runs.
    streamable_app = mcp.streamable_http_app()
    sse_app = mcp.sse_app()

    return Starlette(
        routes=[*streamable_app.routes, *sse_app.routes],
        exception_handlers={404: not_found},
        lifespan=lambda app: mcp.session_manager.run(),
    )


app = create_app()


def run():
    logger.info("Serving NCI GDC MCP Server on http://%s:%s", MCP_HOST, MCP_PORT)
    uvicorn.run(app, host=MCP_HOST, port=MCP_PORT)


if __name__ == "__main__":
    run()
