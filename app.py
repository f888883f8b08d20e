import argparse
import contextlib
import logging
from typing import Optional, Sequence

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from config import Settings, load_settings
from rest_api import create_todo_router, install_error_handlers
from server import create_mcp_server
from todo_store import TodoStore

logger = logging.getLogger("todo_app")


def create_app(store: TodoStore, settings: Optional[Settings] = None) -> FastAPI:
    """REST API under /api/todos plus the MCP endpoint at /mcp, sharing one store."""
    settings = settings or Settings()
    mcp = create_mcp_server(store, settings.allowed_hosts, settings.allowed_origins)
    mcp_app = mcp.streamable_http_app()

    @contextlib.asynccontextmanager
    async def lifespan(_app: FastAPI):
        async with mcp.session_manager.run():
            yield

    app = FastAPI(title="Todo MCP server", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Mcp-Session-Id"],
    )
    install_error_handlers(app)

    @app.get("/", response_class=PlainTextResponse)
    def index() -> str:
        return "Todo MCP server"

    app.include_router(create_todo_router(store))
    # Mounted last; its own route serves /mcp
    app.mount("/", mcp_app)
    return app


def _parse_args(argv: Optional[Sequence[str]], settings: Settings) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Todo list over MCP and REST.")
    parser.add_argument("--transport", choices=["http", "stdio"], default="http")
    parser.add_argument("--host", default=settings.host)
    parser.add_argument("--port", type=int, default=settings.port)
    parser.add_argument("--data-file", default=settings.data_file)
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    settings = load_settings()
    args = _parse_args(argv, settings)
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    store = TodoStore.open(args.data_file)

    if args.transport == "stdio":
        create_mcp_server(store).run(transport="stdio")
        return

    logger.info("Todo MCP server listening on http://localhost:%d/mcp", args.port)
    uvicorn.run(
        create_app(store, settings),
        host=args.host,
        port=args.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
