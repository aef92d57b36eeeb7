"""FastAPI HTTP binding for the command gateway.

Endpoints:

    GET  /health        -> {"status": "ok", "pending": 0, "logged": 3}
    POST /api/send      <- {"command": "whoami"}     -> {"id": ..., "result": ...}
    POST /api/poll      -> {"id": ..., "command": ...} or 204
    POST /api/report    <- {"id": ..., "result": "root"} -> {"message": "Result received"}
    GET  /api/logs      -> [LogEntry, ...]

``/api/send`` holds the request open until the agent reports or the
timeout window elapses, so clients must allow at least the window plus
one second before giving up.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, Field, StrictStr
from starlette.exceptions import HTTPException as StarletteHTTPException

from cmdrelay.config.settings import Settings, load_settings
from cmdrelay.domain.errors import CommandNotFound, CommandTimeoutError, InvalidArgument
from cmdrelay.domain.models import LogEntry, PolledCommand, SubmitResult
from cmdrelay.gateway.service import CommandGateway
from cmdrelay.registry.pending import PendingRegistry
from cmdrelay.store.log_store import LogStore
from cmdrelay.utils.logging import uvicorn_log_config

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Command ID not found or timed out"


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------

class SendRequest(BaseModel):
    command: StrictStr = Field(
        validation_alias=AliasChoices("command", "cmd"),
        description="Command text for the agent to execute",
    )


class ReportRequest(BaseModel):
    id: StrictStr = Field(description="Correlation id returned by /api/poll")
    result: StrictStr = Field(description="Output produced by the agent")


class ReportResponse(BaseModel):
    message: str = "Result received"


class HealthResponse(BaseModel):
    status: str = "ok"
    pending: int = 0
    logged: int = 0


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------

def create_app(
    settings: Settings | None = None,
    gateway: CommandGateway | None = None,
) -> FastAPI:
    """Create the rendezvous REST API application.

    Args:
        settings: Configuration; defaults are used when None.
        gateway: Optional pre-built gateway (for testing). When None the
                 lifespan loads the log file and builds one.
    """
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        g: CommandGateway | None = app.state.gateway
        if g is None:
            store = LogStore(settings.store.log_file)
            store.load()
            g = CommandGateway(store, PendingRegistry())
            app.state.gateway = g
        logger.info(
            "Rendezvous server started (%d logged commands, log=%s)",
            len(g.log_store),
            g.log_store.path,
        )
        yield
        g.registry.close()
        logger.info("Rendezvous server stopped")

    app = FastAPI(
        title="cmdrelay",
        description="Command-dispatch rendezvous between callers and a polling agent",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.gateway = gateway

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        problems = []
        for err in exc.errors():
            field = ".".join(str(p) for p in err.get("loc", ())[1:])
            problems.append(f"{field}: {err['msg']}" if field else err["msg"])
        return _error(400, "; ".join(problems) or "Invalid request")

    @app.exception_handler(InvalidArgument)
    async def handle_invalid_argument(request: Request, exc: InvalidArgument) -> JSONResponse:
        return _error(400, str(exc))

    @app.exception_handler(CommandNotFound)
    async def handle_not_found(request: Request, exc: CommandNotFound) -> JSONResponse:
        logger.warning("Report for unknown or expired command %s", exc.command_id)
        return _error(404, NOT_FOUND_MESSAGE)

    @app.exception_handler(CommandTimeoutError)
    async def handle_timeout(request: Request, exc: CommandTimeoutError) -> JSONResponse:
        return _error(504, str(exc))

    def _get_gateway() -> CommandGateway:
        g = app.state.gateway
        if g is None:
            raise HTTPException(status_code=503, detail="Gateway not initialized")
        return g

    @app.get("/health")
    async def health_check() -> HealthResponse:
        g = app.state.gateway
        return HealthResponse(
            status="ok",
            pending=len(g.registry) if g else 0,
            logged=len(g.log_store) if g else 0,
        )

    @app.post("/api/send")
    async def send_command(request: SendRequest) -> SubmitResult:
        return await _get_gateway().submit(request.command)

    @app.post("/api/poll", response_model=None)
    async def poll_command() -> PolledCommand | Response:
        polled = _get_gateway().poll()
        if polled is None:
            return Response(status_code=204)
        return polled

    @app.post("/api/report")
    async def report_result(request: ReportRequest) -> ReportResponse:
        _get_gateway().report(request.id, request.result)
        return ReportResponse()

    @app.get("/api/logs")
    async def get_logs() -> list[LogEntry]:
        return _get_gateway().get_logs()

    return app


# ---------------------------------------------------------------------------
# Standalone entry point
# ---------------------------------------------------------------------------

def main(settings: Settings | None = None) -> None:
    """Run the rendezvous server."""
    settings = settings or load_settings()
    app = create_app(settings)
    uvicorn.run(
        app,
        host=settings.server.host,
        port=settings.server.port,
        log_config=uvicorn_log_config(settings.logging),
    )


if __name__ == "__main__":
    main()
