"""FastAPI application exposing the graph router."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from causaltopos import __version__
from causaltopos.analysis.monitoring import start_metrics_server
from causaltopos.routers.graph_router import get_config
from causaltopos.routers.graph_router import router as graph_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - depends on config
    monitor = get_config().get("monitor", {})
    if monitor.get("enabled"):
        start_metrics_server(int(monitor.get("port", 8000)))
    yield


app = FastAPI(title="Causaltopos API", version=__version__, lifespan=lifespan)
app.include_router(graph_router)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies as ``400 Bad Request``."""
    logger.info("Invalid request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


@app.get("/health", summary="Liveness probe")
def health() -> dict:
    return {"status": "ok", "version": __version__}

