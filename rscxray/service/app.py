"""FastAPI application entrypoint for rscxray service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, Tuple

import uvicorn
from fastapi import Body, Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .. import __version__
from ..api import handle_request
from ..orchestrator import Orchestrator

NO_STORE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


class HealthResponse(BaseModel):
    status: str
    version: str


def _default_orchestrator() -> Orchestrator:
    return Orchestrator()


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing the analysis endpoint."""

    app = FastAPI(title="RSC X-Ray Analysis Service", version=__version__)

    async def get_orchestrator() -> Orchestrator:
        # Lazy-instantiate per request to keep state predictable.
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", version=__version__)

    @app.post("/analyze")
    async def analyze(
        payload: Any = Body(default=None),
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> JSONResponse:
        def _run() -> Tuple[int, Dict[str, Any]]:
            return handle_request(payload, orchestrator)

        loop = asyncio.get_running_loop()
        status, body = await loop.run_in_executor(None, _run)
        return JSONResponse(status_code=status, content=body, headers=NO_STORE_HEADERS)

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    uvicorn.run(create_app(), host=host, port=port)


__all__ = ["create_app", "run_service"]
