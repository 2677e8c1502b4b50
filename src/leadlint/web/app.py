"""FastAPI application factory: mounts the API routes."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.responses import RedirectResponse


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    app = FastAPI(title="leadlint", version="0.1.0")

    from leadlint.web.api import router as api_router
    app.include_router(api_router, prefix="/api")

    # Redirect root to the interactive docs
    @app.get("/")
    async def _root():
        return RedirectResponse(url="/docs")

    return app
