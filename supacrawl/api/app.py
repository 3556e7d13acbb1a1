"""FastAPI application factory.

Lifespan
--------
On startup the app builds one :class:`~supacrawl.session.SessionController`
(shared across all requests via ``request.app.state.controller``) from the
process-wide settings.  On shutdown it cancels any crawl poll, releases held
audio and closes the HTTP clients.

Routers
-------
    /          the single page
    /api       session snapshot, scrape, crawl, speech and playback events
    /audio     the held audio bytes for the page's ``<audio>`` element
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from supacrawl import __version__
from supacrawl.config import settings
from supacrawl.session import SessionController, build_controller

from supacrawl.api.routers import audio as audio_router
from supacrawl.api.routers import page as page_router
from supacrawl.api.routers import session as session_router


def create_app(controller: SessionController | None = None) -> FastAPI:
    """Return a fully-configured FastAPI application instance.

    Pass *controller* to use a pre-built session (tests); otherwise one is
    built from :data:`supacrawl.config.settings` on startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.controller = controller or build_controller(settings)
        try:
            yield
        finally:
            app.state.controller.close()

    app = FastAPI(
        title="Supacrawl",
        description=(
            "Extract clean, structured data from any website for LLMs. "
            "Scrape a page or crawl a site through the extraction API and "
            "listen to the page description via text-to-speech."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    # Allow browser frontends on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/healthz", include_in_schema=False)
    def healthz() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(page_router.router, tags=["page"])
    app.include_router(session_router.router, prefix="/api", tags=["session"])
    app.include_router(audio_router.router, tags=["audio"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn supacrawl.api.app:app --reload
app = create_app()
