"""Session endpoints: the actions behind the page's buttons.

Routes
------
GET  /api/session         Snapshot of the session state
POST /api/scrape          Body: {"url": "https://..."}  → scrape one page
POST /api/crawl           Body: {"url": "https://..."}  → start a crawl (202)
POST /api/crawl/cancel    Stop polling the active crawl
POST /api/speak           Read the result's description aloud
POST /api/stop            Stop playback

Controller calls block on the network, so they run on a small thread pool.
A started crawl keeps one worker busy polling until it ends; the page follows
its progress through ``GET /api/session``.  Actions requested while the
session is busy are refused with 409.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, TypeVar

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from supacrawl.errors import SessionBusy
from supacrawl.session import SessionController

logger = logging.getLogger(__name__)

router = APIRouter()

# One worker may be parked on a crawl poll; the others serve scrape/speech.
_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="session")

_T = TypeVar("_T")


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class UrlRequest(BaseModel):
    url: str = Field(..., min_length=1)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _controller(request: Request) -> SessionController:
    return request.app.state.controller


async def _call(func: Callable[..., _T], *args: Any) -> _T:
    """Run a blocking controller call on the pool, mapping precondition errors."""
    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(_executor, func, *args)
    except SessionBusy as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


def _log_crawl_failure(future: Future) -> None:  # type: ignore[type-arg]
    exc = future.exception()
    if exc is not None:
        logger.error("Crawl polling crashed: %s", exc, exc_info=exc)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/session")
def get_session(request: Request) -> dict[str, Any]:
    return _controller(request).snapshot().to_dict()


@router.post("/scrape")
async def scrape(body: UrlRequest, request: Request) -> dict[str, Any]:
    """Scrape one page.  A failed scrape is reported in the state's ``error``."""
    state = await _call(_controller(request).run_scrape, body.url)
    return state.to_dict()


@router.post("/crawl")
async def crawl(body: UrlRequest, request: Request) -> JSONResponse:
    """Start a crawl and poll it in the background.

    Returns 202 with the job id once the crawl has started, or 200 with the
    session error if the crawl could not be started.
    """
    controller = _controller(request)
    job = await _call(controller.begin_crawl, body.url)
    if job is None:
        return JSONResponse(status_code=200, content=controller.snapshot().to_dict())

    future = _executor.submit(controller.follow_crawl, job)
    future.add_done_callback(_log_crawl_failure)
    return JSONResponse(
        status_code=202,
        content={"job_id": job.id, **controller.snapshot().to_dict()},
    )


@router.post("/crawl/cancel")
def cancel_crawl(request: Request) -> dict[str, bool]:
    return {"cancelled": _controller(request).cancel_crawl()}


@router.post("/speak")
async def speak(request: Request) -> dict[str, Any]:
    """Synthesize the current result's description; the page then plays ``audio_url``."""
    controller = _controller(request)
    await _call(controller.speak)
    return controller.snapshot().to_dict()


@router.post("/stop")
def stop(request: Request) -> dict[str, Any]:
    controller = _controller(request)
    controller.stop()
    return controller.snapshot().to_dict()
