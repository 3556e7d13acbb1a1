"""Audio endpoints: serve the held handle and receive playback events.

Routes
------
GET  /audio/{handle_id}              The audio bytes (404 once released)
POST /api/audio/{handle_id}/ended    Playback reached its end
POST /api/audio/{handle_id}/error    Playback failed in the browser
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel

router = APIRouter()


class PlaybackError(BaseModel):
    message: Optional[str] = None


@router.get("/audio/{handle_id}")
def get_audio(handle_id: str, request: Request) -> Response:
    handle = request.app.state.controller.audio(handle_id)
    if handle is None or handle.released:
        raise HTTPException(status_code=404, detail="Audio not found")
    return Response(
        content=handle.data,
        media_type=handle.media_type,
        headers={"Cache-Control": "no-store"},
    )


@router.post("/api/audio/{handle_id}/ended")
def audio_ended(handle_id: str, request: Request) -> dict[str, Any]:
    controller = request.app.state.controller
    controller.playback_ended(handle_id)
    return controller.snapshot().to_dict()


@router.post("/api/audio/{handle_id}/error")
def audio_error(
    handle_id: str, request: Request, body: Optional[PlaybackError] = None
) -> dict[str, Any]:
    controller = request.app.state.controller
    if body is not None and body.message:
        controller.playback_failed(handle_id, body.message)
    else:
        controller.playback_failed(handle_id)
    return controller.snapshot().to_dict()
