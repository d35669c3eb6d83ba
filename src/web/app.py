"""
FastAPI application factory for the live preview.

Routes:
- / -> minimal HTML page embedding the MJPEG stream
- /api/status -> loop status and timers
- /api/frame.jpg -> latest annotated frame
- /api/stream -> MJPEG stream of annotated frames
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.responses import HTMLResponse

from .routes import api

INDEX_HTML = """<!doctype html>
<html>
<head><title>Face Landmarks Demo</title></head>
<body style="margin:0;background:#111">
<img src="/api/stream" style="display:block;margin:auto;max-width:100%">
</body>
</html>
"""


def create_app() -> FastAPI:
    """Create the FastAPI app and wire routes."""
    app = FastAPI(
        title="Face Landmarks Demo",
        version="0.1.0",
        description="Live preview of face detection and facial landmarks",
    )

    app.include_router(api.router, prefix="/api")

    @app.get("/", response_class=HTMLResponse)
    def index():
        return INDEX_HTML

    return app
