"""Serving the single-page client.

In production the built bundle is served from ``static_dir`` with an
``index.html`` fallback for client-side routes. In development the raw
``client/index.html`` template is re-read when it changes and stamped with a
cache-busting version on every request; that path is rate limited per client
and capped by a :class:`TransformThrottle`.
"""
from __future__ import annotations

import logging
import secrets
import threading
from pathlib import Path
from typing import Optional, Tuple

from fastapi import FastAPI, Request
from fastapi.responses import FileResponse, HTMLResponse
from slowapi import Limiter

from .config import Settings
from .errors import NotFound
from .throttle import TransformThrottle
from .uploads import resolve_managed_path

logger = logging.getLogger(__name__)

ENTRY_SCRIPT = 'src="/src/main.tsx"'
DEV_INDEX_RATE = "60/minute"
PAGE_NOT_FOUND = "الصفحة غير موجودة"


class IndexTemplate:
    """``index.html`` cached in memory until its modification time changes."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._cached: Optional[Tuple[float, str]] = None
        self._lock = threading.Lock()

    def load(self) -> str:
        mtime = self.path.stat().st_mtime
        with self._lock:
            if self._cached is None or self._cached[0] != mtime:
                self._cached = (mtime, self.path.read_text(encoding="utf-8"))
                logger.debug("Reloaded client template %s", self.path)
            return self._cached[1]

    def render(self) -> str:
        version = secrets.token_urlsafe(8)
        return self.load().replace(ENTRY_SCRIPT, f'src="/src/main.tsx?v={version}"')


def _is_api_path(path: str) -> bool:
    return path == "api" or path.startswith("api/")


def register_frontend(app: FastAPI, settings: Settings, limiter: Limiter) -> None:
    """Attach the client catch-all. Must run after every API router is included."""

    if settings.is_production:
        _register_static(app, settings.static_dir)
    else:
        _register_development(app, settings.client_dir, limiter)


def _register_static(app: FastAPI, static_dir: Path) -> None:
    if not static_dir.is_dir():
        raise RuntimeError(
            f"Could not find the build directory: {static_dir}, make sure to build the client first"
        )
    index = static_dir / "index.html"

    @app.get("/{full_path:path}", include_in_schema=False)
    async def serve_client(full_path: str) -> FileResponse:
        if _is_api_path(full_path):
            raise NotFound(PAGE_NOT_FOUND)
        candidate = resolve_managed_path(static_dir, full_path) if full_path else None
        if candidate is not None and candidate.is_file():
            return FileResponse(candidate)
        return FileResponse(index)


def _register_development(app: FastAPI, client_dir: Path, limiter: Limiter) -> None:
    template = IndexTemplate(client_dir / "index.html")
    throttle = TransformThrottle()
    app.state.transform_throttle = throttle

    @app.get("/{full_path:path}", include_in_schema=False)
    @limiter.limit(DEV_INDEX_RATE)
    async def serve_dev_index(request: Request, full_path: str) -> HTMLResponse:
        if _is_api_path(full_path):
            raise NotFound(PAGE_NOT_FOUND)
        if not template.path.is_file():
            logger.error("Client template missing at %s", template.path)
            raise NotFound(PAGE_NOT_FOUND)
        page = await throttle.run(template.render)
        return HTMLResponse(page)
