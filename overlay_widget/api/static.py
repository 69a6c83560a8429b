from __future__ import annotations

import logging
from pathlib import Path

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import FileResponse

router = APIRouter(tags=["static"])

logger = logging.getLogger(__name__)

_CONTENT_TYPES = {
    ".html": "text/html; charset=utf-8",
    ".js": "application/javascript; charset=utf-8",
    ".css": "text/css; charset=utf-8",
    ".json": "application/json; charset=utf-8",
    ".svg": "image/svg+xml",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".ico": "image/x-icon",
}


def content_type_for(path: Path) -> str:
    return _CONTENT_TYPES.get(path.suffix.lower(), "application/octet-stream")


def safe_resolve(root: Path, path: str) -> Path:
    """Resolve ``path`` under ``root``; anything landing outside the root is refused."""
    candidate = (root / path.lstrip("/")).resolve()
    if candidate != root and root not in candidate.parents:
        logger.warning("Refused static path outside root: %s", path)
        raise HTTPException(status_code=403, detail="Forbidden")
    return candidate


@router.get("/{path:path}", include_in_schema=False)
async def serve_static(request: Request, path: str) -> FileResponse:
    root = Path(request.app.state.settings.static_dir).resolve()
    file_path = safe_resolve(root, path or "index.html")

    if file_path.is_dir():
        file_path = safe_resolve(file_path, "index.html")

    if file_path.is_file():
        return FileResponse(
            file_path,
            media_type=content_type_for(file_path),
            headers={"Cache-Control": "no-cache"},
        )

    raise HTTPException(status_code=404, detail="Not Found")


__all__ = ["router", "safe_resolve", "content_type_for"]
