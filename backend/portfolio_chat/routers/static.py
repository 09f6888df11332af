import logging
import mimetypes
from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import FileResponse, PlainTextResponse, StreamingResponse

from portfolio_chat.config import Settings
from portfolio_chat.dependencies import get_app_settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["static"])

VIDEO_EXTENSIONS = {".mp4", ".webm"}
CHUNK_SIZE = 64 * 1024


def resolve_static_path(root: Path, url_path: str) -> Path:
    """Map a URL path onto a file under root.

    Raises:
        PermissionError if the resolved path escapes root.
    """
    root = root.resolve()
    relative = url_path.split("?")[0].lstrip("/") or "index.html"
    candidate = (root / relative).resolve()
    if not candidate.is_relative_to(root):
        raise PermissionError(url_path)
    return candidate


def parse_byte_range(header: str, size: int) -> tuple[int, int] | None:
    """Parse a single ``bytes=start-end`` range, clamping bad bounds.

    Returns None when the range cannot be satisfied.
    """
    parts = header.strip().removeprefix("bytes=").split("-", 1)
    try:
        start = int(parts[0])
    except ValueError:
        start = 0
    try:
        end = int(parts[1]) if len(parts) > 1 and parts[1] else size - 1
    except ValueError:
        end = size - 1

    if start < 0:
        start = 0
    if end >= size:
        end = size - 1
    if start > end:
        return None
    return start, end


def _iter_file(path: Path, start: int, end: int):
    with path.open("rb") as f:
        f.seek(start)
        remaining = end - start + 1
        while remaining > 0:
            chunk = f.read(min(CHUNK_SIZE, remaining))
            if not chunk:
                break
            remaining -= len(chunk)
            yield chunk


@router.get("/{path:path}", include_in_schema=False)
async def serve_static(
    path: str,
    request: Request,
    settings: Settings = Depends(get_app_settings),
):
    try:
        file_path = resolve_static_path(Path(settings.static_dir), path)
    except PermissionError:
        logger.warning("Rejected static path outside root: %s", path)
        return PlainTextResponse("Forbidden", status_code=403)

    if not file_path.is_file():
        return PlainTextResponse("Not found", status_code=404)

    content_type = mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"
    range_header = request.headers.get("range")

    if range_header and file_path.suffix.lower() in VIDEO_EXTENSIONS:
        size = file_path.stat().st_size
        byte_range = parse_byte_range(range_header, size)
        if byte_range is None:
            return PlainTextResponse(
                "Range Not Satisfiable",
                status_code=416,
                headers={"Content-Range": f"bytes */{size}"},
            )
        start, end = byte_range
        return StreamingResponse(
            _iter_file(file_path, start, end),
            status_code=206,
            media_type=content_type,
            headers={
                "Content-Range": f"bytes {start}-{end}/{size}",
                "Accept-Ranges": "bytes",
                "Content-Length": str(end - start + 1),
            },
        )

    return FileResponse(file_path, media_type=content_type)
