import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

from fastapi import HTTPException, UploadFile

from ..config import MAX_UPLOAD_BYTES, UPLOAD_DIR
from ..utils.error_handlers import get_error_message
from ..utils.validation import sanitize_filename

logger = logging.getLogger(__name__)

CHUNK_BYTES = 1024 * 1024


@dataclass
class StoredUpload:
    path: Path
    original_filename: str


def _remove(path: Path) -> None:
    try:
        if path.exists():
            path.unlink()
    except OSError as e:
        logger.warning("Could not remove temporary upload %s: %s", path, e)


@asynccontextmanager
async def stored_upload(file: UploadFile, *, max_bytes: int = MAX_UPLOAD_BYTES, upload_dir: str | None = None):
    """
    Write an upload to a temporary file under UPLOAD_DIR and yield it.

    The file is removed when the block exits, whether or not it raised.
    Uploads larger than `max_bytes` are rejected with 413.
    """
    original_filename = sanitize_filename(Path(file.filename or "").name)
    ext = Path(original_filename).suffix.lower()

    base_dir = Path(upload_dir or UPLOAD_DIR) / "tmp"
    base_dir.mkdir(parents=True, exist_ok=True)
    dest = base_dir / f"{uuid4().hex}{ext}"

    size = 0
    try:
        try:
            with open(dest, "wb") as out:
                while True:
                    chunk = await file.read(CHUNK_BYTES)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > max_bytes:
                        raise HTTPException(status_code=413, detail=get_error_message("file_too_large"))
                    out.write(chunk)
        finally:
            await file.close()

        logger.debug("Stored upload %s (%s bytes)", original_filename, size)
        yield StoredUpload(path=dest, original_filename=original_filename)
    finally:
        _remove(dest)
