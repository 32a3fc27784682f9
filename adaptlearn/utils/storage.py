import os
import logging
import tempfile
from contextlib import asynccontextmanager
from typing import AsyncIterator

import magic
from fastapi import UploadFile

from adaptlearn.core.config import ALLOWED_EXTENSIONS, MIME_ALLOW
from adaptlearn.core.errors import ExtractionError

log = logging.getLogger("storage")


def _mime_allowed(ext: str, mime: str) -> bool:
    if ext == ".txt" and mime.startswith("text/"):
        return True
    return mime in MIME_ALLOW[ext]


@asynccontextmanager
async def scoped_upload(file: UploadFile) -> AsyncIterator[str]:
    """
    Stream an upload to a temporary file and yield its path.
    The file is removed when the block exits, whether or not it raised.
    """
    _, ext = os.path.splitext(file.filename or "")
    ext = ext.lower()
    if ext == ".doc":
        raise ExtractionError("DOC files are not supported. Convert to DOCX or PDF.", status_code=415)
    if ext not in ALLOWED_EXTENSIONS:
        raise ExtractionError("Only .pdf, .docx or .txt files are allowed", status_code=415)

    with tempfile.NamedTemporaryFile(delete=False, suffix=ext) as tmp:
        tmp_path = tmp.name
    try:
        with open(tmp_path, "wb") as out:
            while True:
                chunk = await file.read(1 << 20)  # 1 MB
                if not chunk:
                    break
                out.write(chunk)

        file_mime = magic.Magic(mime=True).from_file(tmp_path)
        if not _mime_allowed(ext, file_mime):
            raise ExtractionError(f"Unexpected MIME type: {file_mime} for {ext}")
        yield tmp_path
    finally:
        try:
            os.remove(tmp_path)
        except FileNotFoundError:
            pass
        log.debug("Removed temporary upload %s", tmp_path)
