import os
import logging
from zipfile import BadZipFile
from typing import Iterator, List

import fitz          # PyMuPDF
import docx          # python-docx
from docx.opc.exceptions import PackageNotFoundError

from adaptlearn.core.errors import ExtractionError

log = logging.getLogger("extract")


def _pdf_paragraphs(path: str) -> List[str]:
    paras: List[str] = []
    with fitz.open(path) as doc:
        for page in doc:
            # 'blocks' yields tuples; index 4 is the text
            blocks = page.get_text("blocks") or []
            for b in blocks:
                if isinstance(b, (list, tuple)) and len(b) >= 5:
                    text = (b[4] or "").strip()
                    if text:
                        paras.append(text)
    return paras


def _iter_docx_paragraphs(d) -> Iterator[str]:
    for p in d.paragraphs:
        yield p.text
    # paragraphs inside tables
    for tbl in d.tables:
        for row in tbl.rows:
            for cell in row.cells:
                for p in cell.paragraphs:
                    yield p.text


def _docx_paragraphs(path: str) -> List[str]:
    d = docx.Document(path)
    return [t.strip() for t in _iter_docx_paragraphs(d) if t and t.strip()]


def _txt_paragraphs(path: str) -> List[str]:
    with open(path, "rb") as f:
        raw = f.read()
    return [raw.decode("utf-8-sig", errors="replace")]


_EXTRACTORS = {
    ".pdf": _pdf_paragraphs,
    ".docx": _docx_paragraphs,
    ".txt": _txt_paragraphs,
}


def extract_text(path: str, filename: str = "") -> str:
    """
    Return the plain text of a PDF, DOCX or TXT file.
    The type comes from `filename` when given (uploads are stored under
    temporary names), else from `path`.
    """
    ext = os.path.splitext(filename or path)[1].lower()
    if ext == ".doc":
        raise ExtractionError("DOC files are not supported. Convert to DOCX or PDF.", status_code=415)
    extractor = _EXTRACTORS.get(ext)
    if extractor is None:
        raise ExtractionError(f"Unsupported file type: {ext or 'none'}", status_code=415)

    try:
        paras = extractor(path)
    except (PackageNotFoundError, BadZipFile, ValueError, KeyError, RuntimeError) as e:
        log.warning("Could not decode %s file: %s", ext, e)
        raise ExtractionError(f"The {ext[1:].upper()} file could not be read.") from e

    text = "\n".join(paras).strip()
    if not text:
        raise ExtractionError(f"No text could be extracted from the {ext[1:].upper()} file")
    log.info("Extracted %d chars from %s file", len(text), ext)
    return text
