from typing import Literal, Union

from adaptlearn.core.errors import InvalidRequestError
from adaptlearn.models.report import AccessibilityReport, DisabilityIdentification, ExamAdaptationResult
from adaptlearn.services import render_docx, render_pdf

Format = Literal["pdf", "docx"]
Renderable = Union[AccessibilityReport, ExamAdaptationResult, DisabilityIdentification]

MEDIA_TYPES = {
    "pdf": "application/pdf",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}

_RENDERERS = {
    AccessibilityReport: (render_pdf.analysis_pdf, render_docx.analysis_docx),
    ExamAdaptationResult: (render_pdf.exam_pdf, render_docx.exam_docx),
    DisabilityIdentification: (render_pdf.disability_pdf, render_docx.disability_docx),
}


def render(result: Renderable, fmt: Format) -> bytes:
    """Render a report, adapted exam or identification result to PDF or DOCX bytes."""
    if fmt not in MEDIA_TYPES:
        raise InvalidRequestError(f"Unsupported format: {fmt}")
    try:
        to_pdf, to_docx = _RENDERERS[type(result)]
    except KeyError:
        raise InvalidRequestError(f"Cannot render {type(result).__name__}") from None
    return to_pdf(result) if fmt == "pdf" else to_docx(result)
