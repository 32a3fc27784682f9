from fastapi import APIRouter, Body
from fastapi.responses import Response
from pydantic import ValidationError

from adaptlearn.core.errors import InvalidRequestError
from adaptlearn.models.report import AccessibilityReport, DisabilityIdentification, ExamAdaptationResult
from adaptlearn.services.render import MEDIA_TYPES, render

router = APIRouter(tags=["download"])

# contentType -> (payload key, model, download name)
CONTENT_TYPES = {
    "analysis": ("analysisResult", AccessibilityReport, "accessibility-analysis"),
    "exam": ("analysisResult", ExamAdaptationResult, "adapted-exam"),
    "disability": ("identificationResult", DisabilityIdentification, "disability-identification"),
}


@router.post("/download")
def download(payload: dict = Body(...)):
    fmt = payload.get("format")
    content_type = payload.get("contentType")
    if not fmt or not content_type:
        raise InvalidRequestError("Missing required parameters")
    if fmt not in MEDIA_TYPES:
        raise InvalidRequestError(f"Invalid format: {fmt}")
    if content_type not in CONTENT_TYPES:
        raise InvalidRequestError("Invalid content type")

    key, model, name = CONTENT_TYPES[content_type]
    raw = payload.get(key)
    if not isinstance(raw, dict):
        raise InvalidRequestError(f"Missing {key} for {content_type} content")
    try:
        result = model.model_validate(raw)
    except ValidationError as e:
        raise InvalidRequestError(f"Invalid {key}", details=str(e)) from e

    data = render(result, fmt)
    filename = f"{name}.{fmt}"
    return Response(
        content=data,
        media_type=MEDIA_TYPES[fmt],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
