import logging

from fastapi import APIRouter, Body, Depends

from adaptlearn.api.deps import get_identifier
from adaptlearn.core.errors import (
    ApiError,
    ConfigurationError,
    InvalidRequestError,
    LLMServiceError,
    MalformedResponseError,
    TransientServiceError,
)
from adaptlearn.services.identify import DisabilityIdentifier

log = logging.getLogger("api")

router = APIRouter(tags=["identify"])


@router.post("/identify-disability")
def identify_disability(
    payload: dict = Body(...),
    identifier: DisabilityIdentifier = Depends(get_identifier),
):
    characteristics = payload.get("characteristics")
    if not isinstance(characteristics, str) or not characteristics.strip():
        raise InvalidRequestError("Characteristics are required")

    try:
        result = identifier.identify(characteristics)
    except ConfigurationError as e:
        raise ApiError("AI API key not configured", status_code=500, details=str(e)) from e
    except TransientServiceError as e:
        raise ApiError("AI service is busy, please try again shortly", status_code=503, details=str(e)) from e
    except (MalformedResponseError, LLMServiceError) as e:
        log.warning("Disability identification failed: %s", e)
        raise ApiError("Failed to identify disability", status_code=502, details=str(e)) from e
    return result.to_json()
