import logging
from typing import Optional

from adaptlearn.core.config import AI_TEMPERATURE, IDENTIFY_MAX_TOKENS, LLMSettings
from adaptlearn.core.errors import ConfigurationError
from adaptlearn.models.report import DisabilityIdentification
from adaptlearn.services.jsonrepair import require_object
from adaptlearn.services.llm import LLMClient, OpenAIChatClient
from adaptlearn.services.normalize import normalize_identification
from adaptlearn.services.prompts import IDENTIFY_PROMPT

log = logging.getLogger("identify")


class DisabilityIdentifier:
    """Suggest a likely learning challenge from a description of a student.

    Unlike content analysis there is no offline fallback, so failures are
    raised for the endpoint to report.
    """

    def __init__(self, settings: LLMSettings, client: Optional[LLMClient] = None):
        if client is None and settings.configured:
            client = OpenAIChatClient(settings)
        self.client = client if settings.configured else None

    def identify(self, characteristics: str) -> DisabilityIdentification:
        if self.client is None:
            raise ConfigurationError("AI API key not configured")
        text = self.client.complete(
            IDENTIFY_PROMPT.format(characteristics=characteristics.strip()),
            max_tokens=IDENTIFY_MAX_TOKENS,
            temperature=AI_TEMPERATURE,
        )
        result = normalize_identification(require_object(text))
        log.info("Identification suggested=%r, recommendations=%d",
                 result.suggested_disability, len(result.recommendations))
        return result
