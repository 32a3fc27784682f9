from __future__ import annotations

import logging
from typing import List, Optional

from adaptlearn.core.config import AI_TEMPERATURE, ANALYSIS_MAX_TOKENS, MAX_ANALYSIS_LINES, LLMSettings
from adaptlearn.core.errors import MalformedResponseError, TransientServiceError
from adaptlearn.models.report import AccessibilityReport
from adaptlearn.services import rules as R
from adaptlearn.services.jsonrepair import require_object
from adaptlearn.services.llm import LLMClient, OpenAIChatClient
from adaptlearn.services.normalize import normalize_report
from adaptlearn.services.prompts import ANALYSIS_PROMPT, number_lines

log = logging.getLogger("analyze")

SETUP_RECOMMENDATIONS = [
    "Get an API key from your AI provider (OpenAI or any OpenAI-compatible service)",
    "Set OPENAI_API_KEY (and OPENAI_BASE_URL / OPENAI_MODEL if not using OpenAI) in the environment",
    "Restart the server so the new configuration is picked up",
    "Upload the file again to get a line-by-line analysis",
]


def missing_credentials_report() -> AccessibilityReport:
    return AccessibilityReport(
        summary="AI analysis is not configured. Add an API key to enable line-by-line accessibility suggestions.",
        overall_score=0,
        lines=[],
        recommendations=list(SETUP_RECOMMENDATIONS),
    )


def rate_limited_report(line_count: int, disability: str) -> AccessibilityReport:
    return AccessibilityReport(
        summary="The AI service is currently at capacity. Please try again in a few minutes.",
        overall_score=0,
        lines=[],
        recommendations=[
            "Wait 1-2 minutes and try again",
            "Try during off-peak hours for better availability",
            "Consider a paid tier with higher rate limits for guaranteed access",
            f"Content has {line_count} lines to analyze for {disability} accessibility",
        ],
    )


def service_unavailable_report() -> AccessibilityReport:
    return AccessibilityReport(
        summary="The AI analysis service could not complete this request. No line-by-line suggestions are available.",
        overall_score=0,
        lines=[],
        recommendations=[
            "Try the upload again",
            "Check that the AI API key, base URL and model name are valid",
            *SETUP_RECOMMENDATIONS[2:],
        ],
    )


class AnalysisOrchestrator:
    """
    Produce an AccessibilityReport for uploaded content.

    Uses the AI backend when a credential is configured and falls back in a
    fixed way otherwise:
      - no credential             -> "not configured" report
      - rate limit / timeout      -> "try again later" report
      - unparseable model output  -> rule-based analysis
      - anything else             -> "service unavailable" report
    `analyze` never raises.
    """

    def __init__(self, settings: LLMSettings, client: Optional[LLMClient] = None):
        self.settings = settings
        if client is None and settings.configured:
            client = OpenAIChatClient(settings)
        self.client = client if settings.configured else None

    @property
    def ai_enabled(self) -> bool:
        return self.client is not None

    def build_prompt(self, lines: List[str], disability: str) -> str:
        return ANALYSIS_PROMPT.format(disability=disability, content=number_lines(lines))

    def analyze(self, content: str, disability: str) -> AccessibilityReport:
        if not self.ai_enabled:
            log.info("No AI credential configured; returning setup report")
            return missing_credentials_report()

        lines = R.content_lines(content)
        if len(lines) > MAX_ANALYSIS_LINES:
            log.info("Content truncated from %d to %d lines for analysis", len(lines), MAX_ANALYSIS_LINES)

        try:
            text = self.client.complete(
                self.build_prompt(lines[:MAX_ANALYSIS_LINES], disability),
                max_tokens=ANALYSIS_MAX_TOKENS,
                temperature=AI_TEMPERATURE,
            )
            report = normalize_report(require_object(text), disability)
        except TransientServiceError as e:
            log.warning("AI backend busy (status=%s); returning retry report", e.status_code)
            return rate_limited_report(len(lines), disability)
        except MalformedResponseError as e:
            log.warning("AI output unusable (%s); falling back to rule-based analysis", e)
            return R.analyze(content, disability)
        except Exception:
            log.exception("AI analysis failed")
            return service_unavailable_report()

        log.info("AI analysis done: score=%d, findings=%d, recommendations=%d",
                 report.overall_score, len(report.lines), len(report.recommendations))
        return report
