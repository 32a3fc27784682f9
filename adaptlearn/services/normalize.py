# adaptlearn/services/normalize.py
"""
Turn loosely-shaped model output into domain models.

Everything that comes back from the AI backend passes through one of the
`normalize_*` functions before it leaves a service. Missing fields get
defaults, enums are checked against their allowed values and the score is
clamped, so callers always receive a complete, renderable object.
"""
from __future__ import annotations

import logging
import math
from typing import Any, List, Optional

from adaptlearn.models.report import (
    PLACEMENTS,
    SEVERITIES,
    AccessibilityReport,
    DisabilityIdentification,
    ExamAdaptationResult,
    ImageSuggestion,
    LineFinding,
)

log = logging.getLogger("normalize")

DEFAULT_SCORE = 70
DEFAULT_REASON = "Accessibility concern identified"
DEFAULT_STRATEGY = "Evidence-based teaching practice"
DEFAULT_RECOMMENDATIONS = [
    "Consider breaking content into smaller sections",
    "Use more visual aids and examples",
    "Provide clear structure and organization",
    "Use simpler language where possible",
    "Add more interactive elements",
]
DEFAULT_EXPLANATION = "Unable to determine based on the provided characteristics."


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def _int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(round(value))
    if isinstance(value, str):
        try:
            f = float(value.strip())
        except ValueError:
            return None
        return int(round(f)) if math.isfinite(f) else None
    return None


def _strings(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    return [s for s in (_text(v) for v in value) if s]


def clamp_score(value: Any, default: int = DEFAULT_SCORE) -> int:
    score = _int(value)
    if score is None:
        return default
    return max(0, min(100, score))


def normalize_severity(value: Any) -> str:
    v = _text(value).lower()
    return v if v in SEVERITIES else "medium"


def normalize_placement(value: Any) -> str:
    v = _text(value).lower()
    return v if v in PLACEMENTS else "beside"


def normalize_image(raw: Any) -> Optional[ImageSuggestion]:
    if not isinstance(raw, dict):
        return None
    description = _text(raw.get("description"))
    if not description:
        return None
    q = _int(raw.get("questionNumber", raw.get("question_number")))
    return ImageSuggestion(
        description=description,
        alt_text=_text(raw.get("altText", raw.get("alt_text"))) or description,
        placement=normalize_placement(raw.get("placement")),
        question_number=q if q is not None and q >= 1 else None,
    )


def normalize_images(raw: Any) -> List[ImageSuggestion]:
    if not isinstance(raw, list):
        return []
    return [img for img in (normalize_image(r) for r in raw) if img is not None]


def normalize_line(raw: Any, position: int) -> Optional[LineFinding]:
    """`position` is the 1-based index of `raw` in the payload, used when
    the line number is missing or invalid."""
    if not isinstance(raw, dict):
        return None
    original = _text(raw.get("originalLine", raw.get("original_line")))
    if not original:
        return None
    number = _int(raw.get("lineNumber", raw.get("line_number")))
    suggested = _text(raw.get("suggestedChange", raw.get("suggested_change")))
    return LineFinding(
        line_number=number if number is not None and number >= 1 else max(1, position),
        original_line=original,
        suggested_change=suggested or None,
        reason=_text(raw.get("reason")) or DEFAULT_REASON,
        strategy=_text(raw.get("strategy")) or DEFAULT_STRATEGY,
        severity=normalize_severity(raw.get("severity")),
        suggested_images=normalize_images(raw.get("suggestedImages", raw.get("suggested_images"))),
    )


def normalize_report(raw: Any, disability: str) -> AccessibilityReport:
    data = raw if isinstance(raw, dict) else {}
    raw_lines = data.get("lines")
    lines: List[LineFinding] = []
    if isinstance(raw_lines, list):
        for position, item in enumerate(raw_lines, start=1):
            finding = normalize_line(item, position)
            if finding is not None:
                lines.append(finding)
        dropped = len(raw_lines) - len(lines)
        if dropped:
            log.info("Dropped %d malformed line entries from model output", dropped)

    recommendations = _strings(data.get("recommendations"))
    return AccessibilityReport(
        summary=_text(data.get("summary")) or f"Analysis for {disability} completed.",
        overall_score=clamp_score(data.get("overallScore", data.get("overall_score"))),
        lines=lines,
        recommendations=recommendations if recommendations is not None else list(DEFAULT_RECOMMENDATIONS),
        suggested_images=normalize_images(data.get("suggestedImages", data.get("suggested_images"))),
    )


def normalize_exam(raw: Any, original: str, disability: str) -> ExamAdaptationResult:
    data = raw if isinstance(raw, dict) else {}
    adapted = data.get("adaptedExam", data.get("adapted_exam"))
    adapted = adapted.strip() if isinstance(adapted, str) and adapted.strip() else original
    changes = _int(data.get("changesMade", data.get("changes_made")))
    recommendations = _strings(data.get("recommendations"))
    return ExamAdaptationResult(
        summary=_text(data.get("summary")) or f"Exam adapted for {disability}.",
        original_exam=original,
        adapted_exam=adapted,
        changes_made=max(0, changes) if changes is not None else 0,
        recommendations=recommendations if recommendations is not None else [],
        suggested_images=normalize_images(data.get("suggestedImages", data.get("suggested_images"))),
    )


def normalize_identification(raw: Any) -> DisabilityIdentification:
    data = raw if isinstance(raw, dict) else {}
    return DisabilityIdentification(
        suggested_disability=_text(data.get("suggestedDisability", data.get("suggested_disability"))) or "Unknown",
        explanation=_text(data.get("explanation")) or DEFAULT_EXPLANATION,
        recommendations=_strings(data.get("recommendations")) or [],
    )
