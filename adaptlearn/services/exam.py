from __future__ import annotations

import re
import logging
from typing import List, Optional, Tuple

from adaptlearn.core.config import AI_TEMPERATURE, EXAM_MAX_TOKENS, LONG_LINE_WORDS, SPLIT_MAX_WORDS, LLMSettings
from adaptlearn.core.errors import MalformedResponseError, TransientServiceError
from adaptlearn.models.report import ExamAdaptationResult, ImageSuggestion
from adaptlearn.services import rules as R
from adaptlearn.services.categories import DisabilityCategory as C
from adaptlearn.services.jsonrepair import require_object
from adaptlearn.services.llm import LLMClient, OpenAIChatClient
from adaptlearn.services.normalize import DEFAULT_RECOMMENDATIONS, normalize_exam
from adaptlearn.services.prompts import EXAM_PROMPT

log = logging.getLogger("exam")

# "1.", "2)", "Q3:", "Question 4 -" at the start of a line
QUESTION_RE = re.compile(r"^\s*(?:q(?:uestion)?\s*)?(\d+)\s*[.):\-]", re.IGNORECASE | re.MULTILINE)

VISUAL_TOPICS = re.compile(
    r"\b(graph|chart|map|diagram|timeline|triangle|circle|square|rectangle|angle|fraction|number line|"
    r"cell|plant|animal|planet|solar system|water cycle|food chain|skeleton|volcano|clock|coins?)\b",
    re.IGNORECASE,
)
# categories for which a picture next to the question helps
IMAGE_CATEGORIES = {C.DYSLEXIA, C.ADHD, C.AUTISM, C.DYSCALCULIA, C.HEARING_IMPAIRMENT, C.DYSGRAPHIA}


def count_questions(text: str) -> int:
    return len(QUESTION_RE.findall(text or ""))


def question_numbers(text: str) -> List[int]:
    return [int(n) for n in QUESTION_RE.findall(text or "")]


def questions(text: str) -> List[Tuple[int, str]]:
    out = []
    for line in (text or "").splitlines():
        m = QUESTION_RE.match(line)
        if m:
            out.append((int(m.group(1)), line.strip()))
    return out


def _degraded(exam: str, summary: str, recommendations: List[str]) -> ExamAdaptationResult:
    return ExamAdaptationResult(
        summary=summary,
        original_exam=exam,
        adapted_exam=exam,
        changes_made=0,
        recommendations=recommendations,
    )


def _adapt_line(line: str, category: Optional[C]) -> str:
    if not line.strip():
        return line
    new = R.simplify_vocabulary(line)
    if category is C.AUTISM:
        new = R.literalize_idioms(new)
    elif category is C.EMOTIONAL_BEHAVIORAL:
        new = R.reframe_positively(new)

    limit = LONG_LINE_WORDS.get(category.value) if category else None
    if limit and len(new.split()) > limit:
        indent = new[:len(new) - len(new.lstrip())]
        parts = R.break_into_shorter_sentences(new, SPLIT_MAX_WORDS).split("\n")
        split = "\n".join([indent + parts[0]] + [indent + "   " + p for p in parts[1:]])
        # never let a continuation line look like a new question
        if count_questions(split) == count_questions(line):
            new = split
    return new


def _image_suggestions(adapted: str, category: Optional[C]) -> List[ImageSuggestion]:
    if category not in IMAGE_CATEGORIES:
        return []
    images = []
    for number, text in questions(adapted):
        m = VISUAL_TOPICS.search(text)
        if not m:
            continue
        topic = m.group(1).lower()
        images.append(ImageSuggestion(
            description=f"Simple labelled illustration of the {topic} in question {number}",
            alt_text=f"A clear, labelled picture of a {topic}.",
            placement="beside",
            question_number=number,
        ))
    return images


def adapt_with_rules(exam: str, disability: str) -> ExamAdaptationResult:
    """Offline adaptation: reword lines in place, never add or remove questions."""
    category = C.parse(disability)
    original_lines = exam.splitlines()
    adapted_lines = [_adapt_line(line, category) for line in original_lines]
    changes = sum(1 for a, b in zip(original_lines, adapted_lines) if a != b)
    adapted = "\n".join(adapted_lines)
    label = category.label if category else disability

    return ExamAdaptationResult(
        summary=(f"Basic adaptation for {label}: {changes} line(s) reworded without changing the "
                 f"{count_questions(exam)} question(s) or their order. The AI service could not "
                 f"process this exam, so only simple wording changes were made."),
        original_exam=exam,
        adapted_exam=adapted,
        changes_made=changes,
        recommendations=list(R.RECOMMENDATIONS[category]) if category else list(DEFAULT_RECOMMENDATIONS),
        suggested_images=_image_suggestions(adapted, category),
    )


class ExamAdapter:
    """Adapt exam wording for a disability while keeping every question in place.

    Same failure policy as AnalysisOrchestrator: `adapt` never raises. When
    the model output is unusable, including when it changes the number of
    questions, the rule-based adaptation is returned instead.
    """

    def __init__(self, settings: LLMSettings, client: Optional[LLMClient] = None):
        self.settings = settings
        if client is None and settings.configured:
            client = OpenAIChatClient(settings)
        self.client = client if settings.configured else None

    def adapt(self, exam: str, disability: str) -> ExamAdaptationResult:
        exam = (exam or "").strip()
        if self.client is None:
            log.info("No AI credential configured; returning exam unchanged")
            return _degraded(exam, "AI exam adaptation is not configured. The exam is shown unchanged.", [
                "Set OPENAI_API_KEY (and OPENAI_BASE_URL / OPENAI_MODEL if needed) in the environment",
                "Restart the server and submit the exam again",
            ])

        numbering = question_numbers(exam)
        expected = len(numbering)
        try:
            text = self.client.complete(
                EXAM_PROMPT.format(disability=disability, question_count=expected, exam=exam),
                max_tokens=EXAM_MAX_TOKENS,
                temperature=AI_TEMPERATURE,
            )
            result = normalize_exam(require_object(text), exam, disability)
            got = question_numbers(result.adapted_exam)
            if numbering and got != numbering:
                raise MalformedResponseError(
                    f"adapted exam numbers questions {got}, expected {numbering}" if len(got) == expected
                    else f"adapted exam has {len(got)} questions, expected {expected}")
        except TransientServiceError as e:
            log.warning("AI backend busy (status=%s); returning exam unchanged", e.status_code)
            return _degraded(exam, "The AI service is currently at capacity. The exam is shown unchanged.", [
                "Wait 1-2 minutes and try again",
                "Try during off-peak hours for better availability",
            ])
        except MalformedResponseError as e:
            log.warning("AI exam output unusable (%s); using rule-based adaptation", e)
            return adapt_with_rules(exam, disability)
        except Exception:
            log.exception("AI exam adaptation failed")
            return _degraded(exam, "The AI service could not adapt this exam. The exam is shown unchanged.", [
                "Try again in a few minutes",
                "Check that the AI API key, base URL and model name are valid",
            ])

        log.info("Exam adapted: questions=%d, changes=%d", expected, result.changes_made)
        return result
