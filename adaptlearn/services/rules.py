from __future__ import annotations

import re
import logging
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

import textstat

from adaptlearn.core.config import (
    DENSE_LONG_WORDS,
    LONG_LINE_WORDS,
    LONG_WORD_CHARS,
    NEUTRAL_SCORE,
    RULE_PENALTY,
    SPLIT_MAX_WORDS,
)
from adaptlearn.models.report import AccessibilityReport, LineFinding
from adaptlearn.services.categories import DisabilityCategory as C
from adaptlearn.services.normalize import DEFAULT_RECOMMENDATIONS

log = logging.getLogger("rules")

# ---------------------------------------------------------------------------
# Rewrite helpers
# ---------------------------------------------------------------------------

CLAUSE_PUNCT = (",", ";", ":")
CONJUNCTIONS = {"and", "or", "but", "yet", "for", "nor", "so"}
TERMINAL = ".!?"

LEXICON = {
    "utilize": "use",
    "utilise": "use",
    "utilization": "use",
    "approximately": "about",
    "nevertheless": "still",
    "consequently": "so",
    "furthermore": "also",
    "implement": "use",
    "facilitate": "help",
    "conceptualize": "understand",
    "comprehend": "understand",
    "demonstrate": "show",
    "subsequently": "later",
    "additional": "more",
    "assistance": "help",
    "commence": "start",
    "terminate": "end",
    "sufficient": "enough",
    "numerous": "many",
    "obtain": "get",
    "purchase": "buy",
    "indicate": "show",
    "endeavor": "try",
    "modify": "change",
    "initial": "first",
    "individuals": "people",
    "therefore": "so",
    "prior to": "before",
    "in order to": "to",
    "in addition": "also",
    "in addition to": "besides",
    "a large number of": "many",
    "due to the fact that": "because",
    "at this point in time": "now",
}

IDIOMS = {
    "piece of cake": "very easy",
    "raining cats and dogs": "raining very hard",
    "break the ice": "start talking",
    "hit the books": "study",
    "under the weather": "sick",
    "on the fence": "undecided",
    "once in a blue moon": "very rarely",
    "spill the beans": "tell the secret",
    "bite the bullet": "do the hard thing",
    "cost an arm and a leg": "be very expensive",
    "hit the nail on the head": "be exactly right",
    "let the cat out of the bag": "tell the secret",
    "get the ball rolling": "start",
    "in hot water": "in trouble",
    "keep an eye on": "watch",
    "over the moon": "very happy",
    "the ball is in your court": "it is your decision",
    "time flies": "time passes quickly",
    "think outside the box": "think in a new way",
    "jump to conclusions": "decide too quickly",
}

POSITIVE_FRAMING = {
    "you must": "please",
    "must not": "should not",
    "failure": "setback",
    "fail": "not pass yet",
    "wrong": "not quite right",
    "punishment": "consequence",
    "penalty": "consequence",
    "lose points": "miss points",
}

MATH_WORDS = {"+": "plus", "×": "times", "÷": "divided by", "=": "equals", "<": "is less than",
              ">": "is greater than", "%": "percent"}


def _match_case(source: str, replacement: str) -> str:
    if len(source) > 1 and source.isupper():
        return replacement.upper()
    if source[:1].isupper():
        return replacement[:1].upper() + replacement[1:]
    return replacement


def _phrase_pattern(mapping: Dict[str, str]) -> "re.Pattern[str]":
    # longest first so "in addition to" wins over "in addition"
    keys = sorted(mapping, key=len, reverse=True)
    return re.compile(r"\b(" + "|".join(re.escape(k) for k in keys) + r")\b", re.IGNORECASE)


def _substituter(mapping: Dict[str, str]) -> Callable[[str], str]:
    pattern = _phrase_pattern(mapping)

    def sub(text: str) -> str:
        return pattern.sub(lambda m: _match_case(m.group(0), mapping[m.group(0).lower()]), text)

    return sub


_LEXICON_RE = _phrase_pattern(LEXICON)
_IDIOM_RE = _phrase_pattern(IDIOMS)
_NEGATIVE_RE = _phrase_pattern(POSITIVE_FRAMING)

simplify_vocabulary = _substituter(LEXICON)
literalize_idioms = _substituter(IDIOMS)
reframe_positively = _substituter(POSITIVE_FRAMING)


def _finish(segment: str) -> str:
    segment = segment.rstrip().rstrip(",;:").rstrip()
    if not segment:
        return segment
    if segment[-1] in TERMINAL:
        return segment
    if len(segment) > 1 and segment[-1] in "\"')]" and segment[-2] in TERMINAL:
        return segment
    return segment + "."


def _capitalize(segment: str) -> str:
    return segment[:1].upper() + segment[1:]


def _nearest(ks: List[int], mid: float) -> Optional[int]:
    return min(ks, key=lambda k: (abs(k - mid), k)) if ks else None


def split_long_sentence(sentence: str, max_words: int = SPLIT_MAX_WORDS) -> List[str]:
    """
    Split a sentence longer than `max_words` into shorter sentences.

    The break is taken inside the middle third of the sentence, as close to
    the middle as possible: after a comma/semicolon/colon if there is one,
    else before a coordinating conjunction, else at the midpoint. Each part
    ends with terminal punctuation and the continuation is capitalised.
    Parts that are still too long are split again.
    """
    words = sentence.split()
    n = len(words)
    if n <= max(max_words, 1):
        return [sentence.strip()]

    lo, hi = -(-n // 3), (2 * n) // 3
    window = [k for k in range(lo, hi + 1) if 1 <= k < n]
    mid = n / 2

    k = _nearest([k for k in window if words[k - 1].endswith(CLAUSE_PUNCT)], mid)
    if k is None:
        k = _nearest([k for k in window if words[k].lower().strip(",;:") in CONJUNCTIONS], mid)
    if k is None:
        k = n // 2

    first = _finish(" ".join(words[:k]))
    rest = _capitalize(_finish(" ".join(words[k:])))
    return split_long_sentence(first, max_words) + split_long_sentence(rest, max_words)


_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")
_LIST_MARKER = re.compile(r"(?:q(?:uestion)?\s*)?\d+[.)]", re.IGNORECASE)


def sentences(line: str) -> List[str]:
    out: List[str] = []
    for s in _SENTENCE_END.split(line.strip()):
        if not s:
            continue
        # "1." is a list marker, not a sentence
        if out and _LIST_MARKER.fullmatch(out[-1]):
            out[-1] = f"{out[-1]} {s}"
        else:
            out.append(s)
    return out


def break_into_shorter_sentences(line: str, max_words: int = SPLIT_MAX_WORDS) -> str:
    parts: List[str] = []
    for s in sentences(line):
        parts.extend(split_long_sentence(s, max_words))
    return "\n".join(parts)


_STEP_SPLIT = re.compile(r"(?<=[.!?;])\s+|,?\s+(?:and\s+)?then\s+|,\s+(?:next|after that|finally),?\s+",
                         re.IGNORECASE)


def instruction_steps(line: str) -> List[str]:
    parts = [s.strip() for s in _STEP_SPLIT.split(line.strip()) if s and s.strip()]
    return [_capitalize(_finish(s)) for s in parts if not _LIST_MARKER.fullmatch(s)]


def numbered_steps(line: str) -> str:
    return "\n".join(f"{i}. {s}" for i, s in enumerate(instruction_steps(line), start=1))


def _word_count(line: str) -> int:
    return len(line.split())


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

_CAPS_RE = re.compile(r"\b[A-Z]{4,}\b")
_PAREN_RE = re.compile(r"\s*\([^)]*\)")
_VAGUE_RE = re.compile(r"\b(soon|later|some|a few|several|maybe|probably|etc|sometimes|"
                       r"a bit|stuff|things|whatever)\b", re.IGNORECASE)
_VISUAL_RE = re.compile(r"\b(see|look at|shown|shows|figure|diagram|chart|graph|picture|image|photo|"
                        r"map|above|below|on the left|on the right|to the left|to the right|highlighted|colou?red|colou?r|red|blue|green|"
                        r"yellow|underlined)\b", re.IGNORECASE)
_AUDITORY_RE = re.compile(r"\b(listen|hear|heard|audio|sound|recording|podcast|video|lecture|spoken|"
                          r"say aloud|read aloud|pronounce|music)\b", re.IGNORECASE)
_NUMBER_RE = re.compile(r"\d+(?:[.,]\d+)*")
_OPERATOR_RE = re.compile(r"[+×÷=<>%]|\s[-*/]\s")
# whole integers only, never the digits of a decimal or an already grouped number
_LARGE_NUMBER_RE = re.compile(r"(?<![\d.,])\b\d{5,}\b(?![.,]\d)")
_WRITING_RE = re.compile(r"\b(write|rewrite|copy|essay|paragraph|spell|handwrite|handwritten|draw|"
                         r"fill in|compose)\b", re.IGNORECASE)
_LENGTH_DEMAND_RE = re.compile(r"\b\d+\s+(?:words|sentences|paragraphs|pages|lines)\b", re.IGNORECASE)
_PRESSURE_RE = re.compile(r"\b(quickly|hurry|as fast as|timed|deadline|immediately|within \d+ minutes)\b",
                          re.IGNORECASE)
_RECALL_RE = re.compile(r"^\s*(?:(?:q(?:uestion)?\s*)?\d+[.):\-]?\s*)?(list|name|define|recall|identify|state|"
                        r"memorize|label)\b", re.IGNORECASE)


def longer_than(words: int) -> Callable[[str], bool]:
    return lambda line: _word_count(line) > words


def has_complex_vocabulary(line: str) -> bool:
    return bool(_LEXICON_RE.search(line))


def has_dense_long_words(line: str) -> bool:
    long_words = [w for w in re.findall(r"[A-Za-z]+", line) if len(w) >= LONG_WORD_CHARS]
    return len(long_words) >= DENSE_LONG_WORDS


def has_caps_words(line: str) -> bool:
    return len(_CAPS_RE.findall(line)) >= 2


def has_multiple_steps(line: str) -> bool:
    return len(instruction_steps(line)) >= 3


def has_numbers(line: str) -> bool:
    return len(_NUMBER_RE.findall(line)) >= 3


def _matches(pattern: "re.Pattern[str]") -> Callable[[str], bool]:
    return lambda line: bool(pattern.search(line))


# ---------------------------------------------------------------------------
# Rewrites that return None when they would leave the line unchanged
# ---------------------------------------------------------------------------

def _changed(fn: Callable[[str], str]) -> Callable[[str], Optional[str]]:
    def rewrite(line: str) -> Optional[str]:
        out = fn(line)
        return out if out and out != line else None
    return rewrite


def _append(note: str) -> Callable[[str], Optional[str]]:
    return lambda line: f"{line} {note}"


def _no_rewrite(line: str) -> Optional[str]:
    return None


def _split(line: str) -> Optional[str]:
    return _changed(lambda s: break_into_shorter_sentences(s, SPLIT_MAX_WORDS))(line)


def _sentence_case_caps(line: str) -> str:
    return _CAPS_RE.sub(lambda m: m.group(0).capitalize(), line)


def _drop_parentheticals(line: str) -> str:
    return re.sub(r"\s{2,}", " ", _PAREN_RE.sub("", line)).strip()


def _key_numbers(line: str) -> str:
    return "Key numbers: " + ", ".join(_NUMBER_RE.findall(line)) + "\n" + line


def _operators_in_words(line: str) -> str:
    def word(m: "re.Match[str]") -> str:
        sym = m.group(0).strip()
        name = MATH_WORDS.get(sym) or {"-": "minus", "*": "times", "/": "divided by"}.get(sym)
        return f" {sym} ({name}) " if name else m.group(0)
    return re.sub(r"\s{2,}", " ", _OPERATOR_RE.sub(word, line)).strip()


def _group_digits(digits: str) -> str:
    head = len(digits) % 3 or 3
    return ",".join([digits[:head]] + [digits[i:i + 3] for i in range(head, len(digits), 3)])


def _thousands(line: str) -> str:
    return _LARGE_NUMBER_RE.sub(lambda m: _group_digits(m.group(0)), line)


# ---------------------------------------------------------------------------
# Rule tables
# ---------------------------------------------------------------------------

class Rule(NamedTuple):
    name: str
    applies: Callable[[str], bool]
    severity: str
    reason: str
    strategy: str
    rewrite: Callable[[str], Optional[str]]


RULE_SETS: Dict[C, Tuple[Rule, ...]] = {
    C.DYSLEXIA: (
        Rule("LONG_SENTENCE", longer_than(LONG_LINE_WORDS["dyslexia"]), "high",
             "Long sentences are hard to decode and hold in working memory for students with dyslexia.",
             "Keep sentences to 12 words or fewer; put each idea on its own line.",
             _split),
        Rule("COMPLEX_VOCABULARY", has_complex_vocabulary, "medium",
             "Uncommon words slow down decoding for students with dyslexia.",
             "Replace complex words with short, familiar ones and pre-teach key terms.",
             _changed(simplify_vocabulary)),
        Rule("DENSE_LONG_WORDS", has_dense_long_words, "low",
             "Several long multi-syllable words in one line increase decoding load.",
             "Break long words into syllables or add a glossary for key terms.",
             _changed(simplify_vocabulary)),
        Rule("ALL_CAPS", has_caps_words, "low",
             "Text in capitals removes word-shape cues that readers with dyslexia rely on.",
             "Use sentence case and bold for emphasis instead of capitals.",
             _changed(_sentence_case_caps)),
    ),
    C.ADHD: (
        Rule("LONG_SENTENCE", longer_than(LONG_LINE_WORDS["adhd"]), "medium",
             "Long sentences make it easy to lose focus before the point is reached.",
             "Chunk information into short statements with one idea each.",
             _split),
        Rule("MULTI_STEP", has_multiple_steps, "high",
             "Several instructions in one line are hard to track for students with ADHD.",
             "Present instructions as a numbered checklist, one action per step.",
             _changed(numbered_steps)),
        Rule("ASIDE", _matches(_PAREN_RE), "low",
             "Parenthetical asides pull attention away from the main instruction.",
             "Remove side notes or move them to a separate 'Extra' box.",
             _changed(_drop_parentheticals)),
    ),
    C.AUTISM: (
        Rule("FIGURATIVE_LANGUAGE", _matches(_IDIOM_RE), "high",
             "Idioms and figurative expressions may be read literally and cause confusion.",
             "Use literal, concrete language that says exactly what is meant.",
             _changed(literalize_idioms)),
        Rule("VAGUE_LANGUAGE", _matches(_VAGUE_RE), "medium",
             "Vague words such as 'soon' or 'some' leave expectations unclear.",
             "State exact times, amounts and expectations.",
             _no_rewrite),
        Rule("COMPLEX_VOCABULARY", has_complex_vocabulary, "low",
             "Formal vocabulary adds an extra layer of interpretation.",
             "Use plain, predictable wording and consistent terms.",
             _changed(simplify_vocabulary)),
    ),
    C.VISUAL_IMPAIRMENT: (
        Rule("VISUAL_REFERENCE", _matches(_VISUAL_RE), "high",
             "The line depends on seeing a visual, colour or position on the page.",
             "Describe visuals in words and avoid instructions that rely on colour or layout.",
             _append("(Describe the referenced visual in words for screen-reader users.)")),
        Rule("LONG_SENTENCE", longer_than(LONG_LINE_WORDS["visual_impairment"]), "low",
             "Long sentences are tiring to follow with a screen reader.",
             "Keep sentences short so they can be replayed easily.",
             _split),
    ),
    C.HEARING_IMPAIRMENT: (
        Rule("AUDITORY_REFERENCE", _matches(_AUDITORY_RE), "high",
             "The line relies on audio that a student with hearing impairment may not access.",
             "Provide captions, transcripts or written versions of all audio.",
             _append("(Provide captions or a written transcript.)")),
        Rule("COMPLEX_VOCABULARY", has_complex_vocabulary, "low",
             "Students who learn through sign language may find formal English vocabulary harder.",
             "Use plain language and support new words with visuals.",
             _changed(simplify_vocabulary)),
    ),
    C.DYSCALCULIA: (
        Rule("MANY_NUMBERS", has_numbers, "high",
             "Several numbers in one line overload working memory for students with dyscalculia.",
             "List the key numbers first and work through one step at a time.",
             _key_numbers),
        Rule("MATH_SYMBOLS", _matches(_OPERATOR_RE), "medium",
             "Math symbols on their own can be hard to interpret.",
             "Write the operation in words next to each symbol.",
             _changed(_operators_in_words)),
        Rule("LARGE_NUMBERS", _matches(_LARGE_NUMBER_RE), "low",
             "Large numbers without separators are easy to misread.",
             "Group digits with thousands separators.",
             _changed(_thousands)),
    ),
    C.DYSGRAPHIA: (
        Rule("WRITING_TASK", _matches(_WRITING_RE), "medium",
             "Handwriting-heavy tasks measure writing mechanics instead of understanding.",
             "Offer typing, dictation or oral answers as alternatives.",
             _append("(You may type, dictate, or answer orally.)")),
        Rule("LENGTH_DEMAND", _matches(_LENGTH_DEMAND_RE), "high",
             "A fixed written length is a heavy demand for students with dysgraphia.",
             "Reduce the required length or accept bullet points and diagrams.",
             _append("(Bullet points or a shorter answer are fine.)")),
    ),
    C.EMOTIONAL_BEHAVIORAL: (
        Rule("NEGATIVE_FRAMING", _matches(_NEGATIVE_RE), "medium",
             "Negative or threatening wording can raise anxiety and trigger avoidance.",
             "Frame expectations positively and focus on what to do.",
             _changed(reframe_positively)),
        Rule("TIME_PRESSURE", _matches(_PRESSURE_RE), "low",
             "Time pressure can escalate stress for students with emotional or behavioral needs.",
             "Remove rushed wording and allow flexible timing.",
             _append("(Take the time you need.)")),
    ),
    C.GIFTED: (
        Rule("RECALL_ONLY", _matches(_RECALL_RE), "low",
             "Recall-only prompts offer little challenge for advanced learners.",
             "Add an extension that asks for analysis, evaluation or creation.",
             _append("Then explain why this matters and connect it to another idea you know.")),
    ),
}

RECOMMENDATIONS: Dict[C, List[str]] = {
    C.DYSLEXIA: [
        "Use a clear sans-serif font at 12-14pt with generous line spacing",
        "Keep sentences short and put one idea on each line",
        "Pre-teach key vocabulary and provide a glossary",
        "Offer audio versions or text-to-speech for reading material",
        "Use headings and bullet points to break up dense text",
    ],
    C.ADHD: [
        "Break tasks into short, numbered steps",
        "Highlight the key instruction at the start of each task",
        "Build in short movement or focus breaks",
        "Remove decorative or off-topic content",
        "Use checklists so students can track progress",
    ],
    C.AUTISM: [
        "Use literal, concrete language and avoid idioms",
        "Give exact times, quantities and expectations",
        "Keep a consistent, predictable layout across materials",
        "Provide visual schedules or worked examples",
        "Explain any changes to routine in advance",
    ],
    C.VISUAL_IMPAIRMENT: [
        "Provide text descriptions for every image, chart and diagram",
        "Avoid instructions that depend on colour or position",
        "Offer large-print or screen-reader friendly versions",
        "Use real headings so the document can be navigated by structure",
        "Make sure text has high contrast with its background",
    ],
    C.HEARING_IMPAIRMENT: [
        "Caption all videos and provide transcripts for audio",
        "Give instructions in writing as well as verbally",
        "Support new vocabulary with visuals",
        "Seat the student with a clear view of the speaker",
        "Check understanding with written or visual responses",
    ],
    C.DYSCALCULIA: [
        "Present one calculation step per line",
        "Write operations in words alongside symbols",
        "Provide number lines, grids or manipulatives",
        "Use consistent formatting for numbers and units",
        "Allow calculators where the goal is reasoning, not arithmetic",
    ],
    C.DYSGRAPHIA: [
        "Offer typing, dictation or oral responses",
        "Reduce copying from the board",
        "Provide graphic organisers and sentence starters",
        "Accept bullet points or diagrams instead of long prose",
        "Grade content separately from handwriting",
    ],
    C.EMOTIONAL_BEHAVIORAL: [
        "Frame expectations positively",
        "Avoid time pressure and allow flexible deadlines",
        "Offer choices in how tasks are completed",
        "Break work into short, achievable goals",
        "Recognise effort as well as results",
    ],
    C.GIFTED: [
        "Add extension questions that require analysis or evaluation",
        "Offer open-ended projects",
        "Connect content to real-world problems",
        "Allow students to go deeper on topics of interest",
        "Reduce repetition of material already mastered",
    ],
}


def content_lines(content: str) -> List[str]:
    return [line.strip() for line in (content or "").splitlines() if line.strip()]


def _readability_note(lines: List[str]) -> str:
    if not lines:
        return ""
    try:
        fre = textstat.flesch_reading_ease("\n".join(lines))
    except Exception as e:  # missing corpus data, odd input
        log.warning("Readability score unavailable: %s", e)
        return ""
    return f" The text has a Flesch reading ease of {fre:.0f}."


def analyze(content: str, disability: str) -> AccessibilityReport:
    """Deterministic, offline analysis. Never raises and never calls out."""
    category = C.parse(disability)
    lines = content_lines(content)

    if category is None:
        log.info("No rule set for disability=%r; returning neutral report", disability)
        return AccessibilityReport(
            summary=(f"'{disability}' is not a recognised disability category, so no rule-based "
                     f"checks were applied.{_readability_note(lines)}"),
            overall_score=NEUTRAL_SCORE,
            lines=[],
            recommendations=list(DEFAULT_RECOMMENDATIONS),
        )

    findings: List[LineFinding] = []
    score = 100
    for number, line in enumerate(lines, start=1):
        for rule in RULE_SETS[category]:
            if not rule.applies(line):
                continue
            findings.append(LineFinding(
                line_number=number,
                original_line=line,
                suggested_change=rule.rewrite(line),
                reason=rule.reason,
                strategy=rule.strategy,
                severity=rule.severity,
            ))
            score = max(0, score - RULE_PENALTY)

    affected = len({f.line_number for f in findings})
    if findings:
        summary = (f"Rule-based analysis for {category.label} found {len(findings)} potential "
                   f"issue(s) on {affected} of {len(lines)} line(s).")
    else:
        summary = f"Rule-based analysis for {category.label} found no issues in {len(lines)} line(s)."
    log.info("Rule analysis category=%s lines=%d findings=%d score=%d",
             category.value, len(lines), len(findings), score)
    return AccessibilityReport(
        summary=summary + _readability_note(lines),
        overall_score=score,
        lines=findings,
        recommendations=list(RECOMMENDATIONS[category]),
    )
