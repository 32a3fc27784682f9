# adaptlearn/services/render_pdf.py
"""
PDF rendering with PyMuPDF.

`PdfWriter` lays text out top to bottom: it wraps each paragraph to the
usable width measured with the active font, keeps a y cursor, and starts a
new page when the next line would run into the bottom margin. All text is
sanitised to Latin-1 first, since the built-in fonts cannot encode more.
"""
from __future__ import annotations

import logging
import os
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple

import fitz  # PyMuPDF

from adaptlearn.core.config import FONT_CANDIDATES
from adaptlearn.core.errors import RenderError
from adaptlearn.models.report import AccessibilityReport, DisabilityIdentification, ExamAdaptationResult

log = logging.getLogger("render")

PAGE_WIDTH, PAGE_HEIGHT = fitz.paper_size("a4")
MARGIN = 50
LINE_SPACING = 1.5

Color = Tuple[float, float, float]
BLACK: Color = (0, 0, 0)
GRAY: Color = (0.39, 0.45, 0.55)
RED: Color = (0.86, 0.15, 0.15)
GREEN: Color = (0.13, 0.77, 0.37)
INDIGO: Color = (0.31, 0.27, 0.90)
EMERALD: Color = (0.02, 0.59, 0.41)
PURPLE: Color = (0.58, 0.29, 0.82)
AMBER: Color = (0.72, 0.53, 0.04)
SEVERITY_COLORS = {"high": RED, "medium": AMBER, "low": GRAY}

_SMART_PUNCTUATION = str.maketrans({
    "‘": "'", "’": "'", "‚": "'", "′": "'",
    "“": '"', "”": '"', "„": '"', "″": '"',
    "–": "-", "—": "-", "−": "-",
    "…": "...",
    "•": "-",
    "\t": " ",
})


def sanitize_text(text: str) -> str:
    """ASCII for smart punctuation, then drop anything outside Latin-1."""
    text = (text or "").translate(_SMART_PUNCTUATION)
    return "".join(ch for ch in text if ch == "\n" or 0x20 <= ord(ch) <= 0xFF)


class FontFace(NamedTuple):
    name: str
    file: Optional[str]
    font: fitz.Font


_BUILTIN = {"regular": "helv", "bold": "hebo"}
_EMBED_NAMES = {"regular": "AdaptSans", "bold": "AdaptSansBold"}


def _load_face(weight: str, candidates: Iterable[str]) -> FontFace:
    for path in candidates:
        if not path or not os.path.isfile(path):
            continue
        try:
            return FontFace(_EMBED_NAMES[weight], path, fitz.Font(fontfile=path))
        except (RuntimeError, OSError, ValueError) as e:
            log.warning("Failed to load font %s, trying next: %s", path, e)
    log.info("Using built-in %s font for %s text", _BUILTIN[weight], weight)
    try:
        return FontFace(_BUILTIN[weight], None, fitz.Font(_BUILTIN[weight]))
    except (RuntimeError, ValueError) as e:
        raise RenderError(f"No usable {weight} font") from e


def load_fonts(candidates=None) -> Tuple[FontFace, FontFace]:
    candidates = FONT_CANDIDATES if candidates is None else candidates
    return (_load_face("regular", candidates.get("regular", ())),
            _load_face("bold", candidates.get("bold", ())))


def builtin_fonts() -> Tuple[FontFace, FontFace]:
    return load_fonts({"regular": (), "bold": ()})


class PdfWriter:
    def __init__(self, fonts: Optional[Tuple[FontFace, FontFace]] = None, font_size: float = 12):
        self.doc = fitz.open()
        self.regular, self.bold = fonts or load_fonts()
        self.font_size = font_size
        self.page = None
        self.y = 0.0
        self.new_page()

    @property
    def usable_width(self) -> float:
        return PAGE_WIDTH - 2 * MARGIN

    def new_page(self) -> None:
        self.page = self.doc.new_page(width=PAGE_WIDTH, height=PAGE_HEIGHT)
        self.y = MARGIN
        for face in (self.regular, self.bold):
            if face.file is None:
                continue
            try:
                self.page.insert_font(fontname=face.name, fontfile=face.file)
            except (RuntimeError, ValueError) as e:
                log.warning("Embedding %s failed, falling back to built-in fonts: %s", face.file, e)
                self.regular, self.bold = builtin_fonts()
                break

    def check_space(self, required: float = 50) -> None:
        if self.y + required > PAGE_HEIGHT - MARGIN:
            self.new_page()

    def space(self, points: float = 10) -> None:
        self.y += points

    @staticmethod
    def _pieces(word: str, face: FontFace, size: float, max_width: float) -> List[str]:
        """Break a word wider than the line (long URLs, digit runs) by character."""
        if face.font.text_length(word, fontsize=size) <= max_width:
            return [word]
        pieces, current = [], ""
        for ch in word:
            if current and face.font.text_length(current + ch, fontsize=size) > max_width:
                pieces.append(current)
                current = ch
            else:
                current += ch
        pieces.append(current)
        return pieces

    def wrap(self, text: str, face: FontFace, size: float, max_width: float) -> List[str]:
        lines: List[str] = []
        for paragraph in text.split("\n"):
            current = ""
            for word in paragraph.split():
                for piece in self._pieces(word, face, size, max_width):
                    candidate = f"{current} {piece}" if current else piece
                    if current and face.font.text_length(candidate, fontsize=size) > max_width:
                        lines.append(current)
                        current = piece
                    else:
                        current = candidate
            lines.append(current)
        return lines

    def write(self, text: str, *, size: Optional[float] = None, bold: bool = False,
              color: Color = BLACK, indent: float = 0) -> None:
        size = size or self.font_size
        face = self.bold if bold else self.regular
        step = size * LINE_SPACING
        for line in self.wrap(sanitize_text(text), face, size, self.usable_width - indent):
            self.check_space(step)
            if line:
                self.page.insert_text((MARGIN + indent, self.y + size), line,
                                      fontsize=size, fontname=face.name, color=color)
            self.y += step

    def heading(self, text: str, size: float = 16) -> None:
        self.check_space(size * LINE_SPACING * 3)
        self.write(text, size=size, bold=True)
        self.space(8)

    def bullets(self, items: Sequence[str], size: float = 11) -> None:
        for item in items:
            self.write(f"- {item}", size=size, indent=10)
            self.space(4)

    def to_bytes(self) -> bytes:
        try:
            return self.doc.tobytes()
        finally:
            self.doc.close()


def _images(w: PdfWriter, images) -> None:
    if not images:
        return
    w.heading("Suggested Visual Aids")
    for image in images:
        w.write(image.description, size=12, bold=True, indent=20)
        w.write(f"Alt Text: {image.alt_text}", size=10, color=GRAY, indent=20)
        where = f"Placement: {image.placement}"
        if image.question_number:
            where += f" | Question: {image.question_number}"
        w.write(where, size=10, color=GRAY, indent=20)
        w.space(8)


def _recommendations(w: PdfWriter, recommendations: Sequence[str]) -> None:
    if recommendations:
        w.heading("Recommendations")
        w.bullets(recommendations)


def analysis_pdf(report: AccessibilityReport, fonts=None) -> bytes:
    w = PdfWriter(fonts)
    w.write("Accessibility Analysis Report", size=24, bold=True)
    w.space(20)

    w.heading("Summary")
    w.write(report.summary)
    w.space(16)
    w.write(f"Accessibility Score: {report.overall_score}/100", size=14, bold=True, color=INDIGO)
    w.space(20)

    w.heading("Line-by-Line Analysis")
    if not report.lines:
        w.write("No line-level findings.", size=11, color=GRAY)
    for line in report.lines:
        w.check_space(80)
        w.write(f"Line {line.line_number} ({line.severity} priority)", size=14, bold=True,
                color=SEVERITY_COLORS[line.severity])
        w.write("Original:", size=11, bold=True, color=RED, indent=20)
        w.write(line.original_line, size=11, indent=20)
        w.space(4)
        if line.suggested_change:
            w.write("Suggested:", size=11, bold=True, color=GREEN, indent=20)
            w.write(line.suggested_change, size=11, indent=20)
            w.space(4)
        w.write(f"Why: {line.reason}", size=10, color=GRAY, indent=20)
        w.write(f"Strategy: {line.strategy}", size=10, color=GRAY, indent=20)
        if line.suggested_images:
            w.write("Visual aids: " + "; ".join(i.description for i in line.suggested_images),
                    size=10, color=GRAY, indent=20)
        w.space(12)

    _images(w, report.suggested_images)
    _recommendations(w, report.recommendations)
    return w.to_bytes()


def exam_pdf(result: ExamAdaptationResult, fonts=None) -> bytes:
    w = PdfWriter(fonts)
    w.write("Adapted Exam", size=24, bold=True)
    w.space(20)

    w.heading("Summary")
    w.write(result.summary)
    w.space(16)
    w.write(f"Changes Made: {result.changes_made}", size=14, bold=True, color=EMERALD)
    w.space(20)

    w.heading("Adapted Exam")
    w.write(result.adapted_exam)
    w.space(20)

    _images(w, result.suggested_images)
    _recommendations(w, result.recommendations)
    return w.to_bytes()


DISCLAIMER = ("This is an AI-powered suggestion and not a medical diagnosis. "
              "Please consult with a qualified professional for a formal assessment.")


def disability_pdf(result: DisabilityIdentification, fonts=None) -> bytes:
    w = PdfWriter(fonts)
    w.write("Learning Challenges Identification Report", size=24, bold=True)
    w.space(20)

    w.heading("Potential Learning Challenge")
    w.write(result.suggested_disability, size=18, bold=True, color=PURPLE)
    w.space(20)

    w.heading("Explanation")
    w.write(result.explanation)
    w.space(20)

    _recommendations(w, result.recommendations)

    w.space(30)
    w.check_space(100)
    w.write("Important Notice", size=14, bold=True, color=AMBER)
    w.write(DISCLAIMER, size=10, color=AMBER)
    return w.to_bytes()
