# adaptlearn/services/render_docx.py
import re
from io import BytesIO
from typing import Optional, Sequence

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Inches, Pt, RGBColor

from adaptlearn.models.report import AccessibilityReport, DisabilityIdentification, ExamAdaptationResult
from adaptlearn.services.exam import QUESTION_RE
from adaptlearn.services.render_pdf import DISCLAIMER

SEVERITY_COLORS = {"high": "DC2626", "medium": "B45309", "low": "64748B"}

# characters XML 1.0 cannot hold
_XML_INVALID = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")
_OPTION_RE = re.compile(r"^[a-dA-D][.)]\s")
HEADING_MAX_WORDS = 8


def xml_safe(text: Optional[str]) -> str:
    return _XML_INVALID.sub("", text or "")


def _new_document(title: str):
    doc = Document()
    for section in doc.sections:
        section.top_margin = section.bottom_margin = Inches(1)
        section.left_margin = section.right_margin = Inches(1)
    heading = doc.add_heading(xml_safe(title), level=0)
    heading.alignment = WD_ALIGN_PARAGRAPH.CENTER
    return doc


def _run(paragraph, text: str, *, bold=False, italic=False, color: Optional[str] = None, size: Optional[int] = None):
    run = paragraph.add_run(xml_safe(text))
    run.bold = bold
    run.italic = italic
    if color:
        run.font.color.rgb = RGBColor.from_string(color)
    if size:
        run.font.size = Pt(size)
    return run


def _labelled(doc, label: str, text: str, *, color: Optional[str] = None, italic=False):
    p = doc.add_paragraph()
    p.paragraph_format.left_indent = Inches(0.25)
    _run(p, label, bold=True, italic=italic, color=color)
    _run(p, text, italic=italic)
    return p


def _bullets(doc, items: Sequence[str]) -> None:
    for item in items:
        doc.add_paragraph(xml_safe(item), style="List Bullet")


def _recommendations(doc, recommendations: Sequence[str]) -> None:
    if recommendations:
        doc.add_heading("Recommendations", level=1)
        _bullets(doc, recommendations)


def _images(doc, images) -> None:
    if not images:
        return
    doc.add_heading("Suggested Visual Aids", level=1)
    for image in images:
        doc.add_heading(xml_safe(image.description), level=2)
        _labelled(doc, "Alt Text: ", image.alt_text)
        where = image.placement
        if image.question_number:
            where += f" | Question: {image.question_number}"
        _labelled(doc, "Placement: ", where)


def _save(doc) -> bytes:
    buf = BytesIO()
    doc.save(buf)
    return buf.getvalue()


def analysis_docx(report: AccessibilityReport) -> bytes:
    doc = _new_document("Accessibility Analysis Report")

    doc.add_heading("Summary", level=1)
    doc.add_paragraph(xml_safe(report.summary))
    _run(doc.add_paragraph(), f"Accessibility Score: {report.overall_score}/100", bold=True, color="4F46E5", size=14)

    doc.add_heading("Line-by-Line Analysis", level=1)
    if not report.lines:
        doc.add_paragraph("No line-level findings.")
    for line in report.lines:
        p = doc.add_paragraph()
        _run(p, f"Line {line.line_number}", bold=True, size=12)
        _run(p, f"  {line.severity} priority", italic=True, color=SEVERITY_COLORS[line.severity])
        _labelled(doc, "Original: ", line.original_line, color="DC2626")
        if line.suggested_change:
            _labelled(doc, "Suggested: ", line.suggested_change, color="16A34A")
        _labelled(doc, "Why: ", line.reason, italic=True)
        _labelled(doc, "Strategy: ", line.strategy, italic=True)
        if line.suggested_images:
            _labelled(doc, "Visual aids: ", "; ".join(i.description for i in line.suggested_images))

    _images(doc, report.suggested_images)
    _recommendations(doc, report.recommendations)
    return _save(doc)


def _is_section_title(line: str) -> bool:
    # short labels like "Part A" or "Science Quiz", not sentences of instructions
    text = line.strip()
    return len(text.split()) <= HEADING_MAX_WORDS and not text.endswith((".", "?", "!"))


def exam_docx(result: ExamAdaptationResult) -> bytes:
    doc = _new_document("Adapted Exam")

    doc.add_heading("Summary", level=1)
    doc.add_paragraph(xml_safe(result.summary))
    _run(doc.add_paragraph(), f"Changes Made: {result.changes_made}", bold=True, color="059669", size=14)

    doc.add_heading("Adapted Exam", level=1)
    for line in result.adapted_exam.splitlines():
        if not line.strip():
            continue
        if QUESTION_RE.match(line):
            doc.add_paragraph(xml_safe(line.strip()))
        elif line[:1].isspace() or _OPTION_RE.match(line):
            p = doc.add_paragraph(xml_safe(line.strip()))
            p.paragraph_format.left_indent = Inches(0.25)
        elif _is_section_title(line):
            doc.add_heading(xml_safe(line.strip()), level=2)
        else:
            doc.add_paragraph(xml_safe(line.strip()))

    _images(doc, result.suggested_images)
    _recommendations(doc, result.recommendations)
    return _save(doc)


def disability_docx(result: DisabilityIdentification) -> bytes:
    doc = _new_document("Learning Challenges Identification Report")

    doc.add_heading("Potential Learning Challenge", level=1)
    _run(doc.add_paragraph(), result.suggested_disability, bold=True, color="9333EA", size=16)

    doc.add_heading("Explanation", level=1)
    doc.add_paragraph(xml_safe(result.explanation))

    _recommendations(doc, result.recommendations)

    doc.add_heading("Important Notice", level=2)
    _run(doc.add_paragraph(), DISCLAIMER, italic=True, color="B45309")
    return _save(doc)
