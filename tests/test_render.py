# tests/test_render.py
import io

import docx
import fitz  # PyMuPDF
import pytest
from conftest import docx_text, pdf_text

from adaptlearn.core.errors import InvalidRequestError
from adaptlearn.models.report import (
    AccessibilityReport,
    DisabilityIdentification,
    ExamAdaptationResult,
    ImageSuggestion,
    LineFinding,
)
from adaptlearn.services.render import render
from adaptlearn.services.render_docx import xml_safe
from adaptlearn.services.render_pdf import (
    MARGIN,
    PAGE_WIDTH,
    PdfWriter,
    analysis_pdf,
    builtin_fonts,
    load_fonts,
    sanitize_text,
)

REPORT = AccessibilityReport(
    summary="The text is mostly readable but has two long sentences.",
    overall_score=65,
    lines=[
        LineFinding(line_number=1, original_line="Utilize the map to find the river.",
                    suggested_change="Use the map to find the river.", reason="Formal word",
                    strategy="Plain language", severity="high"),
        LineFinding(line_number=3, original_line="Listen to the recording twice.",
                    reason="Audio only", strategy="Provide a transcript", severity="low",
                    suggested_images=[ImageSuggestion(description="Ear icon", alt_text="An ear")]),
    ],
    recommendations=["Keep sentences short", "Provide a glossary for new words", "Use headings"],
    suggested_images=[ImageSuggestion(description="River map", alt_text="A map of the river",
                                      placement="before", question_number=2)],
)

EXAM = ExamAdaptationResult(
    summary="Wording simplified.",
    original_exam="Quiz\n1. Utilize the chart.\n2. Name a planet.",
    adapted_exam="Quiz\n1. Use the chart.\n   Look at the bars.\na) red\n2. Name a planet.",
    changes_made=1,
    recommendations=["Read questions aloud"],
)

IDENTIFICATION = DisabilityIdentification(
    suggested_disability="Dyslexia",
    explanation="Reverses letters and reads slowly.",
    recommendations=["Offer audio books", "Allow extra time"],
)


def test_analysis_pdf_contains_every_line_and_recommendation():
    data = render(REPORT, "pdf")
    assert data.startswith(b"%PDF")
    text = pdf_text(data)
    for rec in REPORT.recommendations:
        assert rec in text
    for line in REPORT.lines:
        assert line.original_line in text
    assert "Use the map to find the river." in text
    assert "65/100" in text
    assert "River map" in text


def test_analysis_docx_contains_every_line_and_recommendation():
    data = render(REPORT, "docx")
    assert data[:2] == b"PK"
    text = docx_text(data)
    for rec in REPORT.recommendations:
        assert rec in text
    for line in REPORT.lines:
        assert f"Original: {line.original_line}" in text
    assert "Suggested: Use the map to find the river." in text
    assert "Placement: before | Question: 2" in text


def test_exam_renders_adapted_text():
    pdf = pdf_text(render(EXAM, "pdf"))
    assert "1. Use the chart." in pdf
    assert "Changes Made: 1" in pdf

    paragraphs = docx_text(render(EXAM, "docx")).splitlines()
    assert "1. Use the chart." in paragraphs
    assert "Look at the bars." in paragraphs
    assert "a) red" in paragraphs
    assert "Read questions aloud" in paragraphs


def test_disability_report_has_disclaimer():
    pdf = pdf_text(render(IDENTIFICATION, "pdf"))
    assert "Dyslexia" in pdf
    assert "not a medical diagnosis" in pdf
    for rec in IDENTIFICATION.recommendations:
        assert rec in pdf

    docx_out = docx_text(render(IDENTIFICATION, "docx"))
    assert "not a medical diagnosis" in docx_out
    assert "Reverses letters and reads slowly." in docx_out


def test_long_report_spans_pages():
    many = AccessibilityReport(
        summary="Many findings.",
        overall_score=10,
        lines=[LineFinding(line_number=i, original_line=f"Line number {i} of the lesson.",
                           reason="r", strategy="s") for i in range(1, 61)],
        recommendations=["Last recommendation"],
    )
    text = pdf_text(render(many, "pdf"))
    assert "Line number 60 of the lesson." in text
    assert "Last recommendation" in text


def test_sanitize_text():
    assert sanitize_text("\u201cHi\u201d \u2013 there\u2026 \u2022 ok\u2603") == '"Hi" - there... - ok'
    assert sanitize_text("caf\u00e9\nnext") == "caf\u00e9\nnext"
    assert sanitize_text(None) == ""


def test_smart_punctuation_survives_pdf():
    report = AccessibilityReport(summary="s", overall_score=50,
                                 recommendations=["Don\u2019t rush \u2014 take breaks"])
    assert "Don't rush - take breaks" in pdf_text(render(report, "pdf"))


def test_missing_font_files_fall_back_to_builtin():
    regular, bold = load_fonts({"regular": ["/nope/Regular.ttf"], "bold": ["/nope/Bold.ttf"]})
    assert (regular.name, bold.name) == ("helv", "hebo")
    assert regular.file is None and bold.file is None
    data = analysis_pdf(REPORT, fonts=builtin_fonts())
    assert "Keep sentences short" in pdf_text(data)


def test_xml_safe_drops_control_characters():
    assert xml_safe("a\x00b\x0bc\td") == "abc\td"


def test_unknown_format_is_rejected():
    with pytest.raises(InvalidRequestError):
        render(REPORT, "txt")


def test_over_wide_word_is_broken_inside_the_margin():
    url = "https://example.org/" + "lesson-resources/" * 9 + "worksheet.pdf"
    assert len(url) > 150
    report = AccessibilityReport(summary=f"See {url} for the worksheet.", overall_score=50)
    data = analysis_pdf(report, fonts=builtin_fonts())
    with fitz.open(stream=data, filetype="pdf") as doc:
        words = [w for page in doc for w in page.get_text("words")]
    assert max(w[2] for w in words) <= PAGE_WIDTH - MARGIN + 1
    assert url in "".join(w[4] for w in words)


def test_wrap_splits_long_word_by_character():
    writer = PdfWriter(builtin_fonts())
    face = writer.regular
    lines = writer.wrap("go " + "x" * 400 + " now", face, 12, 200)
    assert len(lines) > 2
    assert all(face.font.text_length(line, fontsize=12) <= 200 for line in lines)
    assert "".join(lines).replace(" ", "") == "go" + "x" * 400 + "now"
    writer.to_bytes()


def test_exam_docx_keeps_instructions_as_paragraphs():
    exam = ExamAdaptationResult(
        summary="s",
        original_exam="x",
        adapted_exam="\n".join([
            "Part A",
            "Read each question carefully and answer in full sentences where you can.",
            "1. Name a planet.",
            "Show your working.",
        ]),
    )
    d = docx.Document(io.BytesIO(render(exam, "docx")))
    styles = {p.text: p.style.name for p in d.paragraphs}
    assert styles["Part A"] == "Heading 2"
    assert styles["Read each question carefully and answer in full sentences where you can."] == "Normal"
    assert styles["Show your working."] == "Normal"
    assert styles["1. Name a planet."] == "Normal"
