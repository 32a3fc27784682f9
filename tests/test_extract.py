# tests/test_extract.py
import docx
import pytest
from conftest import docx_bytes, pdf_bytes

from adaptlearn.core.errors import ExtractionError
from adaptlearn.services.extract import extract_text


def test_extract_pdf(tmp_path):
    path = tmp_path / "lesson.pdf"
    path.write_bytes(pdf_bytes("Photosynthesis happens in leaves."))
    assert "Photosynthesis happens in leaves." in extract_text(str(path))


def test_extract_docx_with_table(tmp_path):
    d = docx.Document()
    d.add_paragraph("Intro paragraph.")
    table = d.add_table(rows=1, cols=2)
    table.cell(0, 0).text = "Cell A"
    table.cell(0, 1).text = "Cell B"
    path = tmp_path / "lesson.docx"
    d.save(str(path))

    text = extract_text(str(path))
    assert text.splitlines() == ["Intro paragraph.", "Cell A", "Cell B"]


def test_extract_txt_strips_bom(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_bytes(b"\xef\xbb\xbfFirst line\nSecond line\n")
    assert extract_text(str(path)) == "First line\nSecond line"


def test_type_comes_from_filename(tmp_path):
    path = tmp_path / "upload.tmp"
    path.write_bytes(docx_bytes("From a temp file."))
    assert extract_text(str(path), "original.docx") == "From a temp file."


@pytest.mark.parametrize("name", ["old.doc", "slides.pptx", "noext"])
def test_unsupported_types_are_415(tmp_path, name):
    path = tmp_path / name
    path.write_bytes(b"whatever")
    with pytest.raises(ExtractionError) as exc:
        extract_text(str(path))
    assert exc.value.status_code == 415


def test_empty_txt_is_400(tmp_path):
    path = tmp_path / "empty.txt"
    path.write_bytes(b"  \n ")
    with pytest.raises(ExtractionError) as exc:
        extract_text(str(path))
    assert exc.value.status_code == 400
    assert exc.value.message == "No text could be extracted from the TXT file"


def test_corrupt_docx_is_400(tmp_path):
    path = tmp_path / "broken.docx"
    path.write_bytes(b"this is not a zip archive")
    with pytest.raises(ExtractionError) as exc:
        extract_text(str(path))
    assert exc.value.status_code == 400
