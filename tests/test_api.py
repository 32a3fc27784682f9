# tests/test_api.py
import io

from conftest import SAMPLE_EXAM, FakeLLM, as_json

from adaptlearn.core.errors import TransientServiceError

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
FORM = {"disability": "dyslexia", "educationLevel": "primary", "subject": "science"}

AI_REPORT = {
    "summary": "One line is too formal.",
    "overallScore": 72,
    "recommendations": ["Use plain words"],
    "lines": [{"lineNumber": 1, "originalLine": "Students will utilize the map.",
               "suggestedChange": "Students will use the map.", "reason": "Formal word",
               "strategy": "Plain language", "severity": "medium"}],
}


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


# --------------------------------------------------------------------
# /upload
# --------------------------------------------------------------------
def test_upload_txt_without_credentials(client):
    files = {"file": ("notes.txt", io.BytesIO(b"Students will utilize the map.\n"), "text/plain")}
    r = client.post("/upload", files=files, data=FORM)
    assert r.status_code == 200, r.text
    payload = r.json()
    assert payload["success"] is True
    assert payload["fileName"] == "notes.txt"
    assert payload["fileSize"] == len(b"Students will utilize the map.\n")
    assert payload["disability"] == "dyslexia"
    assert payload["educationLevel"] == "primary"
    assert payload["subject"] == "science"
    analysis = payload["analysis"]
    assert analysis["overallScore"] == 0
    assert analysis["lines"] == []
    assert analysis["recommendations"]


def test_upload_pdf_with_ai(client, use_llm, sample_pdf_bytes):
    fake = use_llm(FakeLLM(as_json(AI_REPORT)))
    files = {"file": ("sample.pdf", io.BytesIO(sample_pdf_bytes), "application/pdf")}
    r = client.post("/upload", files=files, data={"disability": "dyslexia"})
    assert r.status_code == 200, r.text
    analysis = r.json()["analysis"]
    assert analysis["overallScore"] == 72
    assert analysis["lines"][0]["suggestedChange"] == "Students will use the map."
    assert "utilize the map" in fake.prompts[0]


def test_upload_docx(client, sample_docx_bytes):
    files = {"file": ("sample.docx", io.BytesIO(sample_docx_bytes), DOCX_MIME)}
    r = client.post("/upload", files=files, data=FORM)
    assert r.status_code == 200, r.text
    assert r.json()["fileName"] == "sample.docx"


def test_upload_falls_back_to_rules_on_bad_ai_output(client, use_llm):
    use_llm(FakeLLM("Sorry, no JSON today."))
    text = b"The cat sat on the mat and the cat was happy and content in that moment."
    files = {"file": ("notes.txt", io.BytesIO(text), "text/plain")}
    r = client.post("/upload", files=files, data=FORM)
    assert r.status_code == 200, r.text
    lines = r.json()["analysis"]["lines"]
    assert lines[0]["severity"] == "high"
    assert lines[0]["suggestedChange"].startswith("The cat sat on the mat.\n")


def test_upload_rate_limited(client, use_llm):
    use_llm(FakeLLM(error=TransientServiceError("busy", status_code=429)))
    files = {"file": ("notes.txt", io.BytesIO(b"Line one\nLine two\n"), "text/plain")}
    r = client.post("/upload", files=files, data=FORM)
    assert r.status_code == 200, r.text
    analysis = r.json()["analysis"]
    assert analysis["overallScore"] == 0
    assert "Content has 2 lines to analyze for dyslexia accessibility" in analysis["recommendations"]


def test_upload_wrong_ext(client):
    files = {"file": ("notes.rtf", io.BytesIO(b"{\\rtf1 hello}"), "application/rtf")}
    r = client.post("/upload", files=files, data=FORM)
    assert r.status_code == 415
    assert "error" in r.json()


def test_upload_doc_is_rejected(client):
    files = {"file": ("old.doc", io.BytesIO(b"\xd0\xcf\x11\xe0"), "application/msword")}
    r = client.post("/upload", files=files, data=FORM)
    assert r.status_code == 415
    assert "DOCX" in r.json()["error"]


def test_upload_mime_mismatch(client, sample_pdf_bytes):
    # pdf bytes under a .txt name are caught by the content sniffing
    files = {"file": ("bad.txt", io.BytesIO(sample_pdf_bytes), "text/plain")}
    r = client.post("/upload", files=files, data=FORM)
    assert r.status_code in (400, 415)


def test_upload_empty_txt(client):
    files = {"file": ("empty.txt", io.BytesIO(b""), "text/plain")}
    r = client.post("/upload", files=files, data=FORM)
    assert r.status_code == 400
    assert r.json()["error"] == "No text could be extracted from the TXT file"


def test_upload_requires_disability(client):
    files = {"file": ("notes.txt", io.BytesIO(b"hello"), "text/plain")}
    r = client.post("/upload", files=files)
    assert r.status_code == 400
    assert r.json()["error"].startswith("Invalid request")


# --------------------------------------------------------------------
# /adapt-exam
# --------------------------------------------------------------------
def test_adapt_exam_text_without_credentials(client):
    r = client.post("/adapt-exam", data={"disability": "adhd", "examText": SAMPLE_EXAM})
    assert r.status_code == 200, r.text
    exam = r.json()["exam"]
    assert exam["adaptedExam"] == SAMPLE_EXAM
    assert exam["changesMade"] == 0


def test_adapt_exam_file_with_mismatched_ai_output(client, use_llm):
    use_llm(FakeLLM(as_json({"adaptedExam": "1. Only one question now.", "changesMade": 9})))
    files = {"file": ("quiz.txt", io.BytesIO(SAMPLE_EXAM.encode()), "text/plain")}
    r = client.post("/adapt-exam", files=files, data={"disability": "dyslexia"})
    assert r.status_code == 200, r.text
    payload = r.json()
    assert payload["fileName"] == "quiz.txt"
    adapted = payload["exam"]["adaptedExam"]
    for n in range(1, 6):
        assert f"\n{n}. " in "\n" + adapted


def test_adapt_exam_requires_input(client):
    r = client.post("/adapt-exam", data={"disability": "adhd", "examText": "   "})
    assert r.status_code == 400
    assert "examText" in r.json()["error"]


# --------------------------------------------------------------------
# /identify-disability
# --------------------------------------------------------------------
def test_identify_requires_characteristics(client):
    r = client.post("/identify-disability", json={"characteristics": "  "})
    assert r.status_code == 400
    assert r.json()["error"] == "Characteristics are required"


def test_identify_without_credentials(client):
    r = client.post("/identify-disability", json={"characteristics": "Reads slowly"})
    assert r.status_code == 500
    body = r.json()
    assert body["error"] == "AI API key not configured"
    assert body["details"]


def test_identify_with_ai(client, use_llm):
    fake = use_llm(FakeLLM(as_json({
        "suggestedDisability": "Dyslexia",
        "explanation": "Letter reversals and slow reading.",
        "recommendations": ["Audio books", "Extra time"],
    })))
    r = client.post("/identify-disability", json={"characteristics": "Reverses b and d, reads slowly"})
    assert r.status_code == 200, r.text
    assert r.json() == {
        "suggestedDisability": "Dyslexia",
        "explanation": "Letter reversals and slow reading.",
        "recommendations": ["Audio books", "Extra time"],
    }
    assert "Reverses b and d" in fake.prompts[0]


def test_identify_malformed_output(client, use_llm):
    use_llm(FakeLLM("I think it might be dyslexia."))
    r = client.post("/identify-disability", json={"characteristics": "Reads slowly"})
    assert r.status_code == 502
    assert r.json()["error"] == "Failed to identify disability"


def test_identify_busy(client, use_llm):
    use_llm(FakeLLM(error=TransientServiceError("busy", status_code=529)))
    r = client.post("/identify-disability", json={"characteristics": "Reads slowly"})
    assert r.status_code == 503


# --------------------------------------------------------------------
# /download
# --------------------------------------------------------------------
def test_download_analysis_pdf(client):
    r = client.post("/download", json={"format": "pdf", "contentType": "analysis", "analysisResult": AI_REPORT})
    assert r.status_code == 200, r.text
    assert r.headers["content-type"] == "application/pdf"
    assert r.headers["content-disposition"] == 'attachment; filename="accessibility-analysis.pdf"'
    assert r.content.startswith(b"%PDF")


def test_download_exam_docx(client):
    exam = {"summary": "s", "originalExam": SAMPLE_EXAM, "adaptedExam": SAMPLE_EXAM, "changesMade": 0}
    r = client.post("/download", json={"format": "docx", "contentType": "exam", "analysisResult": exam})
    assert r.status_code == 200, r.text
    assert r.headers["content-type"] == DOCX_MIME
    assert r.headers["content-disposition"] == 'attachment; filename="adapted-exam.docx"'
    assert r.content[:2] == b"PK"


def test_download_disability_pdf(client):
    result = {"suggestedDisability": "ADHD", "explanation": "Short attention span.", "recommendations": []}
    r = client.post("/download", json={"format": "pdf", "contentType": "disability",
                                       "identificationResult": result})
    assert r.status_code == 200, r.text
    assert 'filename="disability-identification.pdf"' in r.headers["content-disposition"]


def test_download_missing_parameters(client):
    r = client.post("/download", json={"contentType": "analysis", "analysisResult": AI_REPORT})
    assert r.status_code == 400
    assert r.json()["error"] == "Missing required parameters"


def test_download_invalid_format(client):
    r = client.post("/download", json={"format": "rtf", "contentType": "analysis", "analysisResult": AI_REPORT})
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid format: rtf"


def test_download_invalid_content_type(client):
    r = client.post("/download", json={"format": "pdf", "contentType": "essay", "analysisResult": AI_REPORT})
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid content type"


def test_download_missing_payload(client):
    r = client.post("/download", json={"format": "pdf", "contentType": "disability"})
    assert r.status_code == 400


def test_download_invalid_payload(client):
    bad = dict(AI_REPORT, overallScore=500)
    r = client.post("/download", json={"format": "pdf", "contentType": "analysis", "analysisResult": bad})
    assert r.status_code == 400
    body = r.json()
    assert body["error"] == "Invalid analysisResult"
    assert "details" in body


def test_oversized_request_is_rejected(client):
    r = client.post("/download", content=b"{}", headers={"content-length": str(60 * 1024 * 1024),
                                                           "content-type": "application/json"})
    assert r.status_code == 413
