# tests/conftest.py
from __future__ import annotations
import io
import json
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from adaptlearn.main import app
from adaptlearn.api import deps
from adaptlearn.core.config import LLMSettings
from adaptlearn.services.analyze import AnalysisOrchestrator
from adaptlearn.services.exam import ExamAdapter
from adaptlearn.services.identify import DisabilityIdentifier

import fitz  # PyMuPDF
import docx

CONFIGURED = LLMSettings(api_key="test-key", model="test-model")
UNCONFIGURED = LLMSettings(api_key=None)

SAMPLE_EXAM = "\n".join([
    "Science Quiz",
    "1. Utilize the diagram to name the parts of a plant.",
    "2. Explain approximately how long the water cycle takes.",
    "3. What is the largest planet in the solar system?",
    "4. Describe what happens when you heat ice.",
    "5. Furthermore, list two animals that live in the ocean.",
])


# --------------------------------------------------------------------
# Fake text-generation backend
# --------------------------------------------------------------------
class FakeLLM:
    """Returns a canned completion (or raises) and records every prompt."""

    def __init__(self, response: str = "", error: Optional[Exception] = None):
        self.response = response
        self.error = error
        self.prompts: List[str] = []

    def complete(self, prompt: str, *, max_tokens: int, temperature: float) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response


def as_json(payload: dict) -> str:
    return json.dumps(payload)


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


# --------------------------------------------------------------------
# API client; services run offline unless a test installs a fake LLM
# --------------------------------------------------------------------
@pytest.fixture(autouse=True)
def offline_services():
    app.dependency_overrides[deps.get_orchestrator] = lambda: AnalysisOrchestrator(UNCONFIGURED)
    app.dependency_overrides[deps.get_exam_adapter] = lambda: ExamAdapter(UNCONFIGURED)
    app.dependency_overrides[deps.get_identifier] = lambda: DisabilityIdentifier(UNCONFIGURED)
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def use_llm():
    def install(fake: FakeLLM) -> FakeLLM:
        app.dependency_overrides[deps.get_orchestrator] = lambda: AnalysisOrchestrator(CONFIGURED, fake)
        app.dependency_overrides[deps.get_exam_adapter] = lambda: ExamAdapter(CONFIGURED, fake)
        app.dependency_overrides[deps.get_identifier] = lambda: DisabilityIdentifier(CONFIGURED, fake)
        return fake
    return install


@pytest.fixture(scope="session")
def client() -> TestClient:
    return TestClient(app)


# --------------------------------------------------------------------
# Helpers to create in-memory sample PDF and DOCX
# --------------------------------------------------------------------
def pdf_bytes(text: str) -> bytes:
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 100), text, fontsize=12)
    data = doc.tobytes()
    doc.close()
    return data


def docx_bytes(text: str) -> bytes:
    d = docx.Document()
    for p in text.split("\n\n"):
        d.add_paragraph(p)
    buf = io.BytesIO()
    d.save(buf)
    return buf.getvalue()


def pdf_text(data: bytes) -> str:
    with fitz.open(stream=data, filetype="pdf") as doc:
        text = " ".join(page.get_text() for page in doc)
    return " ".join(text.split())


def docx_text(data: bytes) -> str:
    d = docx.Document(io.BytesIO(data))
    return "\n".join(p.text for p in d.paragraphs)


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    return pdf_bytes("Students will utilize the map.\nAnother line here.")


@pytest.fixture
def sample_docx_bytes() -> bytes:
    return docx_bytes("Students will utilize the map.\n\nAnother paragraph here.")
