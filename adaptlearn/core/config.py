import os
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MAX_UPLOAD_BYTES = 50 * 1024 * 1024  # 50 MB soft cap
ALLOWED_EXTENSIONS = {".pdf", ".docx", ".txt"}
MIME_ALLOW = {
    ".pdf": {"application/pdf"},
    ".docx": {
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/zip",
    },
    # any text/* is accepted for .txt, see utils/storage.py
    ".txt": {"text/plain", "application/x-empty", "inode/x-empty"},
}

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# AI analysis
MAX_ANALYSIS_LINES = 50
ANALYSIS_MAX_TOKENS = 3000
EXAM_MAX_TOKENS = 4000
IDENTIFY_MAX_TOKENS = 4000
AI_TEMPERATURE = 0.3
DEFAULT_TIMEOUT_SECONDS = 60.0

# Rule-based analyzer
RULE_PENALTY = 10
NEUTRAL_SCORE = 50
LONG_LINE_WORDS = {
    "dyslexia": 12,
    "adhd": 20,
    "visual_impairment": 25,
}
SPLIT_MAX_WORDS = 12
LONG_WORD_CHARS = 10
DENSE_LONG_WORDS = 3

# Report rendering
FONT_CANDIDATES = {
    "regular": (
        os.getenv("REPORT_FONT_PATH", ""),
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
    ),
    "bold": (
        os.getenv("REPORT_BOLD_FONT_PATH", ""),
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
    ),
}


class LLMSettings(BaseSettings):
    """Connection settings for the text-generation backend.

    Read from OPENAI_* environment variables once at startup and handed to
    every AI-backed service. Keyword arguments use the field names.
    """

    api_key: Optional[str] = Field(default=None, validation_alias=AliasChoices("api_key", "OPENAI_API_KEY"))
    base_url: Optional[str] = Field(default=None, validation_alias=AliasChoices("base_url", "OPENAI_BASE_URL"))
    model: str = Field(default="gpt-4o-mini", validation_alias=AliasChoices("model", "OPENAI_MODEL"))
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0,
                                   validation_alias=AliasChoices("timeout_seconds", "OPENAI_TIMEOUT"))

    model_config = SettingsConfigDict(extra="ignore", env_ignore_empty=True, protected_namespaces=())

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.api_key.strip())
