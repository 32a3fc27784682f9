from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Literal, Optional

Severity = Literal["low", "medium", "high"]
Placement = Literal["before", "after", "beside"]

SEVERITIES = ("low", "medium", "high")
PLACEMENTS = ("before", "after", "beside")


class _Model(BaseModel):
    # camelCase on the wire, snake_case in Python; never mutated once built
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)


class ImageSuggestion(_Model):
    description: str
    alt_text: str
    placement: Placement = "beside"
    question_number: Optional[int] = None


class LineFinding(_Model):
    line_number: int = Field(ge=1)
    original_line: str
    suggested_change: Optional[str] = None
    reason: str
    strategy: str
    severity: Severity = "medium"
    suggested_images: List[ImageSuggestion] = Field(default_factory=list)


class AccessibilityReport(_Model):
    summary: str
    overall_score: int = Field(ge=0, le=100)
    lines: List[LineFinding] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    suggested_images: List[ImageSuggestion] = Field(default_factory=list)


class ExamAdaptationResult(_Model):
    summary: str
    original_exam: str
    adapted_exam: str
    changes_made: int = Field(default=0, ge=0)
    recommendations: List[str] = Field(default_factory=list)
    suggested_images: List[ImageSuggestion] = Field(default_factory=list)


class DisabilityIdentification(_Model):
    suggested_disability: str
    explanation: str
    recommendations: List[str] = Field(default_factory=list)
