from __future__ import annotations

import re
from enum import Enum
from typing import Optional


class DisabilityCategory(str, Enum):
    DYSLEXIA = "dyslexia"
    DYSGRAPHIA = "dysgraphia"
    DYSCALCULIA = "dyscalculia"
    ADHD = "adhd"
    AUTISM = "autism"
    VISUAL_IMPAIRMENT = "visual_impairment"
    HEARING_IMPAIRMENT = "hearing_impairment"
    EMOTIONAL_BEHAVIORAL = "emotional_behavioral"
    GIFTED = "gifted"

    @property
    def label(self) -> str:
        return LABELS[self]

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["DisabilityCategory"]:
        """Map a free-form label ("Visual Impairment", "ADHD", ...) to a category.

        Returns None for labels that are not recognised.
        """
        if not value:
            return None
        key = re.sub(r"[\s\-/]+", "_", value.strip().lower())
        key = re.sub(r"[^a-z_]", "", key)
        if key in _ALIASES:
            return _ALIASES[key]
        try:
            return cls(key)
        except ValueError:
            return None


LABELS = {
    DisabilityCategory.DYSLEXIA: "Dyslexia",
    DisabilityCategory.DYSGRAPHIA: "Dysgraphia",
    DisabilityCategory.DYSCALCULIA: "Dyscalculia",
    DisabilityCategory.ADHD: "ADHD",
    DisabilityCategory.AUTISM: "Autism Spectrum Disorder",
    DisabilityCategory.VISUAL_IMPAIRMENT: "Visual Impairment",
    DisabilityCategory.HEARING_IMPAIRMENT: "Hearing Impairment",
    DisabilityCategory.EMOTIONAL_BEHAVIORAL: "Emotional/Behavioral Disorders",
    DisabilityCategory.GIFTED: "Gifted and Talented",
}

_ALIASES = {
    "add": DisabilityCategory.ADHD,
    "attention_deficit_hyperactivity_disorder": DisabilityCategory.ADHD,
    "autism_spectrum_disorder": DisabilityCategory.AUTISM,
    "asd": DisabilityCategory.AUTISM,
    "autistic": DisabilityCategory.AUTISM,
    "visual": DisabilityCategory.VISUAL_IMPAIRMENT,
    "visually_impaired": DisabilityCategory.VISUAL_IMPAIRMENT,
    "blind": DisabilityCategory.VISUAL_IMPAIRMENT,
    "low_vision": DisabilityCategory.VISUAL_IMPAIRMENT,
    "hearing": DisabilityCategory.HEARING_IMPAIRMENT,
    "deaf": DisabilityCategory.HEARING_IMPAIRMENT,
    "hard_of_hearing": DisabilityCategory.HEARING_IMPAIRMENT,
    "emotional": DisabilityCategory.EMOTIONAL_BEHAVIORAL,
    "behavioral": DisabilityCategory.EMOTIONAL_BEHAVIORAL,
    "emotional_behavioral_disorders": DisabilityCategory.EMOTIONAL_BEHAVIORAL,
    "emotional_behavioral_disorder": DisabilityCategory.EMOTIONAL_BEHAVIORAL,
    "ebd": DisabilityCategory.EMOTIONAL_BEHAVIORAL,
    "gifted_and_talented": DisabilityCategory.GIFTED,
    "gifted_talented": DisabilityCategory.GIFTED,
}
