"""
Score classification and report generation for presentation feedback.

Turns the three category scores (posture, confidence, eye contact) into the
metrics and tabbed report sections consumed by the frontend.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Category(str, Enum):
    POSTURE = "posture"
    CONFIDENCE = "confidence"
    EYE_CONTACT = "eyeContact"

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]


CATEGORY_LABELS = {
    Category.POSTURE: "Posture",
    Category.CONFIDENCE: "Confidence",
    Category.EYE_CONTACT: "Eye Contact",
}


class SectionType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def index(self) -> int:
        """Row in the feedback table; 0 is the best band."""
        return SEVERITY_INDEX[self]

    @property
    def section_type(self) -> SectionType:
        return SEVERITY_TYPES[self]


SEVERITY_INDEX = {Severity.HIGH: 0, Severity.MEDIUM: 1, Severity.LOW: 2}

SEVERITY_TYPES = {
    Severity.HIGH: SectionType.SUCCESS,
    Severity.MEDIUM: SectionType.WARNING,
    Severity.LOW: SectionType.INFO,
}

STRENGTH_THRESHOLD = 75

SECTION_KEYS = {category.value for category in Category} | {"overall"}


def average_score(metrics: dict[Category, int]) -> int:
    """Floor of the mean category score."""
    return sum(metrics.values()) // len(metrics)


def classify(score: int) -> Severity:
    if score >= 80:
        return Severity.HIGH
    if score >= 70:
        return Severity.MEDIUM
    return Severity.LOW


# category -> [(observation, tip)] ordered high, medium, low
FEEDBACK_TABLE = {
    Category.POSTURE: [
        (
            "Excellent upright position maintained throughout.",
            "Keep up the great posture! Try varying your stance occasionally.",
        ),
        (
            "Generally good posture with occasional slouching.",
            "Practice standing straight while presenting. Set reminders to check your posture.",
        ),
        (
            "Frequent shifting and inconsistent posture noticed.",
            "Focus on keeping your shoulders back and spine straight. Consider recording practice sessions.",
        ),
    ],
    Category.CONFIDENCE: [
        (
            "Strong, assured presence throughout the presentation.",
            "Continue building on your confident delivery. Try new presentation techniques.",
        ),
        (
            "Showed confidence with room for improvement.",
            "Take deep breaths before speaking. Practice power poses before presentations.",
        ),
        (
            "Signs of nervousness apparent in delivery.",
            "Start with small group presentations to build confidence. Record and review your presentations.",
        ),
    ],
    Category.EYE_CONTACT: [
        (
            "Consistent and engaging eye contact maintained.",
            "Excellent eye contact! Try varying your gaze pattern more.",
        ),
        (
            "Moderate eye contact with occasional avoidance.",
            "Practice maintaining eye contact for longer periods. Use the triangle technique.",
        ),
        (
            "Limited eye contact, often looking away.",
            "Focus on looking at different areas of your audience. Practice with friends.",
        ),
    ],
}


def lookup(category: Category, severity_index: int) -> tuple[str, str]:
    """Return ``(observation, tip)`` for a category and severity row.

    Raises KeyError/IndexError for anything outside the table.
    """
    return FEEDBACK_TABLE[category][severity_index]


@dataclass(frozen=True)
class ReportSection:
    title: str
    content: str
    type: SectionType

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "content": self.content, "type": self.type.value}


@dataclass(frozen=True)
class AnalysisResult:
    """
    Scores and report sections for one analyzed video.

    ``sections`` holds one list per category plus the ``overall`` list.
    """

    metrics: dict[Category, int]
    sections: dict[str, list[ReportSection]]

    def __post_init__(self):
        if set(self.sections) != SECTION_KEYS:
            raise ValueError(f"sections must have exactly {sorted(SECTION_KEYS)}")

    @property
    def average(self) -> int:
        return average_score(self.metrics)

    def to_dict(self) -> dict[str, Any]:
        return {
            "metrics": {category.value: score for category, score in self.metrics.items()},
            "sections": {
                key: [section.to_dict() for section in items]
                for key, items in self.sections.items()
            },
        }


def _strength_word(score: int) -> str:
    if score >= 80:
        return "strong"
    if score >= 70:
        return "moderate"
    return "needs improvement"


def generate(category: Category, score: int) -> list[ReportSection]:
    """Overview, Key Observations and Improvement Tips for one category, in that order."""
    severity = classify(score)
    kind = severity.section_type
    observation, tip = lookup(category, severity.index)
    overview = (
        f"Your {category.label.lower()} shows {_strength_word(score)} "
        f"performance with a score of {score}%."
    )
    return [
        ReportSection(f"{category.label} Overview", overview, kind),
        ReportSection("Key Observations", observation, kind),
        ReportSection("Improvement Tips", tip, SectionType.INFO),
    ]


def _overall_word(average: int) -> str:
    if average >= 80:
        return "excellent"
    if average >= 70:
        return "good"
    return "fair"


def _join_names(categories: list[Category]) -> str:
    return " and ".join(category.label.lower() for category in categories)


def overall_sections(metrics: dict[Category, int]) -> list[ReportSection]:
    average = average_score(metrics)
    strengths = [c for c, score in metrics.items() if score >= STRENGTH_THRESHOLD]
    weaknesses = [c for c, score in metrics.items() if score < STRENGTH_THRESHOLD]

    if strengths:
        strengths_text = f"Your strongest areas are {_join_names(strengths)}."
    else:
        strengths_text = "No single area stands out yet. Keep practicing to build clear strengths."

    if weaknesses:
        weaknesses_text = f"Focus your practice on {_join_names(weaknesses)}."
    else:
        weaknesses_text = "All areas are on track. Keep refining your delivery."

    return [
        ReportSection(
            "Overall Performance",
            f"Your presentation shows {_overall_word(average)} results "
            f"with an average score of {average}%.",
            classify(average).section_type,
        ),
        ReportSection("Key Strengths", strengths_text, SectionType.SUCCESS),
        ReportSection("Areas for Improvement", weaknesses_text, SectionType.INFO),
    ]


def aggregate(posture: int, confidence: int, eye_contact: int) -> AnalysisResult:
    metrics = {
        Category.POSTURE: posture,
        Category.CONFIDENCE: confidence,
        Category.EYE_CONTACT: eye_contact,
    }
    sections: dict[str, list[ReportSection]] = {
        category.value: generate(category, score) for category, score in metrics.items()
    }
    sections["overall"] = overall_sections(metrics)
    return AnalysisResult(metrics=metrics, sections=sections)
