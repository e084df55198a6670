"""
Analysis service: model-backed scoring with a one-shot sample-data fallback.
"""

from __future__ import annotations

import logging
import random

import vision
from feedback import AnalysisResult, Category, aggregate

logger = logging.getLogger(__name__)

FALLBACK_MIN_SCORE = 60
FALLBACK_MAX_SCORE = 95

SOURCE_MODEL = "model"
SOURCE_SAMPLE = "sample"


class InputError(ValueError):
    """The request did not carry a usable video."""


def random_scores(rng: random.Random) -> tuple[int, int, int]:
    """Posture, confidence and eye contact drawn uniformly from [60, 95]."""
    return tuple(
        rng.randint(FALLBACK_MIN_SCORE, FALLBACK_MAX_SCORE) for _ in range(3)
    )


def sample_analysis(rng: random.Random | None = None) -> AnalysisResult:
    rng = rng or random.Random()
    posture, confidence, eye_contact = random_scores(rng)
    return aggregate(posture, confidence, eye_contact)


class AnalysisService:
    """
    Produces an AnalysisResult for every well-formed video.

    Failures of the model path are logged and absorbed; only InputError
    reaches the caller.
    """

    def __init__(self, rng: random.Random | None = None, scorer=None):
        self.rng = rng or random.Random()
        self.scorer = scorer or vision.score_video

    def analyze(self, video_bytes: bytes, mime_type: str = "video/mp4") -> tuple[AnalysisResult, str]:
        """Return the result and its source (``model`` or ``sample``)."""
        if not video_bytes:
            raise InputError("No video file provided")

        try:
            scores = self.scorer(video_bytes, mime_type)
        except vision.ExternalServiceError as e:
            logger.warning("Model analysis failed, falling back to sample analysis: %s", e)
            return sample_analysis(self.rng), SOURCE_SAMPLE

        result = aggregate(
            scores[Category.POSTURE],
            scores[Category.CONFIDENCE],
            scores[Category.EYE_CONTACT],
        )
        return result, SOURCE_MODEL
