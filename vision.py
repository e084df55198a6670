import os
import base64
import json
import logging
import mimetypes
import tempfile
from concurrent.futures import ThreadPoolExecutor

import cv2
import numpy as np
import requests

from feedback import Category

logger = logging.getLogger(__name__)

GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY")
GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash")
FRAME_COUNT = int(os.environ.get("ANALYSIS_FRAME_COUNT", 3))
REQUEST_TIMEOUT = float(os.environ.get("ANALYSIS_TIMEOUT", 60))

FRAME_PROMPT = """
You receive a single frame from a video of a person giving a presentation.
You are an expert in evaluating presentation skills.

Evaluate only what is visible in the frame:
• Posture: upright stance, shoulders back, stable and open body.
• Confidence: relaxed face, purposeful hands, no visible nervousness.
• Eye contact: gaze directed at the lens rather than down or away.

Ignore lighting, background, camera angle and image quality.

Scoring rules:
• Scores are integers out of 100.
• 80 to 100: strong, presentation-ready.
• 70 to 79: solid with visible room for improvement.
• Below 70: clear problems in this dimension.

Return JSON in this format only:
{
  "posture": 0,
  "confidence": 0,
  "eye_contact": 0,
  "notes": "one short sentence"
}
"""

# JSON field -> category
SCORE_FIELDS = {
    "posture": Category.POSTURE,
    "confidence": Category.CONFIDENCE,
    "eye_contact": Category.EYE_CONTACT,
}


class ExternalServiceError(RuntimeError):
    """Anything that went wrong on the model-backed analysis path."""


def extract_frames(video_bytes: bytes, mime_type: str, count: int = FRAME_COUNT) -> list:
    """
    Sample `count` evenly spaced frames and return them as base64 JPEG strings.
    OpenCV needs a real file, so the upload lives in a temp dir for the duration.
    """
    suffix = mimetypes.guess_extension(mime_type or "") or ".mp4"

    with tempfile.TemporaryDirectory() as tmpdir:
        video_path = os.path.join(tmpdir, f"upload{suffix}")
        with open(video_path, "wb") as f:
            f.write(video_bytes)

        try:
            frames = _read_frames(video_path, count)
        except cv2.error as e:
            raise ExternalServiceError(f"Could not decode video: {e}") from e

    if not frames:
        raise ExternalServiceError("No frames extracted from video")

    encoded = []
    for frame in frames:
        ok, buffer = cv2.imencode(".jpg", frame)
        if not ok:
            raise ExternalServiceError("Failed to encode frame as JPEG")
        encoded.append(base64.b64encode(buffer.tobytes()).decode("ascii"))
    return encoded


def _read_frames(video_path: str, count: int) -> list:
    cap = cv2.VideoCapture(video_path)
    try:
        if not cap.isOpened():
            raise ExternalServiceError("Cannot open video file")

        frame_count = int(cap.get(cv2.CAP_PROP_FRAME_COUNT))
        if frame_count > 0:
            indices = np.linspace(0, frame_count - 1, min(count, frame_count), dtype=int)
            frames = []
            for idx in indices:
                cap.set(cv2.CAP_PROP_POS_FRAMES, int(idx))
                ret, frame = cap.read()
                if ret:
                    frames.append(frame)
            return frames

        # webm recordings from the browser usually report no frame count
        frame_count = _count_frames(cap)
    finally:
        cap.release()

    if frame_count == 0:
        return []
    indices = np.linspace(0, frame_count - 1, min(count, frame_count), dtype=int)
    return _retrieve_frames(video_path, {int(idx) for idx in indices})


def _count_frames(cap) -> int:
    total = 0
    while cap.grab():
        total += 1
    return total


def _retrieve_frames(video_path: str, wanted: set) -> list:
    """Second pass over the file, decoding only the frames at `wanted` positions."""
    cap = cv2.VideoCapture(video_path)
    frames = []
    try:
        idx = 0
        last = max(wanted)
        while idx <= last and cap.grab():
            if idx in wanted:
                ret, frame = cap.retrieve()
                if ret:
                    frames.append(frame)
            idx += 1
    finally:
        cap.release()
    return frames


def call_gemini_with_frame(frame_b64: str) -> dict:
    """
    Send one inline JPEG frame to Gemini generateContent and expect JSON text back.
    """
    if not GEMINI_API_KEY:
        raise ExternalServiceError("GEMINI_API_KEY is not configured")

    url = (
        f"https://generativelanguage.googleapis.com/v1beta/models/"
        f"{GEMINI_MODEL}:generateContent?key={GEMINI_API_KEY}"
    )

    payload = {
        "contents": [
            {
                "role": "user",
                "parts": [
                    {"text": FRAME_PROMPT},
                    {
                        "inline_data": {
                            "mime_type": "image/jpeg",
                            "data": frame_b64,
                        }
                    },
                ],
            }
        ],
        "generationConfig": {
            "temperature": 0.2,
            "responseMimeType": "application/json"
        },
    }

    try:
        resp = requests.post(url, json=payload, timeout=REQUEST_TIMEOUT)
    except requests.exceptions.RequestException as e:
        raise ExternalServiceError(f"Gemini request failed: {e}") from e

    if resp.status_code != 200:
        raise ExternalServiceError(
            f"Gemini API error {resp.status_code}: {resp.text[:300]}"
        )

    try:
        data = resp.json()
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise ExternalServiceError(f"Unexpected Gemini response format: {str(e)}") from e

    if not isinstance(text, str):
        raise ExternalServiceError(f"Gemini text part is not a string: {type(text).__name__}")

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise ExternalServiceError(f"Gemini did not return valid JSON: {str(e)}") from e

    if not isinstance(parsed, dict):
        raise ExternalServiceError("Gemini JSON root must be an object")

    return parsed


def parse_frame_scores(parsed: dict) -> dict:
    """Pull the three 0-100 scores out of one frame's JSON."""
    scores = {}
    for field, category in SCORE_FIELDS.items():
        value = parsed.get(field)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ExternalServiceError(f"Missing or non-numeric '{field}' score")
        if not 0 <= value <= 100:
            raise ExternalServiceError(f"'{field}' score out of range: {value}")
        scores[category] = int(value)
    return scores


def classify_frame(frame_b64: str) -> dict:
    return parse_frame_scores(call_gemini_with_frame(frame_b64))


def combine_frame_scores(frame_scores: list) -> dict:
    """Floor of the per-frame mean for each category."""
    if not frame_scores:
        raise ExternalServiceError("No frame scores to combine")
    return {
        category: sum(scores[category] for scores in frame_scores) // len(frame_scores)
        for category in SCORE_FIELDS.values()
    }


def score_video(video_bytes: bytes, mime_type: str) -> dict:
    """
    Model-backed scores for a video: sample frames, classify them concurrently,
    and combine once every frame has come back.
    """
    frames = extract_frames(video_bytes, mime_type)
    logger.info("Classifying %d frames with %s", len(frames), GEMINI_MODEL)

    with ThreadPoolExecutor(max_workers=len(frames)) as executor:
        frame_scores = list(executor.map(classify_frame, frames))

    return combine_frame_scores(frame_scores)
