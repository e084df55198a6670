"""
Tests for the Flask endpoints (multipart upload, envelopes, fallback header).
"""

from __future__ import annotations

import io
from unittest.mock import patch

from feedback import Category


def _upload(client, data=b"fake video bytes", path="/analyze", mimetype="video/webm"):
    return client.post(
        path,
        data={"video": (io.BytesIO(data), "recording.webm", mimetype)},
        content_type="multipart/form-data",
    )


def test_health(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.get_json() == {"status": "presentation-analyzer-ready"}


def test_missing_video_returns_error_envelope(client):
    r = client.post("/analyze", data={})
    assert r.status_code == 400
    assert r.get_json() == {"error": "No video file provided"}


def test_empty_video_returns_error_envelope(client):
    r = _upload(client, data=b"")
    assert r.status_code == 400
    assert "error" in r.get_json()


def test_failed_model_call_returns_sample_result(client):
    """No API key and undecodable bytes: still a 200 with the full schema."""
    r = _upload(client)
    assert r.status_code == 200
    assert r.headers["X-Analysis-Source"] == "sample"
    data = r.get_json()
    assert set(data) == {"metrics", "sections"}
    assert set(data["sections"]) == {"posture", "confidence", "eyeContact", "overall"}
    for score in data["metrics"].values():
        assert 60 <= score <= 95


def test_model_result_is_returned(client):
    scores = {Category.POSTURE: 90, Category.CONFIDENCE: 90, Category.EYE_CONTACT: 90}
    with patch("vision.extract_frames", return_value=["frame"]), \
            patch("vision.classify_frame", return_value=scores):
        r = _upload(client, path="/analyze-video")
    assert r.status_code == 200
    assert r.headers["X-Analysis-Source"] == "model"
    data = r.get_json()
    assert data["metrics"] == {"posture": 90, "confidence": 90, "eyeContact": 90}
    overall = data["sections"]["overall"][0]
    assert overall["type"] == "success"
    assert "excellent" in overall["content"]


def test_unexpected_error_returns_500(client):
    with patch("app.service.analyze", side_effect=RuntimeError("boom")):
        r = _upload(client)
    assert r.status_code == 500
    assert r.get_json() == {"error": "boom"}


def test_too_large_upload_returns_413(client):
    from app import app

    original = app.config["MAX_CONTENT_LENGTH"]
    app.config["MAX_CONTENT_LENGTH"] = 10
    try:
        r = _upload(client, data=b"x" * 1024)
    finally:
        app.config["MAX_CONTENT_LENGTH"] = original
    assert r.status_code == 413
    assert "error" in r.get_json()
