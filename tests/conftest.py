"""
Pytest fixtures for the presentation analyzer. The model path is never hit for real.
"""

from __future__ import annotations

import random

import pytest


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def client(monkeypatch):
    """Flask test client with the Gemini key unset so the model path always falls back."""
    import vision

    monkeypatch.setattr(vision, "GEMINI_API_KEY", None)

    from app import app

    app.config["TESTING"] = True
    return app.test_client()
