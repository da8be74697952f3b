"""Shared test fixtures and helpers for facefit tests."""

import importlib.util
import sys
from pathlib import Path

import pytest

# Load helpers module from the tests directory using importlib to avoid
# polluting sys.path.
_helpers_path = Path(__file__).resolve().parent / "helpers.py"
_spec = importlib.util.spec_from_file_location("helpers", _helpers_path)
_helpers = importlib.util.module_from_spec(_spec)
sys.modules["helpers"] = _helpers
_spec.loader.exec_module(_helpers)

from helpers import RecordingDisplay  # noqa: E402

from facefit.config import Configuration  # noqa: E402


@pytest.fixture
def config():
    """Configuration with threshold 5 and no real model."""
    return Configuration(model_path="model.yaml", params_path=None, threshold=5)


@pytest.fixture
def display():
    return RecordingDisplay()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Ensure facefit env vars are unset unless explicitly set by a test."""
    monkeypatch.delenv("FACEFIT_HOME", raising=False)
    monkeypatch.delenv("FACEFIT_MODELS_DIR", raising=False)
