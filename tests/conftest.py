"""Shared fixtures for taskrecover tests."""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path

import pytest

# Ensure project root is on path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

# ── Environment isolation ───────────────────────────────────────────────
# Keep a developer's TASKRECOVER_* variables or .env out of the tests


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Isolate every test from real env vars and filesystem side effects."""
    for name in list(os.environ):
        if name.upper().startswith("TASKRECOVER_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("TASKRECOVER_LOG_FILE", str(tmp_path / "taskrecover.log"))

    # Clear the cached settings singleton so each test picks up monkeypatched env
    from taskrecover.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()

    logger = logging.getLogger("taskrecover")
    for h in logger.handlers[:]:
        logger.removeHandler(h)
        h.close()
    logger.setLevel(logging.NOTSET)


# ── Reusable fixtures ──────────────────────────────────────────────────


@pytest.fixture
def task_fields():
    """Four usable task descriptions, one per robot."""
    return {
        "R1": "Navigate to loading dock. Path: [[0,0],[0,1],[1,1]]",
        "R2": "Pick up pallet at shelf row 3. Path: [[2,0],[2,1]]",
        "R3": "Return to charging station. Path: [[4,4],[4,3]]",
        "R4": "Deliver parcel to unloading bay. Path: [[1,0],[2,0]]",
    }


@pytest.fixture
def clean_response(task_fields):
    """Well-formed model output for ``task_fields``."""
    return json.dumps(task_fields)


@pytest.fixture
def sample_grid():
    """3x3 warehouse with one shelf column and a charging corner."""
    from taskrecover.grid import OccupancyGrid

    return OccupancyGrid.from_rows(
        [
            ".S.",
            ".S.",
            "C.U",
        ]
    )
