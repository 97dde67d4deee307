from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest


def pytest_configure():
    # Ensure project root is on sys.path for absolute imports like 'pipelines.steps.enrich_stargazers'
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))
    # Set test environment knobs
    os.environ.setdefault("RUN_ENV", "test")


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    # Settings are cached per process; tests flip env vars freely
    monkeypatch.setenv("RUN_ENV", "test")
    monkeypatch.setenv("LLM_TRACE", "false")
    from config.settings import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def conn(tmp_path):
    from db import schema
    from db.connection import get_connection

    c = get_connection(str(tmp_path / "stargazers.db"))
    schema.bootstrap(c)
    yield c
    c.close()
