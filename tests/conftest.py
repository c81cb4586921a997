from __future__ import annotations

import os
import sys

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from scopemetrics.metrics.factory import new_root_scope  # noqa: E402
from tests._helpers import RecordingCachedReporter, RecordingReporter  # noqa: E402


@pytest.fixture()
def recording_reporter():
    return RecordingReporter()


@pytest.fixture()
def cached_reporter():
    return RecordingCachedReporter()


@pytest.fixture()
def root(recording_reporter):
    """Root scope with a plain recording reporter and no report loop."""
    scope = new_root_scope(reporter=recording_reporter)
    yield scope
    scope.close()


@pytest.fixture(autouse=True)
def _clean_scopemetrics_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith('SCOPEMETRICS_'):
            monkeypatch.delenv(key, raising=False)
