import os
import sys

import pytest

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
TESTS = os.path.dirname(os.path.abspath(__file__))
for path in (ROOT, TESTS):
    if path not in sys.path:
        sys.path.insert(0, path)

from helpers import DaoHarness  # noqa: E402


@pytest.fixture
def harness():
    return DaoHarness()


@pytest.fixture
def dao(harness):
    return harness.dao


@pytest.fixture
def ledger(harness):
    return harness.ledger
