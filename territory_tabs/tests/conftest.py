import os

import pytest

_TRUTHY = {"1", "true", "yes", "on"}


def pytest_runtest_setup(item):
    if item.get_closest_marker("pyqt_required"):
        if os.getenv("PYQT_TESTS", "").strip().lower() not in _TRUTHY:
            pytest.skip("PYQT_TESTS not set; skipping PyQt-dependent test")
