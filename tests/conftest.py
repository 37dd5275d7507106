import os
import sys
from pathlib import Path

import pytest

# Ensure `src` is on sys.path for tests when the package is not installed editable.
SRC = Path(__file__).resolve().parent.parent / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@pytest.fixture(autouse=True)
def _clean_datadog_env(monkeypatch):
    """Keep DATADOG_LOG_* variables and cached settings from leaking between tests."""
    from datadog_json_logger.config import get_settings

    for key in list(os.environ):
        if key.startswith("DATADOG_LOG_"):
            monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
