from __future__ import annotations

import pytest

from chart_engine.config import GeminiSettings, Settings
from chart_engine.sample_data import load_sample_records


@pytest.fixture
def settings() -> Settings:
    return Settings(
        gemini=GeminiSettings(api_key="test-key", model="gemini-test"),
        sample_rows=100,
        strict_aggregation=False,
        log_level="INFO",
        png_scale=1,
    )


@pytest.fixture
def sales_records() -> list:
    return load_sample_records(seed=1)
