from __future__ import annotations

from typing import Iterator

import pytest

from app.roleplay import scenarios


@pytest.fixture(autouse=True)
def reset_scenario_cache(monkeypatch) -> Iterator[None]:
    """Use the built-in scenarios and a dummy API key for every test."""
    monkeypatch.delenv("SCENARIOS_FILE", raising=False)
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    scenarios.get_scenarios.cache_clear()
    yield
    scenarios.get_scenarios.cache_clear()


@pytest.fixture
def scenario():
    return scenarios.get_scenario("google_ads_skeptical_owner")


@pytest.fixture
def alternating_history() -> list[dict]:
    return [
        {"speaker": "trainee", "message": "Hi Mike, thanks for taking the call."},
        {"speaker": "counterpart", "message": "Sure, but I only have a few minutes."},
        {"speaker": "trainee", "message": "What is your current budget for this?"},
        {"speaker": "counterpart", "message": "Maybe five hundred a month."},
    ]
