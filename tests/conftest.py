"""Shared fixtures."""
import pytest

from grocery_search.core.config import SearchSettings
from grocery_search.services.ai.schema import AIFailure, AIFailureKind
from grocery_search.services.catalog.memory import InMemoryCatalog
from tests.fakes import CATEGORIES, sample_products


@pytest.fixture
def catalog() -> InMemoryCatalog:
    return InMemoryCatalog(sample_products(), CATEGORIES)


@pytest.fixture
def settings() -> SearchSettings:
    return SearchSettings(
        gemini_api_key="test-key",
        gemini_api_endpoint="https://ai.example.test/v1/models/test:generateContent",
        temperature=0.2,
        timeout_seconds=2.0,
        fallback_enabled=True,
        result_limit=20,
        log_json=False,
    )


@pytest.fixture
def timeout_failure() -> AIFailure:
    return AIFailure(kind=AIFailureKind.TIMEOUT, detail="ReadTimeout")
