"""Shared test fixtures for Finance Brain."""

import pytest

from finance_brain.config import FinanceSettings
from finance_brain.queries import FinanceAggregator
from finance_brain.records import RecordScanner
from finance_brain.services.storage import InMemoryRecordStore
from tests.factories import TODAY


@pytest.fixture
def settings():
    """Settings with fast retries so failure paths don't sleep."""
    return FinanceSettings(
        query_retry_attempts=2,
        query_retry_wait_seconds=0,
        query_retry_max_wait_seconds=0,
    )


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def scanner(store, settings):
    return RecordScanner(store, settings)


@pytest.fixture
def aggregator(scanner, settings):
    return FinanceAggregator(scanner, settings, clock=lambda: TODAY)
