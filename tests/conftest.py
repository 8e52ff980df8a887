"""
Pytest configuration for linkweave.

Provides fixtures for:
- A small blog schema exercising array, singular, and many-to-many inverses
- A seeded in-memory adapter with predictable generated ids
- A dispatcher wired to a recording change sink
- Database settings for the PostgreSQL integration tests
"""

from __future__ import annotations

import os

import pytest

from linkweave.adapters.memory import MemoryAdapter
from linkweave.config import Settings
from linkweave.dispatcher import Dispatcher
from linkweave.domain.schema import RecordTypes
from tests.support.blog import BLOG_SCHEMA, RecordingSink, seed_records, sequential_ids


@pytest.fixture
def schema() -> RecordTypes:
    return RecordTypes(BLOG_SCHEMA)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        log_level="DEBUG",
        link_check_concurrency=4,
        concurrent_link_updates=True,
    )


@pytest.fixture
def adapter() -> MemoryAdapter:
    return MemoryAdapter(seed=seed_records(), id_factory=sequential_ids())


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def dispatcher(
    adapter: MemoryAdapter, schema: RecordTypes, sink: RecordingSink, test_settings: Settings
) -> Dispatcher:
    return Dispatcher(adapter=adapter, schema=schema, sink=sink, settings=test_settings)


@pytest.fixture(scope="session")
def db_settings() -> Settings:
    """
    Settings for integration tests, overridable via environment variables in CI.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "linkweave"),
        db_table="linkweave_test_records",
        log_level="DEBUG",
    )
