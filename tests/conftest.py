"""
Shared fixtures.

Every fixture works inside pytest's tmp_path, so no test touches the
real application-data directory.
"""

import asyncio

import pytest

from src.config import AppSettings
from src.orchestrator import create_app_components
from src.services.storage import JsonDocumentStore, SQLiteRecordStore


def run_async(coro):
    """Run a coroutine to completion on a fresh event loop."""
    return asyncio.run(coro)


@pytest.fixture
def app_settings(tmp_path):
    return AppSettings(data_dir=tmp_path / "data")


@pytest.fixture
def sqlite_store(tmp_path):
    store = SQLiteRecordStore()
    run_async(store.open(tmp_path / "db" / "acctrack.db"))
    yield store
    run_async(store.close())


@pytest.fixture
def json_store(tmp_path):
    store = JsonDocumentStore()
    run_async(store.open(tmp_path / "doc" / "acctrack.json"))
    yield store
    run_async(store.close())


@pytest.fixture(params=["sqlite", "json"])
def store(request, tmp_path):
    """Each record store backend, opened and ready."""
    if request.param == "sqlite":
        store = SQLiteRecordStore()
        path = tmp_path / "db" / "acctrack.db"
    else:
        store = JsonDocumentStore()
        path = tmp_path / "doc" / "acctrack.json"
    run_async(store.open(path))
    yield store
    run_async(store.close())


@pytest.fixture
def components(app_settings):
    """Wired application with its store opened in the temp data dir."""
    components = create_app_components(app_settings)
    run_async(components.start())
    yield components
    run_async(components.stop())


@pytest.fixture
def facade(components):
    return components.facade
