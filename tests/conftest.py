# tests/conftest.py

from pathlib import Path

import pytest

from tasktrail.config import Config
from tasktrail.dashboard import Dashboard
from tasktrail.gateway import TaskGateway
from tasktrail.services.sqlite_records import SqliteRecordService
from tasktrail.storage import LocalStorage
from tasktrail.stores.task_store import TaskStore
from tasktrail.stores.user_store import UserStore

from .fakes import FakeClock, FakeIdentityService


@pytest.fixture()
def config(tmp_path: Path) -> Config:
    """Config whose data directory lives in the per-test tmp dir."""
    return Config(data_dir=tmp_path / "data")


@pytest.fixture()
def records(tmp_path: Path) -> SqliteRecordService:
    """
    Real SQLite record service, scoped to owner 1.

    SQLite stays real here because the filter compilation and paging are
    part of what we want to test.
    """
    service = SqliteRecordService(tmp_path / "tasks.db", owner=1)
    service.initialize_schema()
    return service


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def gateway(records: SqliteRecordService, clock: FakeClock) -> TaskGateway:
    return TaskGateway(records, clock=clock)


@pytest.fixture()
def storage(tmp_path: Path) -> LocalStorage:
    return LocalStorage(tmp_path / "state.json")


@pytest.fixture()
def task_store() -> TaskStore:
    return TaskStore(page_size=10)


@pytest.fixture()
def user_store(storage: LocalStorage) -> UserStore:
    return UserStore(storage)


@pytest.fixture()
def identity() -> FakeIdentityService:
    return FakeIdentityService()


@pytest.fixture()
def dashboard(
    gateway: TaskGateway,
    task_store: TaskStore,
    user_store: UserStore,
    identity: FakeIdentityService,
) -> Dashboard:
    return Dashboard(gateway, task_store, user_store, identity)
