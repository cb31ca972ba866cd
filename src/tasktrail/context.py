"""Composition root: builds services, gateway and stores from config."""

import logging
import sqlite3
from dataclasses import dataclass

import requests

from tasktrail.config import Config
from tasktrail.dashboard import Dashboard
from tasktrail.errors import RemoteOperationFailed
from tasktrail.gateway import TaskGateway
from tasktrail.services.base import IdentityService, RecordService
from tasktrail.services.http_records import HttpRecordService
from tasktrail.services.identity import HostedIdentityService, LocalIdentityService
from tasktrail.services.sqlite_records import SqliteRecordService
from tasktrail.storage import LocalStorage
from tasktrail.stores.task_store import TaskStore
from tasktrail.stores.user_store import UserStore, restore_session

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Central container for shared app resources."""

    config: Config
    storage: LocalStorage
    records: RecordService
    identity: IdentityService
    gateway: TaskGateway
    task_store: TaskStore
    user_store: UserStore
    dashboard: Dashboard

    @classmethod
    def create(cls, config: Config) -> "AppContext":
        """Construct the backend named in the config and wire everything to it.

        Raises:
            RemoteOperationFailed: If the local database cannot be opened or
                the http backend has no api_url.
        """
        storage = LocalStorage(config.state_path)
        records: RecordService
        identity: IdentityService
        if config.backend == "http":
            if not config.api_url:
                raise RemoteOperationFailed("backend = 'http' needs api_url in the config")
            session = requests.Session()
            records = HttpRecordService(
                config.api_url, config.client_id, session=session, timeout=config.request_timeout
            )
            identity = HostedIdentityService(
                config.api_url, session, storage=storage, timeout=config.request_timeout
            )
        else:
            sqlite_records = SqliteRecordService(config.database_path)
            try:
                sqlite_records.initialize_schema()
            except (OSError, sqlite3.Error) as e:
                raise RemoteOperationFailed(
                    f"Cannot create database at {config.database_path}: {e}"
                ) from e
            if not sqlite_records.verify_connection():
                raise RemoteOperationFailed(
                    f"Database {config.database_path} appears corrupted"
                )
            records = sqlite_records
            identity = LocalIdentityService(sqlite_records)

        gateway = TaskGateway(records)
        task_store = TaskStore(page_size=config.page_size)
        user_store = UserStore(storage)
        dashboard = Dashboard(gateway, task_store, user_store, identity)
        logger.info("AppContext initialized with backend=%s", config.backend)
        return cls(
            config=config,
            storage=storage,
            records=records,
            identity=identity,
            gateway=gateway,
            task_store=task_store,
            user_store=user_store,
            dashboard=dashboard,
        )

    def restore_session(self) -> bool:
        """Bootstrap the user store from the persisted session.

        Returns:
            True if a session was restored.
        """
        user = restore_session(self.user_store, self.storage)
        if user is None:
            return False
        self.identity.resume(user.to_dict())
        logger.info("Restored session for user %s", user.id)
        return True
