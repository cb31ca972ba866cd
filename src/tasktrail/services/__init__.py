"""Record and identity service backends for TaskTrail."""

from tasktrail.services.base import IdentityService, RecordService
from tasktrail.services.http_records import HttpRecordService
from tasktrail.services.identity import HostedIdentityService, LocalIdentityService
from tasktrail.services.sqlite_records import SqliteRecordService

__all__ = [
    "HostedIdentityService",
    "HttpRecordService",
    "IdentityService",
    "LocalIdentityService",
    "RecordService",
    "SqliteRecordService",
]
