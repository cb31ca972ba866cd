"""Local SQLite record service for TaskTrail."""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Generator

from tasktrail.errors import NotFound, RemoteOperationFailed
from tasktrail.services.base import (
    TAG_TABLE,
    TASK_TABLE,
    FetchResult,
    Filter,
    OrderBy,
    Paging,
    Record,
)

logger = logging.getLogger(__name__)

CURRENT_SCHEMA_VERSION = 1

# Columns callers may read, write and filter on, per table
TABLE_COLUMNS: dict[str, tuple[str, ...]] = {
    TASK_TABLE: (
        "Id",
        "Owner",
        "CreatedOn",
        "ModifiedOn",
        "title",
        "description",
        "status",
        "priority",
        "due_date",
        "category",
        "completed",
        "created_at",
        "updated_at",
    ),
    TAG_TABLE: ("Id", "Owner", "CreatedOn", "ModifiedOn", "task_id", "tag_name", "color"),
}
BOOLEAN_COLUMNS = {"completed"}
SYSTEM_COLUMNS = {"Id", "Owner", "CreatedOn", "ModifiedOn"}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SqliteRecordService:
    """Record service backed by a single SQLite file.

    Records are scoped to an owner, mirroring the hosted service where every
    user only sees their own rows. The local identity service sets the owner
    on login.
    """

    def __init__(self, db_path: Path, owner: int | str | None = None) -> None:
        """Initialize the service with a database path."""
        self.db_path = db_path
        self.owner = owner

    @contextmanager
    def connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Context manager for database connections with dict-like row access."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def initialize_schema(self) -> None:
        """Create database tables if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self.connection() as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS task (
                    Id INTEGER PRIMARY KEY AUTOINCREMENT,
                    Owner TEXT,
                    CreatedOn TEXT NOT NULL,
                    ModifiedOn TEXT NOT NULL,
                    title TEXT NOT NULL,
                    description TEXT DEFAULT '',
                    status TEXT NOT NULL DEFAULT 'To Do',
                    priority TEXT NOT NULL DEFAULT 'Medium',
                    due_date TEXT DEFAULT NULL,
                    category TEXT DEFAULT 'Work',
                    completed INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT,
                    updated_at TEXT
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS task_tag (
                    Id INTEGER PRIMARY KEY AUTOINCREMENT,
                    Owner TEXT,
                    CreatedOn TEXT NOT NULL,
                    ModifiedOn TEXT NOT NULL,
                    task_id INTEGER NOT NULL,
                    tag_name TEXT NOT NULL,
                    color TEXT DEFAULT 'gray'
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS user (
                    Id INTEGER PRIMARY KEY AUTOINCREMENT,
                    Email TEXT NOT NULL UNIQUE,
                    FirstName TEXT DEFAULT '',
                    LastName TEXT DEFAULT '',
                    AvatarUrl TEXT DEFAULT NULL,
                    PasswordHash TEXT NOT NULL,
                    CreatedOn TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
                )
            """)

            cursor.execute(
                "SELECT version FROM schema_version WHERE version = ?",
                (CURRENT_SCHEMA_VERSION,),
            )
            if cursor.fetchone() is None:
                cursor.execute(
                    "INSERT INTO schema_version (version) VALUES (?)",
                    (CURRENT_SCHEMA_VERSION,),
                )

            conn.commit()

    def get_schema_version(self) -> int | None:
        """Get the current schema version, or None if not initialized."""
        with self.connection() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute("SELECT MAX(version) as version FROM schema_version")
                row = cursor.fetchone()
                return row["version"] if row else None
            except sqlite3.OperationalError:
                return None

    def verify_connection(self) -> bool:
        """Verify the database connection and schema are valid."""
        try:
            with self.connection() as conn:
                conn.execute("SELECT 1 FROM task LIMIT 1")
                return True
        except sqlite3.Error:
            return False

    def fetch_records(
        self,
        table: str,
        *,
        fields: list[str] | None = None,
        filter: Filter | None = None,
        paging: Paging | None = None,
        order_by: list[OrderBy] | None = None,
    ) -> FetchResult:
        """Fetch a window of records matching a filter, plus the total count."""
        columns = self._columns(table)
        selected = [f for f in (fields or columns) if f in columns]
        where, params = self._where(table, filter)

        order_sql = ""
        if order_by:
            parts = []
            for order in order_by:
                self._check_column(table, order.field)
                direction = "DESC" if order.direction.lower() == "desc" else "ASC"
                parts.append(f"{order.field} {direction}")
            # Id breaks ties so pagination is deterministic
            parts.append("Id DESC")
            order_sql = " ORDER BY " + ", ".join(parts)

        limit_sql = ""
        window: list[Any] = []
        if paging is not None:
            limit_sql = " LIMIT ? OFFSET ?"
            window = [paging.limit, paging.offset]

        try:
            with self.connection() as conn:
                cursor = conn.cursor()
                cursor.execute(f"SELECT COUNT(*) AS total FROM {table}{where}", params)
                total = cursor.fetchone()["total"]
                cursor.execute(
                    f"SELECT {', '.join(selected)} FROM {table}{where}{order_sql}{limit_sql}",
                    params + window,
                )
                rows = [self._to_record(row) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            raise RemoteOperationFailed(f"Failed to fetch {table} records: {e}") from e
        return FetchResult(data=rows, total=total)

    def fetch_record(self, table: str, record_id: int) -> Record:
        """Fetch a single record by Id."""
        self._columns(table)
        owner_sql, owner_params = self._owner_clause()
        try:
            with self.connection() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    f"SELECT * FROM {table} WHERE Id = ?{owner_sql}",
                    [record_id] + owner_params,
                )
                row = cursor.fetchone()
        except sqlite3.Error as e:
            raise RemoteOperationFailed(f"Failed to fetch {table} {record_id}: {e}") from e
        if row is None:
            raise NotFound(table, record_id)
        return self._to_record(row)

    def create_record(self, table: str, record: Record) -> Record:
        """Insert a record and return the stored copy with its assigned Id."""
        values = self._writable(table, record)
        now = _now()
        values.update({"Owner": self._owner_value(), "CreatedOn": now, "ModifiedOn": now})
        names = list(values)
        try:
            with self.connection() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    f"INSERT INTO {table} ({', '.join(names)}) "
                    f"VALUES ({', '.join('?' for _ in names)})",
                    [values[n] for n in names],
                )
                conn.commit()
                new_id = cursor.lastrowid
        except sqlite3.Error as e:
            raise RemoteOperationFailed(f"Failed to create {table} record: {e}") from e
        logger.debug("Created %s record %s", table, new_id)
        return self.fetch_record(table, new_id)

    def update_record(self, table: str, record_id: int, record: Record) -> Record:
        """Replace the given fields of a record and return the stored copy."""
        values = self._writable(table, record)
        values["ModifiedOn"] = _now()
        owner_sql, owner_params = self._owner_clause()
        assignments = ", ".join(f"{name} = ?" for name in values)
        try:
            with self.connection() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    f"UPDATE {table} SET {assignments} WHERE Id = ?{owner_sql}",
                    list(values.values()) + [record_id] + owner_params,
                )
                conn.commit()
                changed = cursor.rowcount
        except sqlite3.Error as e:
            raise RemoteOperationFailed(f"Failed to update {table} {record_id}: {e}") from e
        if changed == 0:
            raise NotFound(table, record_id)
        return self.fetch_record(table, record_id)

    def delete_record(self, table: str, record_id: int) -> None:
        """Delete a record by Id."""
        self._columns(table)
        owner_sql, owner_params = self._owner_clause()
        try:
            with self.connection() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    f"DELETE FROM {table} WHERE Id = ?{owner_sql}",
                    [record_id] + owner_params,
                )
                conn.commit()
                deleted = cursor.rowcount
        except sqlite3.Error as e:
            raise RemoteOperationFailed(f"Failed to delete {table} {record_id}: {e}") from e
        if deleted == 0:
            raise NotFound(table, record_id)
        logger.debug("Deleted %s record %s", table, record_id)

    def _columns(self, table: str) -> tuple[str, ...]:
        try:
            return TABLE_COLUMNS[table]
        except KeyError:
            raise RemoteOperationFailed(f"Unknown table: {table}") from None

    def _check_column(self, table: str, name: str) -> None:
        if name not in self._columns(table):
            raise RemoteOperationFailed(f"Unknown field {name!r} on table {table}")

    def _owner_value(self) -> str | None:
        return None if self.owner is None else str(self.owner)

    def _owner_clause(self) -> tuple[str, list[Any]]:
        if self.owner is None:
            return "", []
        return " AND Owner = ?", [str(self.owner)]

    def _writable(self, table: str, record: Record) -> dict[str, Any]:
        """Keep only user-writable columns, converting booleans for storage."""
        values: dict[str, Any] = {}
        for name, value in record.items():
            if name in SYSTEM_COLUMNS:
                continue
            self._check_column(table, name)
            values[name] = int(bool(value)) if name in BOOLEAN_COLUMNS else value
        return values

    def _where(self, table: str, condition: Filter | None) -> tuple[str, list[Any]]:
        clauses: list[str] = []
        params: list[Any] = []
        if condition is not None:
            sql, cond_params = self._compile(table, condition)
            clauses.append(sql)
            params.extend(cond_params)
        if self.owner is not None:
            clauses.append("Owner = ?")
            params.append(str(self.owner))
        if not clauses:
            return "", []
        return " WHERE " + " AND ".join(clauses), params

    def _compile(self, table: str, condition: Filter) -> tuple[str, list[Any]]:
        """Translate the filter grammar into a parameterized SQL expression."""
        for joiner in ("and", "or"):
            if joiner in condition:
                parts = [self._compile(table, c) for c in condition[joiner]]
                if not parts:
                    return ("1" if joiner == "and" else "0"), []
                sql = f" {joiner.upper()} ".join(f"({p[0]})" for p in parts)
                params = [v for p in parts for v in p[1]]
                return sql, params

        name = condition["field"]
        self._check_column(table, name)
        value = condition["value"]
        if condition["operator"] == "eq":
            if name in BOOLEAN_COLUMNS:
                value = int(bool(value))
            return f"{name} = ?", [value]
        if condition["operator"] == "contains":
            # instr() keeps the match case-sensitive, unlike LIKE
            return f"instr({name}, ?) > 0", [str(value)]
        raise RemoteOperationFailed(f"Unsupported filter operator: {condition['operator']}")

    def _to_record(self, row: sqlite3.Row) -> Record:
        record = dict(row)
        for name in BOOLEAN_COLUMNS & record.keys():
            record[name] = bool(record[name])
        return record
