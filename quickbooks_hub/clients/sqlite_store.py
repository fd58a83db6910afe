"""SQLite-backed durable storage for company bindings and token sets."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Iterator, Optional

COMPANY_TABLE = "quickbooks_companies"
TOKEN_TABLE = "quickbooks_tokens"


class SQLiteDatabase:
    """Connection factory with an optional ambient transaction.

    Statements issued through :meth:`connection` while a :meth:`transaction`
    block is open run on that block's connection and commit or roll back with
    it. Outside a transaction each call gets its own auto-committed connection.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = Path(db_path)
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._active: ContextVar[Optional[sqlite3.Connection]] = ContextVar(
            f"sqlite_tx_{id(self)}", default=None
        )
        self._ensure_schema()

    @property
    def path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with self.connection() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {COMPANY_TABLE} (
                    company_id TEXT PRIMARY KEY,
                    tenant_id TEXT,
                    source_type TEXT,
                    source_id TEXT,
                    display_name TEXT,
                    realm_id TEXT,
                    environment TEXT NOT NULL DEFAULT 'production',
                    is_active INTEGER NOT NULL DEFAULT 1,
                    connected_at TEXT,
                    disconnected_at TEXT
                )
                """
            )
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {TOKEN_TABLE} (
                    company_id TEXT PRIMARY KEY,
                    access_token TEXT NOT NULL,
                    refresh_token TEXT NOT NULL,
                    access_token_expires_at TEXT,
                    refresh_token_expires_at TEXT,
                    realm_id TEXT,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{COMPANY_TABLE}_tenant "
                f"ON {COMPANY_TABLE} (tenant_id)"
            )

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Yield the active transaction's connection, or a fresh committed one."""
        active = self._active.get()
        if active is not None:
            yield active
            return

        conn = self._connect()
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run the enclosed statements atomically; nested blocks join the outer one."""
        active = self._active.get()
        if active is not None:
            yield active
            return

        conn = self._connect()
        token = self._active.set(conn)
        try:
            with conn:
                yield conn
        finally:
            self._active.reset(token)
            conn.close()


__all__ = ["COMPANY_TABLE", "SQLiteDatabase", "TOKEN_TABLE"]
