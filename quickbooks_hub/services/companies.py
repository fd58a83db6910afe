"""
Company binding persistence.

The manager and the record-backed resolver depend only on the
:class:`CompanyRepository` protocol; :class:`SQLiteCompanyRepository` is the
bundled implementation over the shared SQLite database.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

from quickbooks_hub.clients.sqlite_store import COMPANY_TABLE, SQLiteDatabase
from quickbooks_hub.models import CompanyBinding, parse_datetime

logger = logging.getLogger(__name__)

_FILTERABLE_COLUMNS = frozenset(
    {"source_type", "source_id", "display_name", "realm_id", "environment", "is_active"}
)


class CompanyRepository(Protocol):
    """Read/write interface over company binding records."""

    def find(self, company_id: str, *, tenant_id: Optional[str] = None) -> Optional[CompanyBinding]:
        ...

    def list_company_ids(
        self,
        *,
        tenant_id: Optional[str] = None,
        conditions: Optional[Dict[str, Any]] = None,
    ) -> List[str]:
        ...

    def save(self, binding: CompanyBinding) -> None:
        ...

    def register_source(
        self,
        source_type: str,
        source_id: str,
        *,
        tenant_id: Optional[str] = None,
        display_name: Optional[str] = None,
        environment: str = "production",
    ) -> CompanyBinding:
        ...

    def transaction(self) -> AbstractContextManager[Any]:
        ...


def _to_db(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bool):
        return int(value)
    return value


class SQLiteCompanyRepository:
    """Company bindings stored in the ``quickbooks_companies`` table."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def transaction(self) -> AbstractContextManager[sqlite3.Connection]:
        return self._db.transaction()

    @staticmethod
    def _row_to_binding(row: sqlite3.Row) -> CompanyBinding:
        return CompanyBinding(
            company_id=row["company_id"],
            tenant_id=row["tenant_id"],
            source_type=row["source_type"],
            source_id=row["source_id"],
            display_name=row["display_name"],
            realm_id=row["realm_id"],
            environment=row["environment"],
            is_active=bool(row["is_active"]),
            connected_at=parse_datetime(row["connected_at"]),
            disconnected_at=parse_datetime(row["disconnected_at"]),
        )

    def find(self, company_id: str, *, tenant_id: Optional[str] = None) -> Optional[CompanyBinding]:
        query = f"SELECT * FROM {COMPANY_TABLE} WHERE company_id = ?"
        params: list[Any] = [company_id]
        if tenant_id is not None:
            query += " AND tenant_id = ?"
            params.append(tenant_id)

        with self._db.connection() as conn:
            row = conn.execute(query, params).fetchone()
        return self._row_to_binding(row) if row else None

    def list_company_ids(
        self,
        *,
        tenant_id: Optional[str] = None,
        conditions: Optional[Dict[str, Any]] = None,
    ) -> List[str]:
        clauses: list[str] = []
        params: list[Any] = []
        if tenant_id is not None:
            clauses.append("tenant_id = ?")
            params.append(tenant_id)
        for column, value in (conditions or {}).items():
            if column not in _FILTERABLE_COLUMNS:
                raise ValueError(f"Unsupported company filter column [{column}].")
            clauses.append(f"{column} = ?")
            params.append(_to_db(value))

        query = f"SELECT company_id FROM {COMPANY_TABLE}"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY rowid"

        with self._db.connection() as conn:
            rows = conn.execute(query, params).fetchall()
        return [str(row["company_id"]) for row in rows]

    def save(self, binding: CompanyBinding) -> None:
        record = binding.model_dump()
        columns = list(record)
        placeholders = ", ".join("?" for _ in columns)
        updates = ", ".join(f"{col} = excluded.{col}" for col in columns if col != "company_id")
        with self._db.connection() as conn:
            conn.execute(
                f"""
                INSERT INTO {COMPANY_TABLE} ({", ".join(columns)})
                VALUES ({placeholders})
                ON CONFLICT(company_id) DO UPDATE SET {updates}
                """,
                [_to_db(record[col]) for col in columns],
            )

    def find_by_source(
        self, source_type: str, source_id: str, *, tenant_id: Optional[str] = None
    ) -> Optional[CompanyBinding]:
        query = f"SELECT * FROM {COMPANY_TABLE} WHERE source_type = ? AND source_id = ?"
        params: list[Any] = [source_type, source_id]
        if tenant_id is None:
            query += " AND tenant_id IS NULL"
        else:
            query += " AND tenant_id = ?"
            params.append(tenant_id)

        with self._db.connection() as conn:
            row = conn.execute(query, params).fetchone()
        return self._row_to_binding(row) if row else None

    def register_source(
        self,
        source_type: str,
        source_id: str,
        *,
        tenant_id: Optional[str] = None,
        display_name: Optional[str] = None,
        environment: str = "production",
    ) -> CompanyBinding:
        """Create a binding for a caller-side record, or return the existing one."""
        with self._db.transaction():
            existing = self.find_by_source(source_type, source_id, tenant_id=tenant_id)
            if existing is not None:
                return existing

            binding = CompanyBinding(
                company_id=str(uuid.uuid4()),
                tenant_id=tenant_id,
                source_type=source_type,
                source_id=str(source_id),
                display_name=display_name,
                environment=environment,
                is_active=True,
            )
            self.save(binding)

        logger.info(
            "Registered company %s for %s#%s (tenant=%s)",
            binding.company_id,
            source_type,
            source_id,
            tenant_id,
        )
        return binding


__all__ = ["CompanyRepository", "SQLiteCompanyRepository"]
