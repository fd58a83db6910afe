"""SQLite token stores, optionally isolated per tenant."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Optional

from quickbooks_hub.clients.sqlite_store import COMPANY_TABLE, TOKEN_TABLE, SQLiteDatabase
from quickbooks_hub.core.errors import CompanyNotFoundError
from quickbooks_hub.models import TenantContext, TokenSet, tenant_id_of
from quickbooks_hub.services.token_cipher import TokenCipherService
from quickbooks_hub.stores.base import TokenStore

logger = logging.getLogger(__name__)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


class DatabaseTokenStore(TokenStore):
    """Persist token sets in the ``quickbooks_tokens`` table keyed by company id."""

    def __init__(self, database: SQLiteDatabase, *, cipher: Optional[TokenCipherService] = None) -> None:
        self._db = database
        self._cipher = cipher

    def _select(self, conn: sqlite3.Connection, company_id: str, tenant_id: Optional[str]) -> Optional[sqlite3.Row]:
        """Fetch the token row for ``company_id``.

        ``tenant_id`` is ignored here; :class:`TenantDatabaseTokenStore` uses it
        to restrict the lookup to the active tenant's companies.
        """
        return conn.execute(
            f"SELECT * FROM {TOKEN_TABLE} WHERE company_id = ?",
            (company_id,),
        ).fetchone()

    def _seal(self, value: str) -> str:
        return self._cipher.encrypt(value) if self._cipher else value

    def _unseal(self, value: str) -> Optional[str]:
        return self._cipher.try_decrypt(value) if self._cipher else value

    async def get(
        self, company_id: str, *, context: Optional[TenantContext] = None
    ) -> Optional[TokenSet]:
        with self._db.connection() as conn:
            row = self._select(conn, company_id, tenant_id_of(context))
        if row is None:
            return None

        access_token = self._unseal(row["access_token"])
        refresh_token = self._unseal(row["refresh_token"])
        if access_token is None or refresh_token is None:
            logger.warning(
                "Stored tokens for company %s could not be decrypted; treating as absent",
                company_id,
            )
            return None

        return TokenSet(
            access_token=access_token,
            refresh_token=refresh_token,
            access_token_expires_at=row["access_token_expires_at"],
            refresh_token_expires_at=row["refresh_token_expires_at"],
            realm_id=row["realm_id"],
        )

    async def put(
        self, company_id: str, tokens: TokenSet, *, context: Optional[TenantContext] = None
    ) -> None:
        with self._db.connection() as conn:
            self._upsert(conn, company_id, tokens)

    def _upsert(self, conn: sqlite3.Connection, company_id: str, tokens: TokenSet) -> None:
        conn.execute(
            f"""
            INSERT INTO {TOKEN_TABLE} (
                company_id, access_token, refresh_token,
                access_token_expires_at, refresh_token_expires_at, realm_id, updated_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(company_id) DO UPDATE SET
                access_token = excluded.access_token,
                refresh_token = excluded.refresh_token,
                access_token_expires_at = excluded.access_token_expires_at,
                refresh_token_expires_at = excluded.refresh_token_expires_at,
                realm_id = excluded.realm_id,
                updated_at = excluded.updated_at
            """,
            (
                company_id,
                self._seal(tokens.access_token),
                self._seal(tokens.refresh_token),
                _isoformat(tokens.access_token_expires_at),
                _isoformat(tokens.refresh_token_expires_at),
                tokens.realm_id,
                datetime.now(timezone.utc).isoformat(),
            ),
        )

    async def forget(self, company_id: str, *, context: Optional[TenantContext] = None) -> None:
        with self._db.connection() as conn:
            conn.execute(f"DELETE FROM {TOKEN_TABLE} WHERE company_id = ?", (company_id,))

    async def has(self, company_id: str, *, context: Optional[TenantContext] = None) -> bool:
        with self._db.connection() as conn:
            return self._select(conn, company_id, tenant_id_of(context)) is not None


class TenantDatabaseTokenStore(DatabaseTokenStore):
    """Token store that only sees companies owned by the active tenant.

    Reads are joined against ``quickbooks_companies``; writes and deletes for a
    company outside the tenant raise :class:`CompanyNotFoundError`.
    """

    def _select(self, conn: sqlite3.Connection, company_id: str, tenant_id: Optional[str]) -> Optional[sqlite3.Row]:
        if tenant_id is None:
            return super()._select(conn, company_id, tenant_id)
        return conn.execute(
            f"""
            SELECT t.* FROM {TOKEN_TABLE} AS t
            JOIN {COMPANY_TABLE} AS c ON c.company_id = t.company_id
            WHERE t.company_id = ? AND c.tenant_id = ?
            """,
            (company_id, tenant_id),
        ).fetchone()

    async def put(
        self, company_id: str, tokens: TokenSet, *, context: Optional[TenantContext] = None
    ) -> None:
        with self._db.connection() as conn:
            self._assert_tenant_access(conn, company_id, tenant_id_of(context))
            self._upsert(conn, company_id, tokens)

    async def forget(self, company_id: str, *, context: Optional[TenantContext] = None) -> None:
        with self._db.connection() as conn:
            self._assert_tenant_access(conn, company_id, tenant_id_of(context))
            conn.execute(f"DELETE FROM {TOKEN_TABLE} WHERE company_id = ?", (company_id,))

    @staticmethod
    def _assert_tenant_access(conn: sqlite3.Connection, company_id: str, tenant_id: Optional[str]) -> None:
        if tenant_id is None:
            return
        row = conn.execute(
            f"SELECT 1 FROM {COMPANY_TABLE} WHERE company_id = ? AND tenant_id = ?",
            (company_id, tenant_id),
        ).fetchone()
        if row is None:
            logger.warning(
                "Rejected token write for company %s outside tenant %s", company_id, tenant_id
            )
            raise CompanyNotFoundError(
                "Company not found for the active tenant.", company_id=company_id
            )


__all__ = ["DatabaseTokenStore", "TenantDatabaseTokenStore"]
