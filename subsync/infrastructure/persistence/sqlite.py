import json
import logging
import secrets
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ...domain.errors import AccountNotFoundError, StoreError
from ...domain.models import Account
from ...domain.ports.persistence import AccountRepository

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def new_tracking_id() -> str:
    return secrets.token_hex(16)


class SQLiteAccountStore(AccountRepository):
    """SQLite-backed account store. Each account is one JSON document keyed by email."""

    def __init__(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._initialize()

    def _initialize(self) -> None:
        with self._conn:
            self._conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS accounts (
                    email TEXT PRIMARY KEY,
                    tracking_id TEXT NOT NULL,
                    customer_id TEXT,
                    document TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_accounts_customer_id
                    ON accounts(customer_id);
                """
            )

    def close(self) -> None:
        self._conn.close()

    # AccountRepository API --------------------------------------------------
    def get_by_email(self, email: str, create: bool = False) -> Account:
        key = normalize_email(email)
        account = self._fetch(key)
        if account is not None:
            return account
        if not create:
            raise AccountNotFoundError(key)

        account = Account(email=key, tracking_id=new_tracking_id())
        now = _now()
        try:
            with self._lock, self._conn:
                # A concurrent request may have created the row first; keep theirs.
                self._conn.execute(
                    """
                    INSERT OR IGNORE INTO accounts (
                        email, tracking_id, customer_id, document, created_at, updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (key, account.tracking_id, None, _dump(account), now, now),
                )
        except sqlite3.Error as exc:
            raise StoreError(f"Unable to create account {key}: {exc}") from exc
        logger.info("Created account record for %s", key)
        return self._fetch(key) or account

    def put(self, account: Account) -> None:
        key = normalize_email(account.email)
        customer_id = account.customer.id if account.customer else None
        now = _now()
        try:
            with self._lock, self._conn:
                self._conn.execute(
                    """
                    INSERT INTO accounts (
                        email, tracking_id, customer_id, document, created_at, updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?)
                    ON CONFLICT(email) DO UPDATE SET
                        tracking_id = excluded.tracking_id,
                        customer_id = excluded.customer_id,
                        document = excluded.document,
                        updated_at = excluded.updated_at
                    """,
                    (key, account.tracking_id, customer_id, _dump(account), now, now),
                )
        except sqlite3.Error as exc:
            raise StoreError(f"Unable to store account {key}: {exc}") from exc

    # -----------------------------------------------------------------------
    def _fetch(self, key: str) -> Optional[Account]:
        try:
            with self._lock:
                cur = self._conn.execute("SELECT document FROM accounts WHERE email = ?", (key,))
                row = cur.fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"Unable to read account {key}: {exc}") from exc
        if not row:
            return None
        return Account.from_dict(json.loads(row["document"]))


def _dump(account: Account) -> str:
    return json.dumps(account.to_dict(), ensure_ascii=False)


def _now() -> str:
    return datetime.now(tz=timezone.utc).isoformat()
