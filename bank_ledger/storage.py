"""
Account Storage Module

Provides the abstract account store interface and implementations for
in-memory (testing), JSON file and SQLite persistence. All monetary
values are stored as Decimal strings.
"""

from abc import ABC, abstractmethod
from decimal import InvalidOperation
from typing import Dict, List, Optional, Any, Union
from datetime import datetime, timezone
from pathlib import Path
import sqlite3
import json

from .accounts import Account
from .config import LedgerConfig, get_config
from .errors import AccountNotFound, StorageError
from .logging_config import get_logger


logger = get_logger("bank_ledger.storage")


def _decode_account(data: Dict[str, Any]) -> Account:
    """Rebuild an Account from its stored form"""
    try:
        return Account.from_dict(data)
    except (KeyError, TypeError, ValueError, InvalidOperation) as e:
        logger.error(f"Corrupt account record: {e}")
        raise StorageError(f"Corrupt account record: {e}") from e


class AccountStore(ABC):
    """Abstract interface for account storage backends"""

    @abstractmethod
    def save_account(self, account: Account) -> None:
        """Insert or replace the account under its id"""
        pass

    @abstractmethod
    def load_account(self, account_id: str) -> Account:
        """Load an account, raising AccountNotFound if it does not exist"""
        pass

    @abstractmethod
    def get_all_accounts(self) -> List[Account]:
        """Load every stored account"""
        pass

    def account_ids(self) -> List[str]:
        """Ids of every stored account"""
        return [account.id for account in self.get_all_accounts()]

    def close(self) -> None:
        """Close storage connection (default no-op)"""
        pass


class InMemoryAccountStore(AccountStore):
    """
    In-memory store for testing and interactive sessions.

    Accounts are kept in their serialized form, so every load returns a
    fresh Account and callers never share state through the store.
    No locking: single-threaded use only.
    """

    def __init__(self):
        self._data: Dict[str, Dict[str, Any]] = {}

    def save_account(self, account: Account) -> None:
        self._data[account.id] = json.loads(json.dumps(account.to_dict()))

    def load_account(self, account_id: str) -> Account:
        record = self._data.get(account_id)
        if record is None:
            raise AccountNotFound(account_id)
        return _decode_account(json.loads(json.dumps(record)))

    def get_all_accounts(self) -> List[Account]:
        return [_decode_account(json.loads(json.dumps(record)))
                for record in self._data.values()]

    def account_ids(self) -> List[str]:
        return list(self._data)


class JsonFileAccountStore(AccountStore):
    """
    File-backed store keeping every account in one JSON document.

    The whole document is rewritten on each save.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._data: Dict[str, Dict[str, Any]] = self._read()

    def _read(self) -> Dict[str, Dict[str, Any]]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read account file {self.path}: {e}")
            raise StorageError(f"Failed to read {self.path}: {e}") from e

        accounts = document.get("accounts") if isinstance(document, dict) else None
        if not isinstance(accounts, dict):
            raise StorageError(f"Malformed account file {self.path}")
        return accounts

    def _write(self, data: Dict[str, Dict[str, Any]]) -> None:
        try:
            with self.path.open("w", encoding="utf-8") as f:
                json.dump({"accounts": data}, f, indent=2)
        except OSError as e:
            logger.error(f"Failed to write account file {self.path}: {e}")
            raise StorageError(f"Failed to write {self.path}: {e}") from e

    def save_account(self, account: Account) -> None:
        data = dict(self._data)
        data[account.id] = account.to_dict()
        self._write(data)
        # Only update the cache once the file is written
        self._data = data

    def load_account(self, account_id: str) -> Account:
        record = self._data.get(account_id)
        if record is None:
            raise AccountNotFound(account_id)
        return _decode_account(json.loads(json.dumps(record)))

    def get_all_accounts(self) -> List[Account]:
        return [_decode_account(json.loads(json.dumps(record)))
                for record in self._data.values()]

    def account_ids(self) -> List[str]:
        return list(self._data)


class SQLiteAccountStore(AccountStore):
    """SQLite store implementation for persistence"""

    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        self.db_path = str(db_path)
        self._connection = None
        try:
            self._connection = sqlite3.connect(self.db_path)
            self._connection.row_factory = sqlite3.Row
            self._ensure_table()
        except sqlite3.Error as e:
            logger.error(f"Failed to open SQLite store {self.db_path}: {e}")
            self.close()
            raise StorageError(f"Failed to open {self.db_path}: {e}") from e

    def _ensure_table(self) -> None:
        """Ensure accounts table exists"""
        self._connection.execute("""
            CREATE TABLE IF NOT EXISTS accounts (
                id TEXT PRIMARY KEY,
                data TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        self._connection.execute("""
            CREATE INDEX IF NOT EXISTS idx_accounts_created_at
            ON accounts(created_at)
        """)
        self._connection.commit()

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        if self._connection is None:
            raise StorageError("SQLite store is closed")
        try:
            return self._connection.execute(sql, params)
        except sqlite3.Error as e:
            logger.error(f"SQLite error: {e}")
            raise StorageError(f"SQLite error: {e}") from e

    def save_account(self, account: Account) -> None:
        now = datetime.now(timezone.utc).isoformat()
        data_json = json.dumps(account.to_dict())

        self._execute("""
            INSERT OR REPLACE INTO accounts (id, data, created_at, updated_at)
            VALUES (?, ?, ?, ?)
        """, (account.id, data_json, account.created_at.isoformat(), now))
        try:
            self._connection.commit()
        except sqlite3.Error as e:
            logger.error(f"SQLite commit failed: {e}")
            raise StorageError(f"SQLite commit failed: {e}") from e

    def load_account(self, account_id: str) -> Account:
        row = self._execute("""
            SELECT data FROM accounts WHERE id = ?
        """, (account_id,)).fetchone()
        if row is None:
            raise AccountNotFound(account_id)
        return _decode_account(json.loads(row['data']))

    def get_all_accounts(self) -> List[Account]:
        rows = self._execute("""
            SELECT data FROM accounts ORDER BY created_at, id
        """).fetchall()
        return [_decode_account(json.loads(row['data'])) for row in rows]

    def account_ids(self) -> List[str]:
        rows = self._execute("SELECT id FROM accounts ORDER BY created_at, id").fetchall()
        return [row['id'] for row in rows]

    def close(self) -> None:
        """Close SQLite connection"""
        if self._connection is not None:
            self._connection.close()
            self._connection = None


def create_store(config: Optional[LedgerConfig] = None) -> AccountStore:
    """Build the store selected by configuration"""
    if config is None:
        config = get_config()

    backend = config.storage_backend
    if backend == "memory":
        return InMemoryAccountStore()
    if backend == "json":
        return JsonFileAccountStore(config.json_path)
    if backend == "sqlite":
        return SQLiteAccountStore(config.database_path)
    raise ValueError(f"Unknown storage backend: {backend}")
