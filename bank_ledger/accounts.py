"""
Account Management Module

Account entity, account id generation and account opening. Accounts are
passive data: balances and histories change only through AccountService.
"""

from decimal import Decimal
from datetime import datetime, timezone
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, TYPE_CHECKING
import re

from .errors import InvalidOwnerName
from .transactions import Transaction
from .logging_config import get_logger, log_action

if TYPE_CHECKING:
    from .storage import AccountStore


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock"""
    return datetime.now(timezone.utc)


@dataclass
class Account:
    """
    Ledger account with a non-negative balance and an append-only,
    chronologically ordered transaction history
    """
    id: str
    owner_name: str
    balance: Decimal = Decimal('0.00')
    transactions: List[Transaction] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        if not isinstance(self.balance, Decimal):
            self.balance = Decimal(str(self.balance))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage"""
        return {
            'id': self.id,
            'owner_name': self.owner_name,
            'balance': str(self.balance),
            'transactions': [t.to_dict() for t in self.transactions],
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Account':
        """Create instance from dictionary"""
        return cls(
            id=data['id'],
            owner_name=data['owner_name'],
            balance=Decimal(data['balance']),
            transactions=[Transaction.from_dict(t) for t in data.get('transactions', [])],
            created_at=datetime.fromisoformat(data['created_at']),
            updated_at=datetime.fromisoformat(data['updated_at']),
        )


class AccountIdGenerator:
    """
    Monotonic account id source: ACC000001, ACC000002, ...

    Ids are unique only within one generator. To stay unique across
    restarts, seed it from the ids already in the store.
    """

    def __init__(self, start: int = 1, prefix: str = "ACC", width: int = 6):
        if start < 1:
            raise ValueError("Account id counter must start at 1 or above")
        self.prefix = prefix
        self.width = width
        self._next = start

    @classmethod
    def from_existing(
        cls,
        account_ids: Iterable[str],
        prefix: str = "ACC",
        width: int = 6
    ) -> 'AccountIdGenerator':
        """Create a generator that continues after the highest existing id"""
        pattern = re.compile(rf"^{re.escape(prefix)}(\d+)$")
        highest = 0
        for account_id in account_ids:
            match = pattern.match(account_id)
            if match:
                highest = max(highest, int(match.group(1)))
        return cls(start=highest + 1, prefix=prefix, width=width)

    def next_id(self) -> str:
        account_id = f"{self.prefix}{self._next:0{self.width}d}"
        self._next += 1
        return account_id


def open_account(
    owner_name: str,
    store: 'AccountStore',
    id_generator: AccountIdGenerator,
    clock: Optional[Clock] = None
) -> Account:
    """
    Create a new account with a zero balance and persist it

    Args:
        owner_name: Account owner; surrounding whitespace is stripped
        store: Store the new account is saved to
        id_generator: Source of the new account id
        clock: Timestamp source (UTC now by default)

    Returns:
        The saved Account

    Raises:
        InvalidOwnerName: if the name is blank
        StorageError: if the store cannot save the account
    """
    owner_name = (owner_name or "").strip()
    if not owner_name:
        raise InvalidOwnerName("Owner name must not be empty")

    now = (clock or utc_now)()
    account = Account(
        id=id_generator.next_id(),
        owner_name=owner_name,
        balance=Decimal('0.00'),
        created_at=now,
        updated_at=now,
    )
    store.save_account(account)

    log_action(
        get_logger("bank_ledger.accounts"), "info", "Account opened",
        action="open_account", resource=f"account:{account.id}",
        extra={"account_id": account.id, "owner_name": owner_name}
    )
    return account
