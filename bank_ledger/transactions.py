"""
Transaction Records Module

Immutable records appended to an account's history by every committed
deposit, withdrawal and transfer. Records are never edited or removed.
"""

from decimal import Decimal
from datetime import datetime
from dataclasses import dataclass
from typing import Any, Dict
from enum import Enum


class TransactionType(Enum):
    """Types of ledger transactions"""
    DEPOSIT = "DEPOSIT"
    WITHDRAW = "WITHDRAW"
    TRANSFER = "TRANSFER"


@dataclass(frozen=True)
class Transaction:
    """
    A single entry in an account's history.
    For transfers the message names the counterparty account.
    """
    transaction_type: TransactionType
    amount: Decimal
    timestamp: datetime
    message: str

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', Decimal(str(self.amount)))

        if self.amount <= Decimal('0'):
            raise ValueError("Transaction amount must be positive")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage"""
        return {
            'transaction_type': self.transaction_type.value,
            'amount': str(self.amount),
            'timestamp': self.timestamp.isoformat(),
            'message': self.message,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        """Create instance from dictionary"""
        return cls(
            transaction_type=TransactionType(data['transaction_type']),
            amount=Decimal(data['amount']),
            timestamp=datetime.fromisoformat(data['timestamp']),
            message=data['message'],
        )
