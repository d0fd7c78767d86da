"""
Ledger Error Module

Typed exceptions for every expected failure of a ledger operation.
Callers catch LedgerError to handle any of them.
"""

from typing import Optional


class LedgerError(Exception):
    """Base class for all ledger errors"""
    pass


class InvalidAmount(LedgerError):
    """Amount is zero, negative or not a number"""
    pass


class InsufficientFunds(LedgerError):
    """Withdrawal or transfer exceeds the available balance"""
    pass


class SameAccountTransfer(LedgerError):
    """Transfer target is the source account"""
    pass


class InvalidOwnerName(LedgerError):
    """Owner name is empty or blank"""
    pass


class AccountNotFound(LedgerError):
    """No account is stored under the requested id"""

    def __init__(self, account_id: str, message: Optional[str] = None):
        self.account_id = account_id
        super().__init__(message or f"Account {account_id} not found")


class StorageError(LedgerError):
    """The storage backend failed to read or write"""
    pass
