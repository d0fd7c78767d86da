"""
Account Service Module

Applies deposits, withdrawals and transfers to one bound account while
keeping its balance non-negative and its history append-only. Every
mutation is followed by a save through the account store.

Failures are never rolled back: if a save raises StorageError the
in-memory account has already been changed, and a transfer whose
destination save fails leaves the source debited and saved. Callers
reconcile by saving again.
"""

from decimal import Decimal
from typing import List, Optional

from .accounts import Account, Clock, utc_now
from .currency import AmountLike, format_amount, to_amount
from .errors import InsufficientFunds, InvalidAmount, LedgerError, SameAccountTransfer
from .logging_config import get_logger, log_action
from .statements import render_statement
from .storage import AccountStore
from .transactions import Transaction, TransactionType


class AccountService:
    """
    Ledger operations against a single bound account
    """

    def __init__(self, account: Account, store: AccountStore, clock: Optional[Clock] = None):
        self._account = account
        self._store = store
        self._clock = clock or utc_now
        self.logger = get_logger("bank_ledger.account_service")

    @property
    def account(self) -> Account:
        """The bound account"""
        return self._account

    def deposit(self, amount: AmountLike) -> None:
        """
        Add funds to the bound account

        Raises:
            InvalidAmount: if amount is not positive
            StorageError: if the account cannot be saved
        """
        amt = self._validate_amount("deposit", amount)

        self._apply(self._account, amt, TransactionType.DEPOSIT,
                    f"Deposit of {format_amount(amt)}")
        self._store.save_account(self._account)

        self._log_committed("deposit", amt)

    def withdraw(self, amount: AmountLike) -> None:
        """
        Remove funds from the bound account

        Raises:
            InvalidAmount: if amount is not positive
            InsufficientFunds: if amount exceeds the balance
            StorageError: if the account cannot be saved
        """
        amt = self._validate_amount("withdraw", amount)
        self._check_funds("withdraw", amt)

        self._apply(self._account, -amt, TransactionType.WITHDRAW,
                    f"Withdrawal of {format_amount(amt)}")
        self._store.save_account(self._account)

        self._log_committed("withdraw", amt)

    def transfer(self, to_account: Account, amount: AmountLike) -> None:
        """
        Move funds from the bound account to another account

        Checks run in order: amount, funds, then same account. The
        source is saved before the destination; if the destination save
        fails its StorageError propagates with the source already saved.

        Raises:
            InvalidAmount: if amount is not positive
            InsufficientFunds: if amount exceeds the source balance
            SameAccountTransfer: if to_account is the bound account
            StorageError: if either account cannot be saved
        """
        amt = self._validate_amount("transfer", amount)
        self._check_funds("transfer", amt)

        if to_account.id == self._account.id:
            raise self._rejected("transfer", SameAccountTransfer(
                f"Cannot transfer from account {self._account.id} to itself"
            ))

        self._apply(self._account, -amt, TransactionType.TRANSFER,
                    f"Transfer to account {to_account.id} of {format_amount(amt)}")
        self._apply(to_account, amt, TransactionType.TRANSFER,
                    f"Transfer from account {self._account.id} of {format_amount(amt)}")

        self._store.save_account(self._account)
        self._store.save_account(to_account)

        self._log_committed("transfer", amt, to_account=to_account.id)

    def get_balance(self) -> Decimal:
        return self._account.balance

    def get_transactions(self) -> List[Transaction]:
        """Transactions in chronological order"""
        return list(self._account.transactions)

    def get_statement(self) -> str:
        return render_statement(self._account.transactions)

    def _apply(self, account: Account, delta: Decimal,
               transaction_type: TransactionType, message: str) -> None:
        """Change the balance and append the matching transaction"""
        now = self._clock()
        account.balance = account.balance + delta
        account.transactions.append(Transaction(
            transaction_type=transaction_type,
            amount=abs(delta),
            timestamp=now,
            message=message,
        ))
        account.updated_at = now

    def _validate_amount(self, action: str, amount: AmountLike) -> Decimal:
        try:
            amt = to_amount(amount)
        except InvalidAmount as e:
            raise self._rejected(action, e)
        if amt <= Decimal('0'):
            raise self._rejected(action, InvalidAmount(
                f"Amount must be positive, got {amount}"
            ))
        return amt

    def _check_funds(self, action: str, amount: Decimal) -> None:
        if self._account.balance < amount:
            raise self._rejected(action, InsufficientFunds(
                f"Insufficient funds: available {format_amount(self._account.balance)}, "
                f"requested {format_amount(amount)}"
            ))

    def _rejected(self, action: str, error: LedgerError) -> LedgerError:
        log_action(
            self.logger, "warning", f"{action.capitalize()} rejected: {error}",
            action=action, resource=f"account:{self._account.id}",
            extra={"error": type(error).__name__}
        )
        return error

    def _log_committed(self, action: str, amount: Decimal, **details) -> None:
        extra = {
            "account_id": self._account.id,
            "amount": str(amount),
            "balance": str(self._account.balance),
        }
        extra.update(details)
        log_action(
            self.logger, "info", f"{action.capitalize()} committed",
            action=action, resource=f"account:{self._account.id}",
            extra=extra
        )
