"""
Test suite for the account service

Tests deposit, withdrawal, transfer, balance and statement operations,
including validation order and partial transfer failure.
"""

import pytest
from decimal import Decimal
from datetime import datetime, timezone, timedelta

from bank_ledger.account_service import AccountService
from bank_ledger.accounts import Account, AccountIdGenerator, open_account
from bank_ledger.errors import (
    InsufficientFunds, InvalidAmount, SameAccountTransfer, StorageError
)
from bank_ledger.statements import EMPTY_STATEMENT, SEPARATOR, STATEMENT_HEADER
from bank_ledger.storage import InMemoryAccountStore
from bank_ledger.transactions import TransactionType


START = datetime(2024, 1, 15, 10, 30, 0, tzinfo=timezone.utc)


class TickingClock:
    """Clock advancing one second per reading"""

    def __init__(self, start: datetime = START):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now += timedelta(seconds=1)
        return current


class FailingStore(InMemoryAccountStore):
    """In-memory store that refuses to save selected account ids"""

    def __init__(self):
        super().__init__()
        self.fail_ids = set()

    def save_account(self, account: Account) -> None:
        if account.id in self.fail_ids:
            raise StorageError(f"Disk full while saving {account.id}")
        super().save_account(account)


class TestAccountService:
    """Test AccountService operations"""

    def setup_method(self):
        """Set up test fixtures"""
        self.store = FailingStore()
        self.generator = AccountIdGenerator()
        self.clock = TickingClock()
        self.account_a = open_account("Alice", self.store, self.generator, clock=self.clock)
        self.account_b = open_account("Bob", self.store, self.generator, clock=self.clock)
        self.service = AccountService(self.account_a, self.store, clock=self.clock)

    def test_bound_account(self):
        assert self.service.account is self.account_a

    # Deposits

    def test_deposit(self):
        """Test deposit increases balance and appends one DEPOSIT record"""
        self.service.deposit(Decimal('100.00'))

        assert self.service.get_balance() == Decimal('100.00')
        transactions = self.service.get_transactions()
        assert len(transactions) == 1
        assert transactions[0].transaction_type == TransactionType.DEPOSIT
        assert transactions[0].amount == Decimal('100.00')
        assert transactions[0].message == "Deposit of 100.00"

    def test_deposit_is_persisted(self):
        self.service.deposit("25.50")

        stored = self.store.load_account(self.account_a.id)
        assert stored.balance == Decimal('25.50')
        assert len(stored.transactions) == 1

    def test_deposit_accepts_numeric_types(self):
        self.service.deposit(10)
        self.service.deposit(0.1)
        self.service.deposit("5")

        assert self.service.get_balance() == Decimal('15.10')

    @pytest.mark.parametrize("amount", [
        Decimal('0'), Decimal('-10.00'), -1, "0.00", "abc", Decimal('1e30'), Decimal('1.005'),
    ])
    def test_deposit_invalid_amount(self, amount):
        """Test unusable amounts are rejected without side effects"""
        with pytest.raises(InvalidAmount):
            self.service.deposit(amount)

        assert self.service.get_balance() == Decimal('0.00')
        assert self.service.get_transactions() == []

    def test_deposit_storage_failure_keeps_mutation(self):
        """Test a failed save surfaces StorageError after the in-memory change"""
        self.store.fail_ids.add(self.account_a.id)

        with pytest.raises(StorageError):
            self.service.deposit(Decimal('30.00'))

        assert self.service.get_balance() == Decimal('30.00')
        assert len(self.service.get_transactions()) == 1
        assert self.store.load_account(self.account_a.id).balance == Decimal('0.00')

        # Retrying the save reconciles the store
        self.store.fail_ids.clear()
        self.store.save_account(self.account_a)
        assert self.store.load_account(self.account_a.id).balance == Decimal('30.00')

    # Withdrawals

    def test_withdraw(self):
        """Test withdrawal decreases balance and appends one WITHDRAW record"""
        self.service.deposit(Decimal('100.00'))
        self.service.withdraw(Decimal('30.00'))

        assert self.service.get_balance() == Decimal('70.00')
        last = self.service.get_transactions()[-1]
        assert last.transaction_type == TransactionType.WITHDRAW
        assert last.amount == Decimal('30.00')
        assert self.store.load_account(self.account_a.id).balance == Decimal('70.00')

    def test_withdraw_entire_balance(self):
        self.service.deposit(Decimal('50.00'))
        self.service.withdraw(Decimal('50.00'))

        assert self.service.get_balance() == Decimal('0.00')

    def test_withdraw_insufficient_funds(self):
        """Test overdrawing leaves the balance and history unchanged"""
        self.service.deposit(Decimal('100.00'))

        with pytest.raises(InsufficientFunds):
            self.service.withdraw(Decimal('150.00'))

        assert self.service.get_balance() == Decimal('100.00')
        assert len(self.service.get_transactions()) == 1

    @pytest.mark.parametrize("amount", [Decimal('0'), Decimal('-5.00')])
    def test_withdraw_invalid_amount(self, amount):
        self.service.deposit(Decimal('100.00'))

        with pytest.raises(InvalidAmount):
            self.service.withdraw(amount)

        assert self.service.get_balance() == Decimal('100.00')
        assert len(self.service.get_transactions()) == 1

    def test_invalid_amount_checked_before_funds(self):
        """Test a negative withdrawal on an empty account is InvalidAmount"""
        with pytest.raises(InvalidAmount):
            self.service.withdraw(Decimal('-1.00'))

    # Transfers

    def test_transfer(self):
        """Test transfer moves funds and records both sides"""
        self.service.deposit(Decimal('100.00'))
        self.service.transfer(self.account_b, Decimal('40.00'))

        assert self.account_a.balance == Decimal('60.00')
        assert self.account_b.balance == Decimal('40.00')

        out = self.account_a.transactions[-1]
        assert out.transaction_type == TransactionType.TRANSFER
        assert out.amount == Decimal('40.00')
        assert self.account_b.id in out.message

        incoming = self.account_b.transactions
        assert len(incoming) == 1
        assert incoming[0].transaction_type == TransactionType.TRANSFER
        assert incoming[0].amount == Decimal('40.00')
        assert self.account_a.id in incoming[0].message

    def test_transfer_persists_both_accounts(self):
        self.service.deposit(Decimal('100.00'))
        self.service.transfer(self.account_b, Decimal('40.00'))

        assert self.store.load_account(self.account_a.id).balance == Decimal('60.00')
        assert self.store.load_account(self.account_b.id).balance == Decimal('40.00')

    def test_transfer_to_loaded_account(self):
        """Test transferring to an account loaded from the store by id"""
        self.service.deposit(Decimal('100.00'))
        recipient = self.store.load_account(self.account_b.id)

        self.service.transfer(recipient, Decimal('25.00'))

        assert self.store.load_account(self.account_b.id).balance == Decimal('25.00')

    def test_transfer_insufficient_funds(self):
        self.service.deposit(Decimal('10.00'))

        with pytest.raises(InsufficientFunds):
            self.service.transfer(self.account_b, Decimal('10.01'))

        assert self.account_a.balance == Decimal('10.00')
        assert self.account_b.balance == Decimal('0.00')
        assert self.account_b.transactions == []

    @pytest.mark.parametrize("amount", [Decimal('0'), Decimal('-40.00')])
    def test_transfer_invalid_amount(self, amount):
        self.service.deposit(Decimal('100.00'))

        with pytest.raises(InvalidAmount):
            self.service.transfer(self.account_b, amount)

        assert self.account_a.balance == Decimal('100.00')
        assert self.account_b.balance == Decimal('0.00')

    def test_transfer_to_same_account(self):
        """Test a self transfer with sufficient funds is rejected without mutation"""
        self.service.deposit(Decimal('100.00'))
        same = self.store.load_account(self.account_a.id)

        with pytest.raises(SameAccountTransfer):
            self.service.transfer(same, Decimal('40.00'))

        assert self.account_a.balance == Decimal('100.00')
        assert len(self.account_a.transactions) == 1
        assert same.balance == Decimal('100.00')

    def test_same_account_checked_after_funds(self):
        """Test a self transfer without funds reports InsufficientFunds"""
        with pytest.raises(InsufficientFunds):
            self.service.transfer(self.account_a, Decimal('40.00'))

    def test_same_account_checked_after_amount(self):
        with pytest.raises(InvalidAmount):
            self.service.transfer(self.account_a, Decimal('0'))

    def test_transfer_destination_save_failure(self):
        """Test the source stays debited and saved when the destination save fails"""
        self.service.deposit(Decimal('100.00'))
        self.store.fail_ids.add(self.account_b.id)

        with pytest.raises(StorageError, match=self.account_b.id):
            self.service.transfer(self.account_b, Decimal('40.00'))

        assert self.store.load_account(self.account_a.id).balance == Decimal('60.00')
        assert self.store.load_account(self.account_b.id).balance == Decimal('0.00')
        assert self.account_b.balance == Decimal('40.00')

    def test_transfer_source_save_failure_skips_destination(self):
        """Test the destination is not saved when the source save fails"""
        self.service.deposit(Decimal('100.00'))
        self.store.fail_ids.add(self.account_a.id)

        with pytest.raises(StorageError, match=self.account_a.id):
            self.service.transfer(self.account_b, Decimal('40.00'))

        assert self.store.load_account(self.account_a.id).balance == Decimal('100.00')
        assert self.store.load_account(self.account_b.id).balance == Decimal('0.00')

    # Scenario

    def test_worked_example(self):
        """Test deposit, rejected withdrawal and transfer in sequence"""
        self.service.deposit(Decimal('100'))
        assert self.service.get_balance() == Decimal('100.00')
        assert len(self.service.get_transactions()) == 1

        with pytest.raises(InsufficientFunds):
            self.service.withdraw(Decimal('150'))
        assert self.service.get_balance() == Decimal('100.00')

        self.service.transfer(self.account_b, Decimal('40'))
        assert self.account_a.balance == Decimal('60.00')
        assert self.account_b.balance == Decimal('40.00')
        assert len(self.account_a.transactions) == 2
        assert len(self.account_b.transactions) == 1

    def test_balance_never_negative(self):
        """Test the balance stays non-negative across mixed operations"""
        operations = [
            ("deposit", "50"), ("withdraw", "20"), ("withdraw", "40"),
            ("transfer", "30"), ("transfer", "1"), ("deposit", "5"),
            ("withdraw", "5"), ("withdraw", "0.01"),
        ]
        for name, amount in operations:
            try:
                if name == "transfer":
                    self.service.transfer(self.account_b, amount)
                else:
                    getattr(self.service, name)(amount)
            except InsufficientFunds:
                pass
            assert self.account_a.balance >= Decimal('0')
            assert self.account_b.balance >= Decimal('0')

        assert self.account_a.balance + self.account_b.balance == Decimal('30.00')

    # Statements

    def test_empty_statement(self):
        assert self.service.get_statement() == EMPTY_STATEMENT

    def test_statement_lines_in_order(self):
        """Test a statement has a header, a separator and one line per transaction"""
        self.service.deposit(Decimal('100.00'))
        self.service.withdraw(Decimal('20.00'))
        self.service.transfer(self.account_b, Decimal('30.00'))

        lines = self.service.get_statement().splitlines()

        assert len(lines) == 5
        assert lines[0] == STATEMENT_HEADER
        assert lines[1] == SEPARATOR
        assert lines[2] == "2024-01-15 10:30:02 | DEPOSIT | 100.00 | Deposit of 100.00"
        assert lines[3] == "2024-01-15 10:30:03 | WITHDRAW | 20.00 | Withdrawal of 20.00"
        assert lines[4].startswith("2024-01-15 10:30:04 | TRANSFER | 30.00 | ")
        assert self.account_b.id in lines[4]

    def test_get_transactions_returns_copy(self):
        self.service.deposit(Decimal('1.00'))

        transactions = self.service.get_transactions()
        transactions.clear()

        assert len(self.service.get_transactions()) == 1
