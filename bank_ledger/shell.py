"""
Interactive Ledger Shell

Text menu for opening accounts, selecting one and running ledger
operations against it. All rules live in AccountService; the shell only
reads input, calls the core and prints results.
"""

import sys
from typing import Callable, Optional

from .account_service import AccountService
from .accounts import AccountIdGenerator, open_account
from .config import LedgerConfig, get_config
from .currency import format_amount, to_amount
from .errors import InvalidAmount, LedgerError
from .logging_config import setup_logging
from .storage import AccountStore, create_store


MAIN_MENU = [
    "1. Create account",
    "2. Select account",
    "3. List accounts",
    "4. Exit",
]

ACCOUNT_MENU = [
    "1. Deposit",
    "2. Withdraw",
    "3. Transfer to another account",
    "4. Show balance",
    "5. Show statement",
    "6. Switch account",
    "7. Exit",
]


class LedgerShell:
    """Menu loop over an account store"""

    def __init__(
        self,
        store: AccountStore,
        id_generator: AccountIdGenerator,
        input_func: Callable[[str], str] = input
    ):
        self.store = store
        self.id_generator = id_generator
        self._input = input_func
        self.service: Optional[AccountService] = None

    def run(self) -> None:
        print("=== Bank Ledger ===")
        try:
            while True:
                self._show_menu()
                choice = self._ask("Choose an action: ")
                if self.service is None:
                    keep_going = self._handle_main(choice)
                else:
                    keep_going = self._handle_account(choice)
                if not keep_going:
                    break
        except (EOFError, KeyboardInterrupt):
            print("")
        print("Goodbye!")

    def _ask(self, prompt: str) -> str:
        return self._input(prompt).strip()

    def _show_menu(self) -> None:
        if self.service is None:
            print("")
            for line in MAIN_MENU:
                print(line)
        else:
            account = self.service.account
            print(f"\nCurrent account: {account.id} ({account.owner_name})")
            for line in ACCOUNT_MENU:
                print(line)

    def _handle_main(self, choice: str) -> bool:
        if choice == "1":
            self.create_account()
        elif choice == "2":
            self.list_accounts()
            self.select_account(self._ask("Enter account ID: "))
        elif choice == "3":
            self.list_accounts()
        elif choice == "4":
            return False
        else:
            print("Invalid choice. Try again.")
        return True

    def _handle_account(self, choice: str) -> bool:
        if choice == "1":
            amount = self._ask_amount("Enter amount to deposit: ")
            if amount is not None:
                self._run("deposit", lambda: self.service.deposit(amount),
                          "Deposit successful!")
        elif choice == "2":
            amount = self._ask_amount("Enter amount to withdraw: ")
            if amount is not None:
                self._run("withdrawal", lambda: self.service.withdraw(amount),
                          "Withdrawal successful!")
        elif choice == "3":
            self.list_accounts()
            to_account_id = self._ask("Enter recipient account ID: ")
            amount = self._ask_amount("Enter amount to transfer: ")
            if amount is not None:
                self._run("transfer", lambda: self._transfer(to_account_id, amount),
                          "Transfer successful!")
        elif choice == "4":
            print(f"Current balance: {format_amount(self.service.get_balance())}")
        elif choice == "5":
            print(self.service.get_statement())
        elif choice == "6":
            self.service = None
            print("Account deselected")
        elif choice == "7":
            return False
        else:
            print("Invalid choice. Try again.")
        return True

    def _ask_amount(self, prompt: str):
        try:
            return to_amount(self._ask(prompt))
        except InvalidAmount:
            print("Error: invalid amount")
            return None

    def _transfer(self, to_account_id: str, amount) -> None:
        to_account = self.store.load_account(to_account_id)
        self.service.transfer(to_account, amount)

    def _run(self, operation: str, action: Callable[[], None], success: str) -> None:
        try:
            action()
        except LedgerError as e:
            print(f"Error during {operation}: {e}")
        else:
            print(success)

    def create_account(self) -> None:
        owner_name = self._ask("Enter account owner name: ")
        try:
            account = open_account(owner_name, self.store, self.id_generator)
        except LedgerError as e:
            print(f"Error creating account: {e}")
        else:
            print(f"Account created! ID: {account.id}")

    def select_account(self, account_id: str) -> None:
        try:
            account = self.store.load_account(account_id)
        except LedgerError as e:
            print(f"Error: {e}")
        else:
            self.service = AccountService(account, self.store)
            print(f"Account {account.id} selected")

    def list_accounts(self) -> None:
        try:
            accounts = self.store.get_all_accounts()
        except LedgerError as e:
            print(f"Error listing accounts: {e}")
            return

        if not accounts:
            print("No accounts found")
            return

        print("\nAccounts:")
        for account in accounts:
            print(f"ID: {account.id}, Owner: {account.owner_name}, "
                  f"Balance: {format_amount(account.balance)}")


def build_shell(config: Optional[LedgerConfig] = None,
                input_func: Callable[[str], str] = input) -> LedgerShell:
    """Create a shell over the configured store, continuing existing account ids"""
    config = config or get_config()
    store = create_store(config)
    id_generator = AccountIdGenerator.from_existing(
        store.account_ids(),
        prefix=config.account_id_prefix,
        width=config.account_id_width,
    )
    return LedgerShell(store, id_generator, input_func=input_func)


def main() -> int:
    config = get_config()
    setup_logging(config.log_level, log_format=config.log_format, log_file=config.log_file)
    try:
        shell = build_shell(config)
    except LedgerError as e:
        print(f"Failed to open account store: {e}", file=sys.stderr)
        return 1
    try:
        shell.run()
    finally:
        shell.store.close()
    return 0
