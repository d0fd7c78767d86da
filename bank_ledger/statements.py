"""
Statement rendering for an account's transaction history.
"""

from typing import Sequence

from .currency import format_amount
from .transactions import Transaction


EMPTY_STATEMENT = "Transaction history is empty"
STATEMENT_HEADER = "Date/Time | Type | Amount | Description"
SEPARATOR = "-" * 60
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_transaction(transaction: Transaction) -> str:
    return " | ".join([
        transaction.timestamp.strftime(TIMESTAMP_FORMAT),
        transaction.transaction_type.value,
        format_amount(transaction.amount),
        transaction.message,
    ])


def render_statement(transactions: Sequence[Transaction]) -> str:
    """
    Render transactions in the order given: a header line, a separator
    and one line per transaction. An empty history renders EMPTY_STATEMENT.
    """
    if not transactions:
        return EMPTY_STATEMENT

    lines = [STATEMENT_HEADER, SEPARATOR]
    lines.extend(format_transaction(t) for t in transactions)
    return "\n".join(lines)
