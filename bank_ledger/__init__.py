"""
Bank Ledger

A minimal account ledger: balances, append-only transaction histories,
and deposit / withdrawal / transfer operations over a pluggable account
store. All monetary values use Decimal.
"""

__version__ = "1.0.0"
