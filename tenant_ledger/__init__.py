"""
Tenant Ledger

A multi-tenant banking ledger with account and transaction management and
asynchronous statement generation. All monetary values use Decimal.
"""

__version__ = "1.0.0"
