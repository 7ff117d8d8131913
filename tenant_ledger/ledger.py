"""
Ledger Store

Read-side facade over accounts and transactions used by background
statement processing. Every query takes the tenant id explicitly.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from .accounts import Account, AccountManager
from .transactions import Transaction, TransactionProcessor


class LedgerStore:
    """Tenant-scoped account and transaction lookups"""

    def __init__(self, account_manager: AccountManager, transaction_processor: TransactionProcessor):
        self.account_manager = account_manager
        self.transaction_processor = transaction_processor

    def find_account(self, account_id: str, tenant_id: str) -> Optional[Account]:
        return self.account_manager.get_account(account_id, tenant_id)

    def find_transactions(
        self,
        account_id: str,
        tenant_id: str,
        start: datetime,
        end: datetime
    ) -> List[Transaction]:
        """Window transactions ordered by timestamp, both bounds inclusive"""
        return self.transaction_processor.find_transactions(account_id, tenant_id, start, end)

    def snapshot(
        self,
        account_id: str,
        tenant_id: str,
        start: datetime,
        end: datetime
    ) -> Tuple[Optional[Account], List[Transaction]]:
        """
        Account and its window transactions read as one consistent view.

        Balance changes take the same lock, so no transaction can land
        between the two reads. Transactions are empty when the account is
        missing.
        """
        with self.account_manager.balance_lock:
            account = self.find_account(account_id, tenant_id)
            if account is None:
                return None, []
            return account, self.find_transactions(account_id, tenant_id, start, end)
