"""
Transaction Processing Module

Deposits and withdrawals against tenant-owned accounts. Each transaction
updates the account balance and is recorded with its timestamp so that
statements can later be reconstructed for any window.
"""

from decimal import Decimal
from datetime import datetime
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union
from enum import Enum
import uuid

from .accounts import AccountManager
from .exceptions import InsufficientBalanceError, InvalidRequestError
from .logging_config import get_logger, log_action
from .money import to_amount
from .storage import StorageInterface, StorageRecord, parse_datetime, utcnow


class TransactionType(Enum):
    """Types of ledger transactions"""
    DEPOSIT = "DEPOSIT"        # Money added to the account
    WITHDRAWAL = "WITHDRAWAL"  # Money removed from the account

    @classmethod
    def parse(cls, value: Union[str, 'TransactionType']) -> 'TransactionType':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise InvalidRequestError("Invalid transaction type. Use DEPOSIT or WITHDRAWAL")


@dataclass
class Transaction(StorageRecord):
    """A single deposit or withdrawal"""
    account_id: str
    transaction_type: TransactionType
    amount: Decimal
    timestamp: datetime

    def __post_init__(self):
        self.amount = to_amount(self.amount)
        if self.amount <= 0:
            raise InvalidRequestError("Amount must be positive")

    @property
    def is_deposit(self) -> bool:
        return self.transaction_type == TransactionType.DEPOSIT

    @property
    def signed_amount(self) -> Decimal:
        """Effect on the account balance"""
        return self.amount if self.is_deposit else -self.amount

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        return cls(
            id=data['id'],
            tenant_id=data['tenant_id'],
            created_at=parse_datetime(data['created_at']),
            updated_at=parse_datetime(data['updated_at']),
            account_id=data['account_id'],
            transaction_type=TransactionType(data['transaction_type']),
            amount=Decimal(data['amount']),
            timestamp=parse_datetime(data['timestamp'])
        )


def _chronological(transactions: List[Transaction]) -> List[Transaction]:
    return sorted(transactions, key=lambda t: (t.timestamp, t.created_at))


class TransactionProcessor:
    """
    Applies deposits and withdrawals to account balances.

    The sufficient-balance check is a read-then-write threshold comparison,
    not a reservation. It is serialized by the account manager's balance lock,
    which only covers writers inside this process.
    """

    def __init__(
        self,
        storage: StorageInterface,
        account_manager: AccountManager,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.storage = storage
        self.account_manager = account_manager
        self.table_name = "transactions"
        self.clock = clock or utcnow
        self.logger = get_logger("tenant_ledger.transactions")

    def create_transaction(
        self,
        account_id: str,
        tenant_id: str,
        transaction_type: Union[str, TransactionType],
        amount: Union[Decimal, str]
    ) -> Transaction:
        """Record a deposit or withdrawal and update the account balance"""
        transaction_type = TransactionType.parse(transaction_type)
        try:
            amount = to_amount(amount)
        except (TypeError, ValueError) as e:
            raise InvalidRequestError(str(e))
        if amount <= 0:
            raise InvalidRequestError("Amount must be positive")

        with self.account_manager.balance_lock:
            account = self.account_manager.require_account(account_id, tenant_id)

            if transaction_type == TransactionType.WITHDRAWAL and account.balance < amount:
                raise InsufficientBalanceError(account_id, str(account.balance), str(amount))

            now = self.clock()
            transaction = Transaction(
                id=str(uuid.uuid4()),
                tenant_id=tenant_id,
                created_at=now,
                updated_at=now,
                account_id=account_id,
                transaction_type=transaction_type,
                amount=amount,
                timestamp=now
            )
            account.balance = account.balance + transaction.signed_amount

            with self.storage.atomic():
                self.account_manager.save_account(account)
                self.storage.save(self.table_name, transaction.id, transaction.to_dict())

        log_action(self.logger, "info", f"{transaction_type.value} of {amount} recorded",
                   action="transaction_created", tenant_id=tenant_id, account_id=account_id)
        return transaction

    def get_account_transactions(self, account_id: str, tenant_id: str) -> List[Transaction]:
        """All transactions of a tenant's account in chronological order"""
        self.account_manager.require_account(account_id, tenant_id)
        return _chronological(self._load(account_id, tenant_id))

    def find_transactions(
        self,
        account_id: str,
        tenant_id: str,
        start: datetime,
        end: datetime
    ) -> List[Transaction]:
        """Transactions with start <= timestamp <= end, chronological"""
        return _chronological([
            txn for txn in self._load(account_id, tenant_id)
            if start <= txn.timestamp <= end
        ])

    def _load(self, account_id: str, tenant_id: str) -> List[Transaction]:
        rows = self.storage.find(self.table_name, {'tenant_id': tenant_id, 'account_id': account_id})
        return [Transaction.from_dict(row) for row in rows]
