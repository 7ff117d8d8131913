"""
Account Management Module

Tenant-owned bank accounts with a Decimal balance. Every lookup requires both
the account id and the owning tenant id; an account owned by another tenant
is reported exactly like a missing one.
"""

from decimal import Decimal
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union
import threading
import uuid

from .exceptions import AccountNotFoundError, InvalidRequestError
from .logging_config import get_logger, log_action
from .money import to_amount
from .storage import StorageInterface, StorageRecord, parse_datetime, utcnow


@dataclass
class Account(StorageRecord):
    """Bank account holding a current balance"""
    customer_name: str
    balance: Decimal

    def __post_init__(self):
        self.balance = to_amount(self.balance)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Account':
        return cls(
            id=data['id'],
            tenant_id=data['tenant_id'],
            created_at=parse_datetime(data['created_at']),
            updated_at=parse_datetime(data['updated_at']),
            customer_name=data['customer_name'],
            balance=Decimal(data['balance'])
        )


def _validate_account_fields(customer_name: str, balance: Decimal) -> None:
    if not customer_name or not customer_name.strip():
        raise InvalidRequestError("Customer name is required")
    if balance < 0:
        raise InvalidRequestError("Balance must not be negative")


class AccountManager:
    """
    Manages the account lifecycle for all tenants
    """

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.table_name = "accounts"
        self.logger = get_logger("tenant_ledger.accounts")
        # Serializes read-modify-write balance changes within this process
        self.balance_lock = threading.RLock()

    def create_account(
        self,
        tenant_id: str,
        customer_name: str,
        balance: Union[Decimal, str],
        account_id: Optional[str] = None
    ) -> Account:
        """Create a new account for a tenant"""
        balance = to_amount(balance)
        _validate_account_fields(customer_name, balance)

        now = utcnow()
        account = Account(
            id=account_id or str(uuid.uuid4()),
            tenant_id=tenant_id,
            created_at=now,
            updated_at=now,
            customer_name=customer_name.strip(),
            balance=balance
        )
        if self.storage.exists(self.table_name, account.id):
            raise InvalidRequestError(f"Account {account.id} already exists")

        self.storage.save(self.table_name, account.id, account.to_dict())
        log_action(self.logger, "info", "Account created",
                   action="account_created", tenant_id=tenant_id, account_id=account.id)
        return account

    def get_account(self, account_id: str, tenant_id: str) -> Optional[Account]:
        """Get an account only if it belongs to the tenant"""
        data = self.storage.load_for_tenant(self.table_name, account_id, tenant_id)
        return Account.from_dict(data) if data else None

    def require_account(self, account_id: str, tenant_id: str) -> Account:
        account = self.get_account(account_id, tenant_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    def list_accounts(self, tenant_id: str) -> List[Account]:
        """All accounts of a tenant, oldest first"""
        accounts = [
            Account.from_dict(data)
            for data in self.storage.find(self.table_name, {'tenant_id': tenant_id})
        ]
        return sorted(accounts, key=lambda a: a.created_at)

    def update_account(
        self,
        account_id: str,
        tenant_id: str,
        customer_name: str,
        balance: Union[Decimal, str]
    ) -> Account:
        """Replace the customer name and balance of a tenant's account"""
        balance = to_amount(balance)
        _validate_account_fields(customer_name, balance)

        with self.balance_lock:
            account = self.require_account(account_id, tenant_id)
            account.customer_name = customer_name.strip()
            account.balance = balance
            self.save_account(account)

        log_action(self.logger, "info", "Account updated",
                   action="account_updated", tenant_id=tenant_id, account_id=account_id)
        return account

    def delete_account(self, account_id: str, tenant_id: str) -> None:
        """Delete an account only if it belongs to the tenant"""
        with self.balance_lock:
            self.require_account(account_id, tenant_id)
            self.storage.delete(self.table_name, account_id)

        log_action(self.logger, "info", "Account deleted",
                   action="account_deleted", tenant_id=tenant_id, account_id=account_id)

    def save_account(self, account: Account) -> None:
        account.updated_at = utcnow()
        self.storage.save(self.table_name, account.id, account.to_dict())
