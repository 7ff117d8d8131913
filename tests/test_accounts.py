"""
Tests for account management

Accounts are only visible to the tenant that owns them.
"""

import pytest
from decimal import Decimal

from tenant_ledger.accounts import Account, AccountManager
from tenant_ledger.exceptions import AccountNotFoundError, InvalidRequestError
from tenant_ledger.storage import InMemoryStorage


class TestAccountManager:
    """Account lifecycle"""

    def setup_method(self):
        self.storage = InMemoryStorage()
        self.manager = AccountManager(self.storage)

    def test_create_account(self):
        account = self.manager.create_account("BANK001", "Alice", "1000.00")

        assert account.tenant_id == "BANK001"
        assert account.customer_name == "Alice"
        assert account.balance == Decimal("1000.00")
        assert self.storage.exists("accounts", account.id)

    def test_create_with_explicit_id(self):
        account = self.manager.create_account("BANK001", "Alice", Decimal("10"), account_id="A123")
        assert account.id == "A123"
        assert account.balance == Decimal("10.00")

    def test_duplicate_id_rejected(self):
        self.manager.create_account("BANK001", "Alice", "10.00", account_id="A123")
        with pytest.raises(InvalidRequestError):
            self.manager.create_account("BANK002", "Bob", "10.00", account_id="A123")

    def test_validation(self):
        with pytest.raises(InvalidRequestError):
            self.manager.create_account("BANK001", "   ", "10.00")
        with pytest.raises(InvalidRequestError):
            self.manager.create_account("BANK001", "Alice", "-1.00")

    def test_get_account_is_tenant_scoped(self):
        account = self.manager.create_account("BANK001", "Alice", "10.00")

        assert self.manager.get_account(account.id, "BANK001") is not None
        assert self.manager.get_account(account.id, "BANK002") is None
        assert self.manager.get_account("missing", "BANK001") is None

    def test_require_account_raises_not_found(self):
        account = self.manager.create_account("BANK001", "Alice", "10.00")

        with pytest.raises(AccountNotFoundError) as exc_info:
            self.manager.require_account(account.id, "BANK002")
        assert exc_info.value.status_code == 404
        assert str(exc_info.value) == "Account not found or access denied"

    def test_list_accounts(self):
        self.manager.create_account("BANK001", "Alice", "10.00")
        self.manager.create_account("BANK001", "Bob", "20.00")
        self.manager.create_account("BANK002", "Carol", "30.00")

        names = [a.customer_name for a in self.manager.list_accounts("BANK001")]
        assert sorted(names) == ["Alice", "Bob"]
        assert len(self.manager.list_accounts("BANK003")) == 0

    def test_update_account(self):
        account = self.manager.create_account("BANK001", "Alice", "10.00")

        updated = self.manager.update_account(account.id, "BANK001", "Alice Smith", "1500.00")

        assert updated.customer_name == "Alice Smith"
        assert self.manager.get_account(account.id, "BANK001").balance == Decimal("1500.00")

    def test_update_foreign_account(self):
        account = self.manager.create_account("BANK001", "Alice", "10.00")
        with pytest.raises(AccountNotFoundError):
            self.manager.update_account(account.id, "BANK002", "Mallory", "0.00")
        assert self.manager.get_account(account.id, "BANK001").customer_name == "Alice"

    def test_delete_account(self):
        account = self.manager.create_account("BANK001", "Alice", "10.00")

        with pytest.raises(AccountNotFoundError):
            self.manager.delete_account(account.id, "BANK002")

        self.manager.delete_account(account.id, "BANK001")
        assert self.manager.get_account(account.id, "BANK001") is None


class TestAccountSerialization:

    def test_round_trip_keeps_decimal(self):
        storage = InMemoryStorage()
        manager = AccountManager(storage)
        account = manager.create_account("BANK001", "Alice", "0.10")

        data = storage.load("accounts", account.id)
        assert data["balance"] == "0.10"

        restored = Account.from_dict(data)
        assert restored.balance == Decimal("0.10")
        assert restored.created_at == account.created_at
