"""
Shared fixtures for the tenant ledger test suite
"""

import pytest
from datetime import datetime, timedelta, timezone

from tenant_ledger.accounts import AccountManager
from tenant_ledger.executor import JobExecutor
from tenant_ledger.jobs import StatementJobStore
from tenant_ledger.ledger import LedgerStore
from tenant_ledger.statements import StatementWorkflow
from tenant_ledger.storage import InMemoryStorage
from tenant_ledger.transactions import TransactionProcessor


class FixedClock:
    """Manually advanced clock for deterministic timestamps"""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def set(self, value: datetime) -> None:
        self.now = value

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FixedClock(datetime(2025, 10, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def account_manager(storage):
    return AccountManager(storage)


@pytest.fixture
def transaction_processor(storage, account_manager, clock):
    return TransactionProcessor(storage, account_manager, clock=clock)


@pytest.fixture
def ledger(account_manager, transaction_processor):
    return LedgerStore(account_manager, transaction_processor)


@pytest.fixture
def job_store(storage):
    return StatementJobStore(storage)


@pytest.fixture
def executor():
    executor = JobExecutor(core_workers=2, max_workers=5, queue_capacity=100)
    yield executor
    executor.shutdown(wait=True, timeout=5)


@pytest.fixture
def workflow(job_store, ledger, executor):
    return StatementWorkflow(job_store, ledger, executor)
