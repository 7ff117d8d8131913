"""
Service container and request dependencies
"""

from typing import Optional

from fastapi import HTTPException, Request

from ..accounts import AccountManager
from ..config import LedgerConfig, get_config
from ..executor import JobExecutor
from ..jobs import StatementJobStore
from ..ledger import LedgerStore
from ..storage import StorageInterface, create_storage
from ..statements import StatementWorkflow
from ..tenancy import extract_tenant_from_headers
from ..transactions import TransactionProcessor


MISSING_TENANT_DETAIL = "Missing or invalid X-Tenant-Id header"


class BankingSystem:
    """Ledger service with all components wired to one storage backend"""

    def __init__(self, use_sqlite: bool = True, config: Optional[LedgerConfig] = None,
                 storage: Optional[StorageInterface] = None):
        self.config = config or get_config()

        # Initialize storage
        if storage is not None:
            self.storage = storage
        elif use_sqlite:
            self.storage = create_storage("sqlite", self.config.database_path)
        else:
            self.storage = create_storage("memory")

        # Ledger components
        self.account_manager = AccountManager(self.storage)
        self.transaction_processor = TransactionProcessor(self.storage, self.account_manager)
        self.ledger = LedgerStore(self.account_manager, self.transaction_processor)

        # Statement components
        self.job_store = StatementJobStore(self.storage)
        self.executor = JobExecutor(
            core_workers=self.config.executor_core_workers,
            max_workers=self.config.executor_max_workers,
            queue_capacity=self.config.executor_queue_capacity,
            thread_name_prefix=self.config.executor_thread_prefix
        )
        self.statement_workflow = StatementWorkflow(
            self.job_store,
            self.ledger,
            self.executor,
            currency_symbol=self.config.currency_symbol
        )

    def shutdown(self) -> None:
        """Drain the statement executor and release storage"""
        self.executor.shutdown(wait=True, timeout=self.config.executor_shutdown_timeout)
        self.storage.close()


_banking_system: Optional[BankingSystem] = None


def get_banking_system() -> BankingSystem:
    """Process-wide container, created on first use from configuration"""
    global _banking_system
    if _banking_system is None:
        config = get_config()
        _banking_system = BankingSystem(use_sqlite=config.storage_backend == "sqlite", config=config)
    return _banking_system


def require_tenant(request: Request) -> str:
    """Tenant id from the request header; 400 when missing or blank"""
    tenant_id = extract_tenant_from_headers(request.headers, get_config().tenant_header)
    if tenant_id is None:
        raise HTTPException(status_code=400, detail=MISSING_TENANT_DETAIL)
    return tenant_id


def shutdown_banking_system() -> None:
    """Shut down the process-wide container if one was created"""
    global _banking_system
    if _banking_system is not None:
        _banking_system.shutdown()
        _banking_system = None
