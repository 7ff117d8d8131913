"""
Statement Workflow

Orchestrates asynchronous statement generation:

1. ``request_statement`` validates the request, checks that the account
   belongs to the tenant, persists a PENDING job and schedules processing.
   It returns the PENDING job without waiting for the statement.
2. ``process_statement`` runs on an executor thread. It claims the job
   (PROCESSING), builds the statement and stores either the rendered text
   (COMPLETED) or an error description (FAILED).
3. ``get_job_status`` serves polling, scoped to the requesting tenant.

Every storage access in the background path passes the tenant id captured at
request time. The ambient tenant context is set on the worker only so that
log records carry it.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, List, Optional

from .exceptions import (
    AccountNotFoundError, CapacityExceededError, InvalidRequestError,
    JobNotFoundError, ProcessingFailure
)
from .executor import JobExecutor
from .jobs import JobStatus, StatementJob, StatementJobStore, window_bounds
from .ledger import LedgerStore
from .logging_config import get_logger, log_action
from .statement_engine import build_statement, render_statement
from .storage import utcnow
from .tenancy import tenant_context


ERROR_PREFIX = "Error: "


@dataclass
class ProcessingOutcome:
    """What a single processing run did to its job"""
    job_id: str
    status: Optional[JobStatus] = None
    statement: Optional[str] = None
    error: Optional[str] = None
    job_missing: bool = False


class StatementWorkflow:
    """Request, process and poll statement jobs"""

    def __init__(
        self,
        job_store: StatementJobStore,
        ledger: LedgerStore,
        executor: JobExecutor,
        clock: Optional[Callable[[], datetime]] = None,
        currency_symbol: str = "$"
    ):
        self.job_store = job_store
        self.ledger = ledger
        self.executor = executor
        self.clock = clock or utcnow
        self.currency_symbol = currency_symbol
        self.logger = get_logger("tenant_ledger.statements")

    def request_statement(
        self,
        tenant_id: str,
        account_id: str,
        start_date: date,
        end_date: date
    ) -> StatementJob:
        """
        Create a PENDING statement job and schedule it.

        Returns the job as created; processing happens later on a worker.

        Raises:
            InvalidRequestError: blank tenant or account id, or end before start
            AccountNotFoundError: account missing or owned by another tenant;
                no job is persisted in that case
            CapacityExceededError: the executor refused the job; the job is
                left FAILED so it never sits in PENDING forever
        """
        if not tenant_id or not tenant_id.strip():
            raise InvalidRequestError("Tenant id is required")
        if not account_id or not account_id.strip():
            raise InvalidRequestError("Account id is required")
        if start_date is None or end_date is None:
            raise InvalidRequestError("Start and end dates are required")
        if end_date < start_date:
            raise InvalidRequestError("End date must not be before start date")

        if self.ledger.find_account(account_id, tenant_id) is None:
            log_action(self.logger, "warning", "Statement requested for unknown account",
                       action="statement_rejected", tenant_id=tenant_id, account_id=account_id)
            raise AccountNotFoundError(account_id)

        window_start, window_end = window_bounds(start_date, end_date)
        job = StatementJob.new(account_id, tenant_id, window_start, window_end, now=self.clock())
        self.job_store.create(job)

        try:
            self.executor.submit(job.id, self.process_statement, job.id, tenant_id)
        except CapacityExceededError as e:
            job.transition(JobStatus.FAILED, now=self.clock(), result=ERROR_PREFIX + str(e))
            self.job_store.update(job)
            log_action(self.logger, "warning", "Statement job rejected by executor",
                       action="statement_rejected", tenant_id=tenant_id,
                       job_id=job.id, account_id=account_id)
            raise

        log_action(self.logger, "info", "Statement job queued",
                   action="statement_requested", tenant_id=tenant_id,
                   job_id=job.id, account_id=account_id)
        return job

    def process_statement(self, job_id: str, tenant_id: str) -> ProcessingOutcome:
        """
        Generate the statement for a job.

        Any error, including a failed job write, ends in FAILED where the
        store still accepts writes. Nothing is raised to the executor.
        """
        with tenant_context(tenant_id):
            try:
                return self._process(job_id, tenant_id)
            except Exception as e:
                return self._fail(job_id, tenant_id, e)

    def get_job_status(self, job_id: str, tenant_id: str) -> StatementJob:
        """Job owned by the tenant; foreign and unknown ids both raise JobNotFoundError"""
        job = self.job_store.get_for_tenant(job_id, tenant_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def list_jobs(self, tenant_id: str, status: Optional[JobStatus] = None) -> List[StatementJob]:
        """Jobs of the tenant, oldest first, optionally narrowed to one status"""
        return self.job_store.list_for_tenant(tenant_id, status)

    def _process(self, job_id: str, tenant_id: str) -> ProcessingOutcome:
        job = self.job_store.get_for_tenant(job_id, tenant_id)
        if job is None:
            log_action(self.logger, "error", "Statement job not found, dropping",
                       action="statement_dropped", tenant_id=tenant_id, job_id=job_id)
            return ProcessingOutcome(job_id=job_id, job_missing=True)
        if job.is_terminal:
            log_action(self.logger, "warning", "Statement job already finished, skipping",
                       action="statement_skipped", job_id=job_id)
            return ProcessingOutcome(job_id=job_id, status=job.status)
        if job.status == JobStatus.PROCESSING:
            # Left behind by a worker that never finished it
            raise ProcessingFailure("Job was already processing", job_id=job_id)

        job.transition(JobStatus.PROCESSING, now=self.clock())
        self.job_store.update(job)
        log_action(self.logger, "info", "Statement processing started",
                   action="statement_processing", job_id=job_id, account_id=job.account_id)

        text = self._generate(job, tenant_id)

        job.transition(JobStatus.COMPLETED, now=self.clock(), result=text)
        self.job_store.update(job)
        log_action(self.logger, "info", "Statement generated",
                   action="statement_completed", job_id=job_id, account_id=job.account_id)
        return ProcessingOutcome(job_id=job_id, status=JobStatus.COMPLETED, statement=text)

    def _fail(self, job_id: str, tenant_id: str, error: Exception) -> ProcessingOutcome:
        message = str(error) or error.__class__.__name__
        self.logger.error(
            "Statement generation failed",
            exc_info=not isinstance(error, ProcessingFailure),
            extra={"action": "statement_failed", "job_id": job_id}
        )

        # Reload so a half-applied in-memory transition is not written back
        try:
            job = self.job_store.get_for_tenant(job_id, tenant_id)
            if job is None:
                return ProcessingOutcome(job_id=job_id, error=message, job_missing=True)
            if job.is_terminal:
                return ProcessingOutcome(job_id=job_id, status=job.status, error=message)
            job.transition(JobStatus.FAILED, now=self.clock(), result=ERROR_PREFIX + message)
            self.job_store.update(job)
        except Exception:
            self.logger.exception(
                "Could not record statement failure",
                extra={"action": "statement_failure_unrecorded", "job_id": job_id}
            )
            return ProcessingOutcome(job_id=job_id, error=message)

        return ProcessingOutcome(job_id=job_id, status=JobStatus.FAILED, error=message)

    def _generate(self, job: StatementJob, tenant_id: str) -> str:
        account, transactions = self.ledger.snapshot(
            job.account_id, tenant_id, job.window_start, job.window_end
        )
        if account is None:
            raise ProcessingFailure("Account not found", job_id=job.id)

        statement = build_statement(
            account_id=account.id,
            customer_name=account.customer_name,
            current_balance=account.balance,
            transactions=transactions,
            window_start=job.window_start,
            window_end=job.window_end
        )
        return render_statement(statement, self.currency_symbol)
