"""
Typed exception hierarchy for the tenant ledger.

Every exception carries a machine-readable ``code`` and the HTTP status the
API layer maps it to:

    LedgerError (base)
    |
    +-- NotFoundError                 404
    |   +-- AccountNotFoundError
    |   +-- JobNotFoundError
    |
    +-- InvalidRequestError           400
    |   +-- InsufficientBalanceError
    |
    +-- InvalidTransitionError        409
    +-- ProcessingFailure             500
    +-- CapacityExceededError         503 (retryable)

NotFoundError and InvalidRequestError surface synchronously to the caller.
ProcessingFailure is never raised to a request: background failures are
recorded on the FAILED statement job and discovered by polling.
"""

from typing import Optional


class LedgerError(Exception):
    """Base exception for all ledger errors."""

    code: str = "LEDGER_ERROR"
    status_code: int = 500
    retryable: bool = False


class NotFoundError(LedgerError):
    """Resource is absent or owned by a different tenant."""

    code: str = "NOT_FOUND"
    status_code: int = 404


class AccountNotFoundError(NotFoundError):
    """Account does not exist for the requesting tenant."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__("Account not found or access denied")


class JobNotFoundError(NotFoundError):
    """Statement job does not exist for the requesting tenant."""

    code: str = "JOB_NOT_FOUND"

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__("Statement job not found")


class InvalidRequestError(LedgerError):
    """Malformed request: blank identifiers, inverted window, bad amount."""

    code: str = "INVALID_REQUEST"
    status_code: int = 400


class InsufficientBalanceError(InvalidRequestError):
    """Withdrawal exceeds the current account balance."""

    code: str = "INSUFFICIENT_BALANCE"

    def __init__(self, account_id: str, balance: str, requested: str):
        self.account_id = account_id
        self.balance = balance
        self.requested = requested
        super().__init__("Insufficient balance")


class InvalidTransitionError(LedgerError):
    """Statement job status change that would move backwards or skip a state."""

    code: str = "INVALID_TRANSITION"
    status_code: int = 409

    def __init__(self, job_id: str, from_status: str, to_status: str):
        self.job_id = job_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Job {job_id} cannot move from {from_status} to {to_status}"
        )


class ProcessingFailure(LedgerError):
    """Error raised while generating a statement in the background."""

    code: str = "PROCESSING_FAILURE"

    def __init__(self, message: str, job_id: Optional[str] = None):
        self.job_id = job_id
        super().__init__(message)


class CapacityExceededError(LedgerError):
    """Statement worker queue is full; the caller may retry later."""

    code: str = "CAPACITY_EXCEEDED"
    status_code: int = 503
    retryable: bool = True

    def __init__(self, capacity: int):
        self.capacity = capacity
        super().__init__("statement queue is at capacity")
