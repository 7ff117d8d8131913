"""
Statement Job Store

Statement jobs track one asynchronous statement request each:

- PENDING: job created, processing not started
- PROCESSING: a worker owns the job and is generating the statement
- COMPLETED: statement text stored in ``result``
- FAILED: error description stored in ``result``

Status moves forward only. The single shortcut is PENDING -> FAILED, taken
when a job fails before a worker picks it up.
"""

from datetime import datetime, date, time, timezone
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
from enum import Enum
import uuid

from .exceptions import InvalidTransitionError
from .storage import StorageInterface, StorageRecord, parse_datetime, utcnow


class JobStatus(Enum):
    """Statement job lifecycle states"""
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})

ALLOWED_TRANSITIONS = {
    JobStatus.PENDING: frozenset({JobStatus.PROCESSING, JobStatus.FAILED}),
    JobStatus.PROCESSING: frozenset({JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}


def window_bounds(start_date: date, end_date: date) -> Tuple[datetime, datetime]:
    """Start of the first day through 23:59:59 of the last day, in UTC"""
    return (
        datetime.combine(start_date, time.min, tzinfo=timezone.utc),
        datetime.combine(end_date, time(23, 59, 59), tzinfo=timezone.utc),
    )


@dataclass
class StatementJob(StorageRecord):
    """One statement generation request and its outcome"""
    account_id: str
    window_start: datetime
    window_end: datetime
    status: JobStatus = JobStatus.PENDING
    result: Optional[str] = None
    completed_at: Optional[datetime] = None

    @property
    def job_id(self) -> str:
        return self.id

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @classmethod
    def new(cls, account_id: str, tenant_id: str, window_start: datetime,
            window_end: datetime, now: Optional[datetime] = None) -> 'StatementJob':
        now = now or utcnow()
        return cls(
            id=str(uuid.uuid4()),
            tenant_id=tenant_id,
            created_at=now,
            updated_at=now,
            account_id=account_id,
            window_start=window_start,
            window_end=window_end
        )

    def transition(self, new_status: JobStatus, now: Optional[datetime] = None,
                   result: Optional[str] = None) -> None:
        """Move to ``new_status``; terminal moves stamp result and completed_at"""
        if new_status not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidTransitionError(self.id, self.status.value, new_status.value)

        now = now or utcnow()
        self.status = new_status
        self.updated_at = now
        if new_status.is_terminal:
            self.result = result
            self.completed_at = now

    def to_status_dict(self) -> Dict[str, Any]:
        """Polling view; the result is only exposed once the job is terminal"""
        data = {
            "jobId": self.id,
            "status": self.status.value,
            "accountId": self.account_id,
            "createdAt": self.created_at.isoformat(),
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
        }
        if self.is_terminal:
            data["result"] = self.result
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StatementJob':
        return cls(
            id=data['id'],
            tenant_id=data['tenant_id'],
            created_at=parse_datetime(data['created_at']),
            updated_at=parse_datetime(data['updated_at']),
            account_id=data['account_id'],
            window_start=parse_datetime(data['window_start']),
            window_end=parse_datetime(data['window_end']),
            status=JobStatus(data['status']),
            result=data.get('result'),
            completed_at=parse_datetime(data.get('completed_at'))
        )


class StatementJobStore:
    """
    Persistence for statement jobs.

    ``update`` is a full-record replace with last-writer-wins semantics; it is
    safe because exactly one worker owns a job while it is being processed.
    """

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.table_name = "statement_jobs"

    def create(self, job: StatementJob) -> str:
        if self.storage.exists(self.table_name, job.id):
            raise ValueError(f"Statement job {job.id} already exists")
        self.storage.save(self.table_name, job.id, job.to_dict())
        return job.id

    def get(self, job_id: str) -> Optional[StatementJob]:
        """Unscoped lookup, not for request handling"""
        data = self.storage.load(self.table_name, job_id)
        return StatementJob.from_dict(data) if data else None

    def get_for_tenant(self, job_id: str, tenant_id: str) -> Optional[StatementJob]:
        """Lookup by job id and owner; foreign jobs look exactly like missing ones"""
        data = self.storage.load_for_tenant(self.table_name, job_id, tenant_id)
        return StatementJob.from_dict(data) if data else None

    def update(self, job: StatementJob) -> None:
        self.storage.save(self.table_name, job.id, job.to_dict())

    def list_for_tenant(self, tenant_id: str, status: Optional[JobStatus] = None) -> List[StatementJob]:
        filters = {'tenant_id': tenant_id}
        if status is not None:
            filters['status'] = status.value
        jobs = [StatementJob.from_dict(data) for data in self.storage.find(self.table_name, filters)]
        return sorted(jobs, key=lambda j: j.created_at)
