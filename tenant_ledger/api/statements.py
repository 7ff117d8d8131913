"""
Statement endpoints

Statements are generated in the background. POST returns a job id straight
away; clients poll GET /statements/{jobId} until the job is COMPLETED or
FAILED.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from .dependencies import BankingSystem, get_banking_system, require_tenant
from .schemas import StatementRequestModel
from ..config import get_config
from ..exceptions import InvalidRequestError
from ..jobs import JobStatus


router = APIRouter()


@router.post("", status_code=status.HTTP_202_ACCEPTED)
async def request_statement(
    request: StatementRequestModel,
    tenant_id: str = Depends(require_tenant),
    system: BankingSystem = Depends(get_banking_system)
):
    """Request statement generation for an account and date range"""
    job = system.statement_workflow.request_statement(
        tenant_id=tenant_id,
        account_id=request.account_id,
        start_date=request.start_date,
        end_date=request.end_date
    )
    return {
        "jobId": job.id,
        "status": job.status.value,
        "message": f"Statement generation started. Poll {get_config().api_prefix}/statements/{job.id} for results"
    }


@router.get("")
async def list_statement_jobs(
    status_filter: Optional[str] = Query(None, alias="status"),
    tenant_id: str = Depends(require_tenant),
    system: BankingSystem = Depends(get_banking_system)
):
    """Statement jobs of the calling tenant, oldest first"""
    job_status = None
    if status_filter:
        try:
            job_status = JobStatus(status_filter.strip().upper())
        except ValueError:
            raise InvalidRequestError(f"Unknown job status: {status_filter}")
    jobs = system.statement_workflow.list_jobs(tenant_id, job_status)
    return {"jobs": [job.to_status_dict() for job in jobs]}


@router.get("/{job_id}")
async def get_statement_job(
    job_id: str,
    tenant_id: str = Depends(require_tenant),
    system: BankingSystem = Depends(get_banking_system)
):
    """Job status; the result is included once the job is terminal"""
    return system.statement_workflow.get_job_status(job_id, tenant_id).to_status_dict()
