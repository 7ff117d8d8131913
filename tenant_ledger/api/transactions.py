"""
Transaction endpoints, nested under accounts
"""

from fastapi import APIRouter, Depends, status

from .dependencies import BankingSystem, get_banking_system, require_tenant
from .schemas import TransactionRequest, transaction_to_response


router = APIRouter()


@router.post("/{account_id}/transactions", status_code=status.HTTP_201_CREATED)
async def create_transaction(
    account_id: str,
    request: TransactionRequest,
    tenant_id: str = Depends(require_tenant),
    system: BankingSystem = Depends(get_banking_system)
):
    """Record a deposit or withdrawal; the balance is updated in the same step"""
    transaction = system.transaction_processor.create_transaction(
        account_id=account_id,
        tenant_id=tenant_id,
        transaction_type=request.type,
        amount=request.amount
    )
    return transaction_to_response(transaction)


@router.get("/{account_id}/transactions")
async def get_transactions(
    account_id: str,
    tenant_id: str = Depends(require_tenant),
    system: BankingSystem = Depends(get_banking_system)
):
    """Transaction history for an account, oldest first"""
    transactions = system.transaction_processor.get_account_transactions(account_id, tenant_id)
    return [transaction_to_response(t) for t in transactions]
