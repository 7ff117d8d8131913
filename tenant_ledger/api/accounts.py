"""
Account management endpoints
"""

from fastapi import APIRouter, Depends, Response, status

from .dependencies import BankingSystem, get_banking_system, require_tenant
from .schemas import AccountRequest, account_to_response


router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_account(
    request: AccountRequest,
    tenant_id: str = Depends(require_tenant),
    system: BankingSystem = Depends(get_banking_system)
):
    """Create a new account"""
    account = system.account_manager.create_account(
        tenant_id=tenant_id,
        customer_name=request.customer_name,
        balance=request.balance
    )
    return account_to_response(account)


@router.get("")
async def list_accounts(
    tenant_id: str = Depends(require_tenant),
    system: BankingSystem = Depends(get_banking_system)
):
    """List the accounts of the calling tenant"""
    return [account_to_response(a) for a in system.account_manager.list_accounts(tenant_id)]


@router.get("/{account_id}")
async def get_account(
    account_id: str,
    tenant_id: str = Depends(require_tenant),
    system: BankingSystem = Depends(get_banking_system)
):
    """Get account details"""
    account = system.account_manager.require_account(account_id, tenant_id)
    return account_to_response(account)


@router.put("/{account_id}")
async def update_account(
    account_id: str,
    request: AccountRequest,
    tenant_id: str = Depends(require_tenant),
    system: BankingSystem = Depends(get_banking_system)
):
    """Replace the customer name and balance"""
    account = system.account_manager.update_account(
        account_id=account_id,
        tenant_id=tenant_id,
        customer_name=request.customer_name,
        balance=request.balance
    )
    return account_to_response(account)


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_account(
    account_id: str,
    tenant_id: str = Depends(require_tenant),
    system: BankingSystem = Depends(get_banking_system)
):
    """Delete an account"""
    system.account_manager.delete_account(account_id, tenant_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
