"""
Pydantic schemas for API requests and responses

Request bodies use camelCase field names; snake_case names are accepted too.
Amounts are returned as decimal strings.
"""

from decimal import Decimal
from datetime import date
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field

from ..accounts import Account
from ..transactions import Transaction


class RequestModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


# Account schemas
class AccountRequest(RequestModel):
    customer_name: str = Field(..., alias="customerName", min_length=1)
    balance: Decimal = Field(..., gt=0, description="Opening balance")


# Transaction schemas
class TransactionRequest(RequestModel):
    type: str = Field(..., min_length=1, description="DEPOSIT or WITHDRAWAL")
    amount: Decimal = Field(..., gt=0)


# Statement schemas
class StatementRequestModel(RequestModel):
    account_id: str = Field(..., alias="accountId", min_length=1)
    start_date: date = Field(..., alias="startDate", description="First day of the window")
    end_date: date = Field(..., alias="endDate", description="Last day of the window, inclusive")


def account_to_response(account: Account) -> Dict[str, Any]:
    return {
        "accountId": account.id,
        "tenantId": account.tenant_id,
        "customerName": account.customer_name,
        "balance": str(account.balance),
        "createdAt": account.created_at.isoformat(),
        "updatedAt": account.updated_at.isoformat(),
    }


def transaction_to_response(transaction: Transaction) -> Dict[str, Any]:
    return {
        "transactionId": transaction.id,
        "accountId": transaction.account_id,
        "tenantId": transaction.tenant_id,
        "type": transaction.transaction_type.value,
        "amount": str(transaction.amount),
        "timestamp": transaction.timestamp.isoformat(),
    }


def error_body(detail: str, code: Optional[str] = None) -> Dict[str, Any]:
    body = {"detail": detail}
    if code:
        body["code"] = code
    return body
