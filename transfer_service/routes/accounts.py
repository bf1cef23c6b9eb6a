from typing import Optional

from fastapi import APIRouter, Depends, Request

from ..config import RATE_LIMIT_DEFAULT
from ..dependencies import get_service
from ..errors import unexpected_errors
from ..limiter import limiter
from ..schemas import AccountCreateIn
from ..services.banking import BankingService

router = APIRouter(prefix="/accounts", tags=["accounts"])


@router.get("")
@limiter.limit(RATE_LIMIT_DEFAULT)
async def list_accounts(request: Request, service: BankingService = Depends(get_service)):
    with unexpected_errors("Failed to retrieve accounts"):
        accounts = await service.list_accounts()

    return {
        "message": "Accounts retrieved successfully",
        "count": len(accounts),
        "accounts": [a.public() for a in accounts],
    }


@router.get("/{accountNumber}")
@limiter.limit(RATE_LIMIT_DEFAULT)
async def get_account(request: Request, accountNumber: str,
                      service: BankingService = Depends(get_service)):
    with unexpected_errors("Failed to retrieve account details"):
        account = await service.get_account(accountNumber)

    return {"message": "Account details retrieved successfully", "account": account}


@router.post("", status_code=201)
@limiter.limit(RATE_LIMIT_DEFAULT)
async def create_account(request: Request, payload: Optional[AccountCreateIn] = None,
                         service: BankingService = Depends(get_service)):
    with unexpected_errors("Failed to create account"):
        account = await service.create_account(payload or AccountCreateIn())

    return {
        "message": "Account created successfully",
        "account": {
            "accountNumber": account.accountNumber,
            "accountHolder": account.accountHolder,
            "balance": account.balance,
        },
    }
