from typing import Optional

from fastapi import APIRouter, Depends, Request

from ..config import RATE_LIMIT_DEFAULT, TRANSFER_RATE_LIMIT
from ..dependencies import get_service
from ..errors import unexpected_errors
from ..limiter import limiter
from ..schemas import DepositIn, TransferIn, WithdrawIn
from ..services.banking import BankingService

router = APIRouter(tags=["transactions"])


# ============================
#        DEPOSIT MONEY
# ============================
@router.post("/deposit")
@limiter.limit(RATE_LIMIT_DEFAULT)
async def deposit(request: Request, payload: Optional[DepositIn] = None,
                  service: BankingService = Depends(get_service)):
    with unexpected_errors("Failed to process deposit"):
        movement = await service.deposit(payload or DepositIn())

    return {"message": "Deposit successful", "transaction": movement.model_dump(mode="json")}


# ============================
#        WITHDRAW MONEY
# ============================
@router.post("/withdraw")
@limiter.limit(RATE_LIMIT_DEFAULT)
async def withdraw(request: Request, payload: Optional[WithdrawIn] = None,
                   service: BankingService = Depends(get_service)):
    with unexpected_errors("Failed to process withdrawal"):
        movement = await service.withdraw(payload or WithdrawIn())

    return {"message": "Withdrawal successful", "transaction": movement.model_dump(mode="json")}


# ============================
#        TRANSFER MONEY
# ============================
@router.post("/transfer")
@limiter.limit(TRANSFER_RATE_LIMIT)
async def transfer(request: Request, payload: Optional[TransferIn] = None,
                   service: BankingService = Depends(get_service)):
    with unexpected_errors("Failed to process transfer", include_details=True):
        record = await service.transfer(payload or TransferIn())

    return {"message": "Transfer completed successfully", "transaction": record.model_dump(mode="json")}
