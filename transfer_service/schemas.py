from pydantic import BaseModel, Field
from typing import Any, Optional, Union
from datetime import datetime, timezone

from .config import DEFAULT_CURRENCY

Amount = Union[int, float]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================
#        ACCOUNT RECORD
# ============================

class Account(BaseModel):
    """Account document as held by the account store (internal ``_id`` dropped)"""
    accountNumber: str
    accountHolder: str
    email: str
    balance: Amount = 0
    currency: str = DEFAULT_CURRENCY
    status: str = "active"
    lastTransaction: Optional[datetime] = None
    createdAt: datetime = Field(default_factory=utcnow)

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def public(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)


# ============================
#        REQUEST BODIES
# ============================
# Fields are untyped; presence and type checks happen in BankingService.

class AccountCreateIn(BaseModel):
    accountNumber: Optional[Any] = None
    accountHolder: Optional[Any] = None
    email: Optional[Any] = None
    initialBalance: Optional[Any] = None


class DepositIn(BaseModel):
    """Schema for depositing money into an account"""
    accountNumber: Optional[Any] = None
    amount: Optional[Any] = None


class WithdrawIn(BaseModel):
    """Schema for withdrawing money from an account"""
    accountNumber: Optional[Any] = None
    amount: Optional[Any] = None


class TransferIn(BaseModel):
    """Schema for transferring money between accounts"""
    fromAccount: Optional[Any] = None
    toAccount: Optional[Any] = None
    amount: Optional[Any] = None
    description: Optional[Any] = None


# ============================
#        TRANSACTION OUTPUT
# ============================

class BalanceMovement(BaseModel):
    """Single-account deposit or withdrawal summary"""
    type: str
    accountNumber: str
    amount: Amount
    previousBalance: Amount
    newBalance: Amount
    timestamp: datetime = Field(default_factory=utcnow)


class TransferParty(BaseModel):
    accountNumber: str
    accountHolder: str
    balanceBefore: Amount
    balanceAfter: Amount


class TransferRecord(BaseModel):
    """Schema for a completed transfer"""
    transactionId: str
    type: str = "TRANSFER"
    fromAccount: str
    toAccount: str
    amount: Amount
    description: Any
    sender: TransferParty
    receiver: TransferParty
    status: str = "SUCCESS"
    timestamp: datetime = Field(default_factory=utcnow)
