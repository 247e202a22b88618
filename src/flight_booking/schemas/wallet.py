"""Pydantic schemas for Wallet resources"""
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from flight_booking.models.wallet_transaction import TransactionKind
from flight_booking.schemas.base import CamelModel


class AmountRequest(CamelModel):
    amount: int = Field(..., gt=0)


class TransferRequest(CamelModel):
    amount: int = Field(..., gt=0)
    recipient_id: int = Field(..., gt=0)


class TransactionResponse(CamelModel):
    id: int
    amount: int
    kind: TransactionKind
    description: str
    booking_id: Optional[int] = None
    created_at: datetime


class WalletResponse(CamelModel):
    user_id: int
    balance: int
    transactions: List[TransactionResponse]


class BalanceResponse(CamelModel):
    balance: int
    transaction: Optional[TransactionResponse] = None


class TransactionListResponse(CamelModel):
    transactions: List[TransactionResponse]
    total: int
