"""Wallet API endpoints"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from flight_booking.api.dependencies import get_current_user_id
from flight_booking.core.database import get_db
from flight_booking.middleware.rate_limiter import limiter
from flight_booking.schemas import (
    AmountRequest,
    BalanceResponse,
    TransactionListResponse,
    TransactionResponse,
    TransferRequest,
    WalletResponse,
)
from flight_booking.services import WalletService

router = APIRouter()


@router.get("/wallet", response_model=WalletResponse)
@limiter.limit("60/minute")
async def get_wallet(
    request: Request,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Get (or lazily create) the current user's wallet"""
    wallet = await WalletService.get_or_create_wallet(db, user_id)
    transactions = await WalletService.get_transactions(db, user_id)
    return WalletResponse(
        user_id=wallet.user_id,
        balance=wallet.balance,
        transactions=[TransactionResponse.model_validate(t) for t in transactions],
    )


@router.post("/wallet/add-funds", response_model=BalanceResponse)
@limiter.limit("10/minute")
async def add_funds(
    request: Request,
    payload: AmountRequest,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    entry = await WalletService.add_funds(db, user_id, payload.amount)
    wallet = await WalletService.find_wallet(db, user_id)
    return BalanceResponse(balance=wallet.balance, transaction=TransactionResponse.model_validate(entry))


@router.post("/wallet/withdraw", response_model=BalanceResponse)
@limiter.limit("10/minute")
async def withdraw_funds(
    request: Request,
    payload: AmountRequest,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    entry = await WalletService.withdraw(db, user_id, payload.amount)
    wallet = await WalletService.find_wallet(db, user_id)
    return BalanceResponse(balance=wallet.balance, transaction=TransactionResponse.model_validate(entry))


@router.post("/wallet/transfer", response_model=BalanceResponse)
@limiter.limit("10/minute")
async def transfer_funds(
    request: Request,
    payload: TransferRequest,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Transfer funds to another user's wallet"""
    sender = await WalletService.transfer(db, user_id, payload.recipient_id, payload.amount)
    return BalanceResponse(balance=sender.balance)


@router.get("/wallet/transactions", response_model=TransactionListResponse)
@limiter.limit("30/minute")
async def list_transactions(
    request: Request,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Ledger entries, newest first"""
    transactions = await WalletService.get_transactions(db, user_id)
    return TransactionListResponse(
        transactions=[TransactionResponse.model_validate(t) for t in transactions],
        total=len(transactions),
    )
