"""
Wallet Service - ledger primitives and wallet operations

`credit` and `debit` only stage changes inside the caller's transaction;
the public operations (add_funds, withdraw, transfer) and the booking
service decide when to commit. Balance changes are single conditional
UPDATE statements so concurrent writers can never drive a balance negative.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from flight_booking.core.clock import utcnow
from flight_booking.core.config import settings
from flight_booking.core.metrics import wallet_transactions_total
from flight_booking.models import TransactionKind, Wallet, WalletTransaction
from flight_booking.services.errors import InsufficientFundsError, InvalidInputError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerCheck:
    starting_balance: int
    ledger_total: int
    balance: int

    @property
    def is_consistent(self) -> bool:
        return self.starting_balance + self.ledger_total == self.balance


def _require_positive(amount: int):
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        raise InvalidInputError("Please provide a valid amount", amount=amount)


def wallet_lock_query(wallet_ids: List[int]):
    """Row locks on the given wallets, taken in ascending id order"""
    return (
        select(Wallet.id)
        .where(Wallet.id.in_(wallet_ids))
        .order_by(Wallet.id)
        .with_for_update()
    )


class WalletService:
    """Service for wallet balances and the transaction ledger"""

    @staticmethod
    async def find_wallet(db: AsyncSession, user_id: int) -> Optional[Wallet]:
        result = await db.execute(
            select(Wallet).where(Wallet.user_id == user_id).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def get_or_create_wallet(db: AsyncSession, user_id: int) -> Wallet:
        """
        Return the user's wallet, creating it with the starting balance on first use.

        Creation commits immediately, so call this before staging other writes.
        """
        wallet = await WalletService.find_wallet(db, user_id)
        if wallet:
            return wallet

        wallet = Wallet(
            user_id=user_id,
            starting_balance=settings.WALLET_STARTING_BALANCE,
            balance=settings.WALLET_STARTING_BALANCE,
        )
        db.add(wallet)
        try:
            await db.commit()
        except IntegrityError:
            # Another request created it first
            await db.rollback()
            wallet = await WalletService.find_wallet(db, user_id)
            if wallet is None:
                raise
            return wallet

        logger.info(f"Created wallet for user {user_id}", extra={'user_id': user_id})
        return wallet

    @staticmethod
    async def credit(
        db: AsyncSession,
        wallet: Wallet,
        amount: int,
        description: str,
        booking_id: Optional[int] = None,
    ) -> WalletTransaction:
        """Raise the balance and append a credit entry. Always succeeds for a positive amount."""
        _require_positive(amount)

        await db.execute(
            update(Wallet)
            .where(Wallet.id == wallet.id)
            .values(balance=Wallet.balance + amount, version=Wallet.version + 1, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        entry = WalletTransaction(
            wallet_id=wallet.id,
            amount=amount,
            kind=TransactionKind.CREDIT,
            description=description,
            booking_id=booking_id,
            created_at=utcnow(),
        )
        db.add(entry)
        await db.flush()
        await db.refresh(wallet, ["balance", "version"])
        return entry

    @staticmethod
    async def debit(
        db: AsyncSession,
        wallet: Wallet,
        amount: int,
        description: str,
        booking_id: Optional[int] = None,
    ) -> WalletTransaction:
        """
        Lower the balance and append a debit entry.

        Raises InsufficientFundsError without touching the wallet if the
        balance can't cover the amount; there is no partial debit.
        """
        _require_positive(amount)

        result = await db.execute(
            update(Wallet)
            .where(Wallet.id == wallet.id, Wallet.balance >= amount)
            .values(balance=Wallet.balance - amount, version=Wallet.version + 1, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await db.refresh(wallet, ["balance", "version"])
            raise InsufficientFundsError(required=amount, available=wallet.balance)

        entry = WalletTransaction(
            wallet_id=wallet.id,
            amount=-amount,
            kind=TransactionKind.DEBIT,
            description=description,
            booking_id=booking_id,
            created_at=utcnow(),
        )
        db.add(entry)
        await db.flush()
        await db.refresh(wallet, ["balance", "version"])
        return entry

    @staticmethod
    async def add_funds(db: AsyncSession, user_id: int, amount: int,
                        description: str = "Wallet top-up") -> WalletTransaction:
        _require_positive(amount)
        wallet = await WalletService.get_or_create_wallet(db, user_id)
        try:
            entry = await WalletService.credit(db, wallet, amount, description)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        wallet_transactions_total.labels(kind=TransactionKind.CREDIT.value).inc()
        logger.info(f"Added {amount} to wallet of user {user_id}",
                    extra={'user_id': user_id, 'amount': amount})
        return entry

    @staticmethod
    async def withdraw(db: AsyncSession, user_id: int, amount: int,
                       description: str = "Wallet withdrawal") -> WalletTransaction:
        _require_positive(amount)
        wallet = await WalletService.get_or_create_wallet(db, user_id)
        try:
            entry = await WalletService.debit(db, wallet, amount, description)
            await db.commit()
        except InsufficientFundsError:
            await db.rollback()
            logger.warning(f"Withdrawal of {amount} rejected for user {user_id}",
                           extra={'user_id': user_id, 'amount': amount})
            raise
        except Exception:
            await db.rollback()
            raise

        wallet_transactions_total.labels(kind=TransactionKind.DEBIT.value).inc()
        logger.info(f"Withdrew {amount} from wallet of user {user_id}",
                    extra={'user_id': user_id, 'amount': amount})
        return entry

    @staticmethod
    async def transfer(db: AsyncSession, from_user_id: int, to_user_id: int, amount: int) -> Wallet:
        """
        Move funds between two wallets: debit then credit in one transaction.

        Both rows are locked in ascending id order first, so opposite
        transfers between the same two users can't deadlock. If the debit
        fails the credit never happens. Returns the sender's wallet.
        """
        _require_positive(amount)
        if from_user_id == to_user_id:
            raise InvalidInputError("Cannot transfer funds to yourself")

        sender = await WalletService.get_or_create_wallet(db, from_user_id)
        recipient = await WalletService.get_or_create_wallet(db, to_user_id)

        try:
            await db.execute(wallet_lock_query([sender.id, recipient.id]))
            await WalletService.debit(db, sender, amount, f"Wallet transfer to user {to_user_id}")
            await WalletService.credit(db, recipient, amount, f"Wallet transfer from user {from_user_id}")
            await db.commit()
        except InsufficientFundsError:
            await db.rollback()
            logger.warning(f"Transfer of {amount} from user {from_user_id} rejected",
                           extra={'user_id': from_user_id, 'amount': amount})
            raise
        except Exception:
            await db.rollback()
            raise

        wallet_transactions_total.labels(kind=TransactionKind.DEBIT.value).inc()
        wallet_transactions_total.labels(kind=TransactionKind.CREDIT.value).inc()
        logger.info(f"Transferred {amount} from user {from_user_id} to user {to_user_id}",
                    extra={'user_id': from_user_id, 'amount': amount})
        return sender

    @staticmethod
    async def get_transactions(db: AsyncSession, user_id: int, limit: int = 100) -> List[WalletTransaction]:
        """Ledger entries, newest first"""
        wallet = await WalletService.get_or_create_wallet(db, user_id)
        query = (
            select(WalletTransaction)
            .where(WalletTransaction.wallet_id == wallet.id)
            .order_by(WalletTransaction.id.desc())
            .limit(limit)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def verify_ledger(db: AsyncSession, user_id: int) -> LedgerCheck:
        """Compare the stored balance with starting balance plus every ledger entry"""
        wallet = await WalletService.get_or_create_wallet(db, user_id)
        await db.refresh(wallet, ["balance"])
        total = await db.execute(
            select(func.coalesce(func.sum(WalletTransaction.amount), 0))
            .where(WalletTransaction.wallet_id == wallet.id)
        )
        return LedgerCheck(
            starting_balance=wallet.starting_balance,
            ledger_total=int(total.scalar()),
            balance=wallet.balance,
        )
