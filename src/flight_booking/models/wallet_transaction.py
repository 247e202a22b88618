"""
WalletTransaction model - append-only ledger entry
"""
from enum import Enum as PyEnum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from flight_booking.core.clock import utcnow
from flight_booking.core.database import Base


class TransactionKind(PyEnum):
    CREDIT = "credit"
    DEBIT = "debit"


class WalletTransaction(Base):
    __tablename__ = "wallet_transactions"

    id = Column(Integer, primary_key=True, index=True)
    wallet_id = Column(Integer, ForeignKey("wallets.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Integer, nullable=False)  # Signed: positive credit, negative debit
    kind = Column(Enum(TransactionKind), nullable=False)
    description = Column(String(255), nullable=False)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    wallet = relationship("Wallet", back_populates="transactions")

    def __repr__(self):
        return f"<WalletTransaction(wallet_id={self.wallet_id}, {self.kind.value} {self.amount})>"
