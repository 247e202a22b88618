"""
Wallet model - one spendable balance per user
"""
from sqlalchemy import CheckConstraint, Column, DateTime, Integer
from sqlalchemy.orm import relationship

from flight_booking.core.clock import utcnow
from flight_booking.core.database import Base


class Wallet(Base):
    __tablename__ = "wallets"
    __table_args__ = (
        CheckConstraint('balance >= 0', name='ck_wallet_balance_non_negative'),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, unique=True, index=True)
    starting_balance = Column(Integer, nullable=False)
    balance = Column(Integer, nullable=False)
    version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    transactions = relationship("WalletTransaction", back_populates="wallet", cascade="all, delete-orphan",
                                order_by="WalletTransaction.id")

    def __repr__(self):
        return f"<Wallet(id={self.id}, user_id={self.user_id}, balance={self.balance})>"
