# app/models.py
import enum
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, DateTime, ForeignKey, Enum, Numeric, Boolean, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class TransactionType(str, enum.Enum):
    BUY = "BUY"
    SELL = "SELL"


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    transactions: Mapped[list["Transaction"]] = relationship(back_populates="user")


class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        # "All transactions of user X", the only query the analytics engine issues
        Index('ix_transaction_user_date', 'user_id', 'date'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    symbol: Mapped[str] = mapped_column(String, index=True)  # Yahoo symbol, e.g. "AAPL", "600519.SS"
    transaction_type: Mapped[TransactionType] = mapped_column(Enum(TransactionType))
    date: Mapped[datetime] = mapped_column(DateTime, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    # Numeric(18, 8) supports values up to 9,999,999,999.99999999
    quantity: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    price_per_share: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    currency: Mapped[str] = mapped_column(String, default="USD")  # ISO code; "RMB" is stored as "CNY"
    fee: Mapped[Decimal] = mapped_column(Numeric(18, 8), default=Decimal(0))

    user: Mapped["User"] = relationship(back_populates="transactions")
