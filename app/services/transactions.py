# app/services/transactions.py
"""
Read access to a user's transaction ledger.

The analytics engine never works on ORM rows directly: the repository
returns immutable TransactionRecord values, detached from the session, so
one computation pass sees a fixed snapshot of the ledger.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models import Transaction, TransactionType
from app.services.market_data.markets import to_iso_code

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransactionRecord:
    """
    One buy or sell, as consumed by the analytics engine.

    Attributes:
        symbol: Provider symbol (e.g. "AAPL", "600519.SS")
        action: BUY or SELL
        shares: Quantity traded, always positive
        price: Price per share in ``currency``
        currency: ISO code of the trade currency
        date: Trade date (calendar day)
        fees: Fees paid in ``currency``
    """

    symbol: str
    action: TransactionType
    shares: Decimal
    price: Decimal
    currency: str
    date: date
    fees: Decimal = Decimal("0")

    @property
    def is_buy(self) -> bool:
        return self.action == TransactionType.BUY


class TransactionRepository:
    """Lists transactions per user, ordered by date."""

    def list_transactions(self, db: Session, user_id: int) -> list[TransactionRecord]:
        rows = db.scalars(
            select(Transaction)
            .where(Transaction.user_id == user_id)
            .order_by(Transaction.date, Transaction.id)
        ).all()

        logger.debug(f"Loaded {len(rows)} transactions for user {user_id}")
        return [self._to_record(row) for row in rows]

    @staticmethod
    def _to_record(row: Transaction) -> TransactionRecord:
        return TransactionRecord(
            symbol=row.symbol.strip().upper(),
            action=row.transaction_type,
            shares=Decimal(row.quantity),
            price=Decimal(row.price_per_share),
            currency=to_iso_code(row.currency),
            date=row.date.date(),
            fees=Decimal(row.fee or 0),
        )
