# app/services/analytics/positions.py
"""
Position reconstruction from the transaction ledger.

Two views are provided:
- shares_held: net shares of a symbol as of a date, for the value series
- build_holdings: current positions with average-cost basis, for the dashboard
"""

import logging
from collections import defaultdict
from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from app.services.analytics.types import Holding
from app.services.constants import ZERO
from app.services.transactions import TransactionRecord

logger = logging.getLogger(__name__)


def shares_held(symbol: str, as_of: date, transactions: Iterable[TransactionRecord]) -> Decimal:
    """
    Net shares of ``symbol`` from every transaction dated on or before ``as_of``.

    Buys add, sells subtract. No validation: the result can be negative if
    the ledger sells more than it bought, and callers treat anything <= 0 as
    no position.
    """
    total = ZERO
    for txn in transactions:
        if txn.symbol != symbol or txn.date > as_of:
            continue
        total += txn.shares if txn.is_buy else -txn.shares
    return total


def group_by_symbol(transactions: Iterable[TransactionRecord]) -> dict[str, list[TransactionRecord]]:
    """Transactions per symbol, each list in date order."""
    grouped: dict[str, list[TransactionRecord]] = defaultdict(list)
    for txn in transactions:
        grouped[txn.symbol].append(txn)
    return {symbol: sorted(txns, key=lambda t: t.date) for symbol, txns in grouped.items()}


def build_holdings(transactions: Iterable[TransactionRecord]) -> list[Holding]:
    """
    Current holdings by the average-cost method.

    A buy adds ``shares * price + fees`` to the cost basis. A sell removes
    shares at the current average cost per share. Fully sold positions
    (shares <= 0) are left out. The cost basis stays in the currency of
    the symbol's first trade.
    """
    holdings: list[Holding] = []

    for symbol, txns in sorted(group_by_symbol(transactions).items()):
        holding = Holding(symbol=symbol, currency=txns[0].currency)

        for txn in txns:
            if txn.currency != holding.currency:
                logger.warning(
                    f"{symbol}: transaction in {txn.currency} mixed into "
                    f"{holding.currency} cost basis"
                )
            if txn.is_buy:
                holding.shares += txn.shares
                holding.cost_basis += txn.shares * txn.price + txn.fees
            elif holding.shares > 0:
                cost_per_share = holding.cost_basis / holding.shares
                holding.shares -= txn.shares
                holding.cost_basis -= cost_per_share * txn.shares
            else:
                holding.shares -= txn.shares

        if holding.shares > 0:
            holdings.append(holding)

    return holdings
