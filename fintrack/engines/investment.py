"""
Investment Valuation Engine

Maintains quantity and cost basis of a holding under its transaction
history, and derives valuation metrics on read.

DESIGN DECISION: Sells use weighted-average cost. The basis is reduced by
`invested_amount * sold / held_before`, always against the quantity held
before the sale, so selling everything leaves a zero basis.

SIP contributions are kept in their own ledger and aggregated at read time;
they never move the top-level quantity or cost basis.
"""

import math
from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from fintrack.engines.errors import (
    InvalidAmountError,
    InvalidStateError,
    NotSIPError,
)
from fintrack.models.investment import (
    AssetAllocation,
    Investment,
    InvestmentMetrics,
    InvestmentTransaction,
    PortfolioFilters,
    PortfolioSummary,
    SIPTransaction,
    TransactionType,
)
from fintrack.utils.decimal_utils import ZERO, coerce_decimal, percentage_of
from fintrack.utils.time_utils import utcnow


_ONE = Decimal("1")
_DAYS_PER_YEAR = Decimal("365")
_SECONDS_PER_DAY = 86400


# =============================================================================
# TRANSACTIONS
# =============================================================================

def add_transaction(
    investment: Investment,
    transaction_type: TransactionType,
    quantity,
    price=ZERO,
    note: str = "",
    executed_at: Optional[datetime] = None,
) -> Investment:
    """Apply one general transaction to a holding. See `apply_transaction`."""
    updated, _ = apply_transaction(
        investment, transaction_type, quantity, price, note, executed_at,
    )
    return updated


def apply_transaction(
    investment: Investment,
    transaction_type: TransactionType,
    quantity,
    price=ZERO,
    note: str = "",
    executed_at: Optional[datetime] = None,
) -> tuple[Investment, InvestmentTransaction]:
    """
    Apply one general transaction and return it alongside the holding.

    Buy:     basis += quantity * price, quantity grows, purchase price updated.
    Sell:     weighted-average cost; sold units are clamped to the holding.
    Dividend: recorded with amount = quantity * price; nothing else moves.
    Split:    `quantity` is the ratio; holdings multiply, purchase price divides.
    Bonus:    `quantity` units added at zero cost.

    Raises:
        InvalidAmountError: Non-positive quantity or negative price.
        InvalidStateError: Sell without any holdings.
    """
    transaction_type = TransactionType(transaction_type)
    quantity = coerce_decimal(quantity)
    price = coerce_decimal(price)

    if quantity <= 0:
        raise InvalidAmountError(
            "Transaction quantity must be positive",
            {"quantity": str(quantity)},
        )
    if price < 0:
        raise InvalidAmountError(
            "Transaction price cannot be negative",
            {"price": str(price)},
        )

    held = investment.quantity or ZERO
    invested = investment.invested_amount
    purchase_price = investment.purchase_price
    recorded_quantity = quantity
    amount = quantity * price

    if transaction_type == TransactionType.BUY:
        invested += amount
        held += quantity
        purchase_price = price

    elif transaction_type == TransactionType.SELL:
        if held <= 0:
            raise InvalidStateError(
                "Cannot sell without holdings",
                {"quantity": str(held)},
            )
        sold = min(quantity, held)
        invested -= invested * sold / held
        held = max(ZERO, held - sold)
        if held == 0:
            invested = ZERO
        recorded_quantity = sold
        amount = sold * price

    elif transaction_type == TransactionType.SPLIT:
        held *= quantity
        if purchase_price is not None:
            purchase_price = purchase_price / quantity
        amount = ZERO

    elif transaction_type == TransactionType.BONUS:
        held += quantity
        amount = ZERO

    transaction = InvestmentTransaction(
        type=transaction_type,
        quantity=recorded_quantity,
        price=price,
        amount=amount,
        date=executed_at or utcnow(),
        note=note,
    )
    # sorted() is stable, so same-date entries keep insertion order
    history = sorted([*investment.transactions, transaction], key=lambda t: t.date)

    updated = investment.model_copy(
        update={
            "transactions": history,
            "invested_amount": invested,
            "quantity": held,
            "purchase_price": purchase_price,
            "updated_at": utcnow(),
        },
        deep=True,
    )
    return updated, transaction


def add_sip_transaction(
    investment: Investment,
    amount,
    nav,
    units=None,
    note: str = "",
    executed_at: Optional[datetime] = None,
) -> Investment:
    """
    Record one SIP contribution.

    `units` defaults to amount / nav.

    Raises:
        NotSIPError: The holding is not configured for SIP.
        InvalidAmountError: Non-positive amount, NAV or units.
    """
    if not investment.is_sip:
        raise NotSIPError("This is not a SIP investment")

    amount = coerce_decimal(amount)
    nav = coerce_decimal(nav)
    if amount <= 0 or nav <= 0:
        raise InvalidAmountError(
            "SIP amount and NAV must be positive",
            {"amount": str(amount), "nav": str(nav)},
        )

    units = amount / nav if units is None else coerce_decimal(units)
    if units <= 0:
        raise InvalidAmountError(
            "SIP units must be positive",
            {"units": str(units)},
        )

    transaction = SIPTransaction(
        amount=amount,
        nav=nav,
        units=units,
        date=executed_at or utcnow(),
        note=note,
    )
    return investment.model_copy(
        update={
            "sip_transactions": [*investment.sip_transactions, transaction],
            "updated_at": utcnow(),
        },
        deep=True,
    )


def update_current_value(
    investment: Investment,
    new_value,
    current_price=None,
) -> Investment:
    """
    Revalue a holding.

    The per-unit price is only recorded for holdings that track a quantity.
    """
    new_value = coerce_decimal(new_value)
    if new_value < 0:
        raise InvalidAmountError(
            "Current value cannot be negative",
            {"current_value": str(new_value)},
        )

    now = utcnow()
    changes = {"current_value": new_value, "last_updated": now, "updated_at": now}
    if current_price is not None and investment.quantity:
        changes["price_per_unit"] = coerce_decimal(current_price)

    return investment.model_copy(update=changes, deep=True)


# =============================================================================
# DERIVED METRICS
# =============================================================================

def days_held(investment: Investment, as_of: Optional[datetime] = None) -> int:
    """Whole days between purchase and `as_of`, rounded up."""
    as_of = as_of or utcnow()
    seconds = abs((as_of - investment.purchase_date).total_seconds())
    return math.ceil(seconds / _SECONDS_PER_DAY)


def investment_metrics(
    investment: Investment,
    as_of: Optional[datetime] = None,
) -> InvestmentMetrics:
    """Profit/loss, holding period, annualized return and SIP aggregates."""
    invested = investment.invested_amount
    profit_loss = investment.current_value - invested
    held_days = days_held(investment, as_of)

    annualized = ZERO
    if held_days > 0 and invested > 0:
        growth = _ONE + profit_loss / invested
        annualized = growth ** (_DAYS_PER_YEAR / Decimal(held_days)) - _ONE

    sips = investment.sip_transactions
    average_nav = ZERO
    if sips:
        average_nav = sum((t.nav for t in sips), ZERO) / len(sips)

    return InvestmentMetrics(
        profit_loss=profit_loss,
        profit_loss_percentage=percentage_of(profit_loss, invested),
        days_held=held_days,
        annualized_return=annualized,
        total_sip_invested=sum((t.amount for t in sips), ZERO),
        total_sip_units=sum((t.units for t in sips), ZERO),
        average_nav=average_nav,
    )


# =============================================================================
# PORTFOLIO QUERIES
# =============================================================================

def _contains(haystack: Optional[str], needle: str) -> bool:
    return haystack is not None and needle in haystack.lower()


def filter_investments(
    investments: Iterable[Investment],
    filters: Optional[PortfolioFilters] = None,
) -> list[Investment]:
    """Holdings matching every set filter; text filters are case-insensitive."""
    if filters is None:
        return list(investments)

    category = filters.category.strip().lower() if filters.category else None
    search = filters.search.strip().lower() if filters.search else None

    matched = []
    for inv in investments:
        if filters.investment_type and inv.investment_type != filters.investment_type:
            continue
        if filters.risk_level and inv.risk_level != filters.risk_level:
            continue
        if category and not _contains(inv.category, category):
            continue
        if search and not any(
            _contains(field, search)
            for field in (inv.name, inv.ticker_symbol, inv.sector, inv.category)
        ):
            continue
        matched.append(inv)
    return matched


def portfolio_summary(
    investments: Iterable[Investment],
    filters: Optional[PortfolioFilters] = None,
) -> PortfolioSummary:
    """Totals over the filtered holdings."""
    selected = filter_investments(investments, filters)

    total_invested = sum((inv.invested_amount for inv in selected), ZERO)
    current_value = sum((inv.current_value for inv in selected), ZERO)
    total_pnl = current_value - total_invested

    return PortfolioSummary(
        total_invested=total_invested,
        current_value=current_value,
        total_pnl=total_pnl,
        pnl_percent=percentage_of(total_pnl, total_invested),
        count=len(selected),
        sip_count=sum(1 for inv in selected if inv.is_sip),
        total_sip_invested=sum(
            (t.amount for inv in selected for t in inv.sip_transactions),
            ZERO,
        ),
    )


def asset_allocation(investments: Iterable[Investment]) -> list[AssetAllocation]:
    """Per-type totals, largest current value first."""
    groups: dict = defaultdict(list)
    for inv in investments:
        groups[inv.investment_type].append(inv)

    portfolio_value = sum(
        (inv.current_value for group in groups.values() for inv in group),
        ZERO,
    )

    allocation = []
    for investment_type, group in groups.items():
        invested = sum((inv.invested_amount for inv in group), ZERO)
        value = sum((inv.current_value for inv in group), ZERO)
        pnl = value - invested
        allocation.append(AssetAllocation(
            investment_type=investment_type,
            total_invested=invested,
            current_value=value,
            count=len(group),
            pnl=pnl,
            pnl_percent=percentage_of(pnl, invested),
            percentage=percentage_of(value, portfolio_value),
        ))

    allocation.sort(key=lambda a: a.current_value, reverse=True)
    return allocation


__all__ = [
    "add_sip_transaction",
    "add_transaction",
    "apply_transaction",
    "asset_allocation",
    "days_held",
    "filter_investments",
    "investment_metrics",
    "portfolio_summary",
    "update_current_value",
]
