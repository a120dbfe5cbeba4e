"""
Position aggregation over investment lots.

Pure functions: the input records are read, never modified. Every call
builds fresh result objects from the snapshot it is given.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, Iterable, List, Optional

from .models import (
    AggregatedPosition,
    AggregatedSoldPosition,
    GroupingScope,
    Investment,
    InvestmentStatus,
    InvestmentView,
    LotMetrics,
)
from .numeric import (
    MarketValue,
    coerce_number,
    optional_number,
    ratio_of_return,
    safe_divide,
)
from .parsing import display_ticker, has_status, normalize_ticker

logger = logging.getLogger(__name__)


@dataclass
class _ActiveGroup:
    ticker: str
    type: Optional[str]
    currency: Optional[str]
    portfolio_id: Optional[Any]
    total_amount: float = 0.0
    total_purchase_cost: float = 0.0
    market_value: MarketValue = field(default_factory=MarketValue.known)
    members: List[InvestmentView] = field(default_factory=list)


@dataclass
class _SoldGroup:
    ticker: str
    type: Optional[str]
    currency: Optional[str]
    total_amount: float = 0.0
    purchase_weighted: float = 0.0
    sell_weighted: float = 0.0
    realized_pnl: float = 0.0
    realized_cost: float = 0.0
    members: List[InvestmentView] = field(default_factory=list)


def _group_key(investment: Investment, ticker_key: str, scope: GroupingScope) -> Hashable:
    if scope is GroupingScope.PORTFOLIO:
        return (investment.portfolio_id, ticker_key)
    return ticker_key


def active_lot_metrics(investment: Investment) -> LotMetrics:
    """Cost, market value and return ratio of a single active lot."""
    amount = coerce_number(investment.amount)
    cost = amount * coerce_number(investment.purchase_price)
    price = optional_number(investment.current_value)
    market_value = amount * price if price is not None else None
    return LotMetrics(
        cost=cost,
        market_value=market_value,
        percent_profit=ratio_of_return(market_value, cost),
    )


def sold_lot_metrics(investment: Investment) -> LotMetrics:
    """Cost and realized P&L of a single sold lot (None without a sell price)."""
    amount = coerce_number(investment.amount)
    purchase_price = coerce_number(investment.purchase_price)
    cost = amount * purchase_price
    sell_price = optional_number(investment.sell_price)
    if sell_price is None:
        return LotMetrics(cost=cost)
    proceeds = amount * sell_price
    return LotMetrics(
        cost=cost,
        market_value=proceeds,
        percent_profit=ratio_of_return(proceeds, cost),
        realized_pnl=(sell_price - purchase_price) * amount,
    )


def aggregate_active(
    investments: Iterable[Investment],
    scope: GroupingScope = GroupingScope.TICKER,
) -> List[AggregatedPosition]:
    """
    Aggregate active lots into positions.

    Args:
        investments: Lots in any order, from any number of portfolios.
            Records that are not ACTIVE or have no ticker are skipped.
        scope: TICKER merges portfolios, PORTFOLIO keeps one row per
            (portfolio, ticker)

    Returns:
        Positions sorted by ticker. A position's total_current_value and
        percent_profit are None when any of its lots has no current value.
    """
    groups: Dict[Hashable, _ActiveGroup] = {}

    for investment in investments:
        if not has_status(investment, InvestmentStatus.ACTIVE):
            continue
        ticker_key = normalize_ticker(investment.ticker)
        if ticker_key is None:
            logger.debug("Skipping active lot %r without ticker", investment.id)
            continue

        key = _group_key(investment, ticker_key, scope)
        group = groups.get(key)
        if group is None:
            group = _ActiveGroup(
                ticker=display_ticker(investment.ticker),
                type=investment.type,
                currency=investment.currency,
                portfolio_id=investment.portfolio_id if scope is GroupingScope.PORTFOLIO else None,
            )
            groups[key] = group

        amount = coerce_number(investment.amount)
        metrics = active_lot_metrics(investment)
        group.total_amount += amount
        group.total_purchase_cost += metrics.cost
        group.market_value = group.market_value.plus(metrics.market_value)
        group.members.append(InvestmentView(base=investment, derived=metrics))

    positions = []
    for group in groups.values():
        current_value = group.market_value.value
        positions.append(
            AggregatedPosition(
                ticker=group.ticker,
                type=group.type,
                currency=group.currency,
                portfolio_id=group.portfolio_id,
                total_amount=group.total_amount,
                total_purchase_cost=group.total_purchase_cost,
                average_purchase_price=safe_divide(group.total_purchase_cost, group.total_amount),
                total_current_value=current_value,
                percent_profit=ratio_of_return(current_value, group.total_purchase_cost),
                unrealized_pnl=(
                    current_value - group.total_purchase_cost
                    if current_value is not None else None
                ),
                individual_investments=tuple(group.members),
            )
        )

    positions.sort(key=lambda p: normalize_ticker(p.ticker) or "")
    logger.debug("Aggregated %d active positions (scope=%s)", len(positions), scope.value)
    return positions


def aggregate_sold(investments: Iterable[Investment]) -> List[AggregatedSoldPosition]:
    """
    Aggregate sold lots by ticker across all portfolios.

    Lots without a sell price still count toward amounts and averages but
    add nothing to realized P&L. Output keeps first-appearance order.
    """
    groups: Dict[str, _SoldGroup] = {}

    for investment in investments:
        if not has_status(investment, InvestmentStatus.SOLD):
            continue
        ticker_key = normalize_ticker(investment.ticker)
        if ticker_key is None:
            logger.debug("Skipping sold lot %r without ticker", investment.id)
            continue

        group = groups.get(ticker_key)
        if group is None:
            group = _SoldGroup(
                ticker=display_ticker(investment.ticker),
                type=investment.type,
                currency=investment.currency,
            )
            groups[ticker_key] = group

        amount = coerce_number(investment.amount)
        purchase_price = coerce_number(investment.purchase_price)
        sell_price = optional_number(investment.sell_price)
        metrics = sold_lot_metrics(investment)

        group.total_amount += amount
        group.purchase_weighted += purchase_price * amount
        if sell_price is not None:
            group.sell_weighted += sell_price * amount
            group.realized_pnl += metrics.realized_pnl
            group.realized_cost += metrics.cost
        group.members.append(InvestmentView(base=investment, derived=metrics))

    return [
        AggregatedSoldPosition(
            ticker=group.ticker,
            type=group.type,
            currency=group.currency,
            total_amount=group.total_amount,
            average_purchase_price=safe_divide(group.purchase_weighted, group.total_amount),
            average_sell_price=safe_divide(group.sell_weighted, group.total_amount),
            realized_pnl_absolute=group.realized_pnl,
            realized_pnl_percent=ratio_of_return(
                group.realized_cost + group.realized_pnl, group.realized_cost
            ),
            individual_investments=tuple(group.members),
        )
        for group in groups.values()
    ]
