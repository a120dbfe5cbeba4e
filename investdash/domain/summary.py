"""Portfolio summary metrics (totals, P&L, allocation maps, best/worst lot)."""

import logging
import math
from typing import Dict, Iterable, Optional

from .models import Investment, PerformerSnapshot, PortfolioSummary
from .numeric import coerce_number, optional_number
from .parsing import UNKNOWN_CATEGORY, categorize_investments, normalize_currency

logger = logging.getLogger(__name__)


def pnl_percentage(pnl: float, cost: float) -> float:
    """P&L as percent of cost (x100). Infinite for a gain on zero cost."""
    if cost > 0:
        return pnl / cost * 100
    if pnl > 0:
        return math.inf
    return 0.0


def _allocation(values: Dict[str, float], total_value: float) -> Dict[str, float]:
    if total_value <= 0:
        return {}
    return {key: value / total_value * 100 for key, value in values.items()}


def _realized_pnl(investment: Investment) -> Optional[float]:
    sell_price = optional_number(investment.sell_price)
    purchase_price = optional_number(investment.purchase_price)
    amount = optional_number(investment.amount)
    if sell_price is None or purchase_price is None or amount is None:
        return None
    return (sell_price - purchase_price) * amount


def build_portfolio_summary(
    investments: Iterable[Investment],
    portfolio_name: str,
) -> PortfolioSummary:
    """
    Summarize a portfolio (or all portfolios) from its lots.

    Active lots without a current value are valued at their purchase price.
    Sold lots contribute realized P&L only when sell price, purchase price
    and amount are all known. Deleted lots are ignored.

    Args:
        investments: All lots of the portfolio(s), any status
        portfolio_name: Label carried into the summary

    Returns:
        PortfolioSummary
    """
    categorized = categorize_investments(investments)

    total_value = 0.0
    total_cost = 0.0
    value_by_type: Dict[str, float] = {}
    value_by_currency: Dict[str, float] = {}
    best: Optional[PerformerSnapshot] = None
    worst: Optional[PerformerSnapshot] = None

    for inv in categorized.active:
        amount = coerce_number(inv.amount)
        purchase_price = coerce_number(inv.purchase_price)
        current_price = optional_number(inv.current_value)
        if current_price is None:
            current_price = purchase_price

        holding_cost = purchase_price * amount
        holding_value = current_price * amount
        total_cost += holding_cost
        total_value += holding_value

        currency = normalize_currency(inv.currency) or UNKNOWN_CATEGORY
        asset_type = inv.type or UNKNOWN_CATEGORY
        value_by_currency[currency] = value_by_currency.get(currency, 0.0) + holding_value
        value_by_type[asset_type] = value_by_type.get(asset_type, 0.0) + holding_value

        snapshot = PerformerSnapshot(
            ticker=inv.ticker,
            type=inv.type,
            pnl_percent=pnl_percentage(holding_value - holding_cost, holding_cost),
            current_price=current_price,
            holding_value=holding_value,
        )
        if best is None or snapshot.pnl_percent > best.pnl_percent:
            best = snapshot
        if worst is None or snapshot.pnl_percent < worst.pnl_percent:
            worst = snapshot

    realized = 0.0
    for inv in categorized.sold:
        pnl = _realized_pnl(inv)
        if pnl is not None:
            realized += pnl

    unrealized = total_value - total_cost
    summary = PortfolioSummary(
        portfolio_name=portfolio_name,
        total_value=total_value,
        total_cost_basis=total_cost,
        unrealized_pnl_absolute=unrealized,
        unrealized_pnl_percentage=pnl_percentage(unrealized, total_cost),
        realized_pnl_absolute=realized,
        asset_allocation=_allocation(value_by_type, total_value),
        currency_allocation=_allocation(value_by_currency, total_value),
        active_investments_count=len(categorized.active),
        best_performer=best,
        worst_performer=worst,
    )
    logger.debug(
        "Summary for %s: value=%.2f cost=%.2f active=%d",
        portfolio_name, total_value, total_cost, summary.active_investments_count,
    )
    return summary
