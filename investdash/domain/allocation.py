"""
Allocation breakdowns by asset type or currency.

Pure calculation functions; grouping is done with pandas.
"""

import logging
import math
from typing import Callable, Iterable, List, Mapping, Optional

import pandas as pd

from .models import AllocationDetail, CurrencyAllocationRow, Investment
from .numeric import coerce_number, optional_number, to_float
from .parsing import UNKNOWN_CATEGORY, normalize_currency

logger = logging.getLogger(__name__)

# Sortable columns -> AllocationDetail attribute
SORT_COLUMNS = {
    "type": "category",
    "category": "category",
    "value": "value",
    "percentage": "percentage",
    "profit": "profit_value",
}


def by_asset_type(investment: Investment) -> Optional[str]:
    return investment.type


def by_currency(investment: Investment) -> Optional[str]:
    return normalize_currency(investment.currency)


def _percentage_of(value: float, total_value: float) -> float:
    if not math.isfinite(total_value) or total_value <= 0:
        return 0.0
    return value / total_value * 100


def allocation_by_category(
    investments: Iterable[Investment],
    total_value: float,
    key_fn: Callable[[Investment], Optional[str]] = by_asset_type,
) -> List[AllocationDetail]:
    """
    Break investments down by category.

    Args:
        investments: Lots to include (typically the active ones)
        total_value: Portfolio value the percentages are relative to;
            a zero or non-finite total yields 0% for every category
        key_fn: Category of an investment (asset type, currency, ...)

    Returns:
        One AllocationDetail per category, sorted by category name
    """
    rows = []
    for investment in investments:
        price = optional_number(investment.current_value) or 0.0
        rows.append({
            "category": key_fn(investment) or UNKNOWN_CATEGORY,
            "value": price * coerce_number(investment.amount),
            "cost": coerce_number(investment.total_cost),
        })
    if not rows:
        return []

    total = to_float(total_value)
    if total is None:
        total = 0.0
    grouped = pd.DataFrame(rows).groupby("category", sort=False)[["value", "cost"]].sum()

    details = []
    for category, group in grouped.iterrows():
        value = float(group["value"])
        cost = float(group["cost"])
        profit = value - cost
        details.append(
            AllocationDetail(
                category=str(category),
                value=value,
                percentage=_percentage_of(value, total),
                profit_value=profit,
                profit_percentage=profit / cost * 100 if cost > 0 else 0.0,
            )
        )

    logger.debug("Allocation computed for %d categories", len(details))
    return sort_allocation(details, "type", "asc")


def sort_allocation(
    details: List[AllocationDetail],
    column: Optional[str],
    direction: Optional[str],
) -> List[AllocationDetail]:
    """
    Re-sort allocation rows by a table column.

    Args:
        details: Rows to sort (not modified)
        column: "type", "value", "percentage" or "profit"
        direction: "asc" or "desc"; empty leaves the order as is

    Returns:
        New sorted list
    """
    if not column or not direction:
        return list(details)
    attribute = SORT_COLUMNS.get(column)
    if attribute is None:
        logger.debug("Unknown allocation sort column %r", column)
        return list(details)
    return sorted(
        details,
        key=lambda detail: getattr(detail, attribute),
        reverse=direction.lower() == "desc",
    )


def currency_allocation_rows(allocation: Mapping[str, float]) -> List[CurrencyAllocationRow]:
    """Convert a precomputed {currency: percentage} map into rows, largest first."""
    rows = [
        CurrencyAllocationRow(currency=str(currency), percentage=to_float(pct) or 0.0)
        for currency, pct in allocation.items()
    ]
    rows.sort(key=lambda row: row.percentage, reverse=True)
    return rows
