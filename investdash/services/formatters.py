"""Display formatters for engine results (pure functions)."""

import math
from typing import Dict, List, Optional

from ..domain.models import AggregatedPosition, AggregatedSoldPosition

NOT_AVAILABLE = "n/a"
INFINITE_PERCENT = "∞%"


def format_percent_value(percent: Optional[float], decimals: int = 2) -> str:
    """Format a percentage that is already scaled by 100."""
    if percent is None or math.isnan(percent):
        return NOT_AVAILABLE
    if math.isinf(percent):
        return INFINITE_PERCENT if percent > 0 else f"-{INFINITE_PERCENT}"
    sign = "+" if percent > 0 else ""
    return f"{sign}{percent:.{decimals}f}%"


def format_ratio_percent(ratio: Optional[float], decimals: int = 2) -> str:
    """
    Format a return ratio (0.25) as a percentage ("+25.00%").

    None means the value could not be evaluated and is shown as "n/a",
    distinct from "0.00%"; an infinite return is shown as "∞%".
    """
    if ratio is None:
        return NOT_AVAILABLE
    return format_percent_value(ratio * 100, decimals)


def format_money(value: Optional[float], decimals: int = 2) -> str:
    """Format amount with thousand separators."""
    if value is None or not math.isfinite(value):
        return NOT_AVAILABLE
    return f"{value:,.{decimals}f}"


def position_display(position: AggregatedPosition) -> Dict[str, str]:
    """Display strings for an active position row."""
    return {
        "percentProfitDisplay": format_ratio_percent(position.percent_profit),
        "totalCurrentValueDisplay": format_money(position.total_current_value),
        "unrealizedPnlDisplay": format_money(position.unrealized_pnl),
    }


def sold_position_display(position: AggregatedSoldPosition) -> Dict[str, str]:
    """Display strings for a sold position row."""
    return {
        "realizedPnlDisplay": format_money(position.realized_pnl_absolute),
        "realizedPnlPercentDisplay": format_ratio_percent(position.realized_pnl_percent),
    }


def format_positions_text(positions: List[AggregatedPosition]) -> str:
    """
    Render active positions as a plain-text table.

    Args:
        positions: Aggregated positions

    Returns:
        Formatted text string
    """
    if not positions:
        return "No active positions"

    lines = ["Active positions", ""]
    for p in positions:
        lines.append(
            f"{p.ticker}: qty {p.total_amount:g} | avg {format_money(p.average_purchase_price)} | "
            f"value {format_money(p.total_current_value)} | "
            f"P/L {format_ratio_percent(p.percent_profit)}"
        )
    return "\n".join(lines)
