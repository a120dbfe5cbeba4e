"""Domain layer - investment records and the aggregation engine."""

from .models import (
    AggregatedPosition,
    AggregatedSoldPosition,
    AllocationDetail,
    CategorizedInvestments,
    CurrencyAllocationRow,
    GroupingScope,
    Investment,
    InvestmentStatus,
    InvestmentView,
    LotMetrics,
    PerformerSnapshot,
    Portfolio,
    PortfolioSummary,
)
from .allocation import (
    allocation_by_category,
    by_asset_type,
    by_currency,
    currency_allocation_rows,
    sort_allocation,
)
from .parsing import categorize_investments, normalize_ticker
from .positions import aggregate_active, aggregate_sold
from .summary import build_portfolio_summary

__all__ = [
    "AggregatedPosition",
    "AggregatedSoldPosition",
    "AllocationDetail",
    "CategorizedInvestments",
    "CurrencyAllocationRow",
    "GroupingScope",
    "Investment",
    "InvestmentStatus",
    "InvestmentView",
    "LotMetrics",
    "PerformerSnapshot",
    "Portfolio",
    "PortfolioSummary",
    "aggregate_active",
    "aggregate_sold",
    "allocation_by_category",
    "build_portfolio_summary",
    "by_asset_type",
    "by_currency",
    "categorize_investments",
    "currency_allocation_rows",
    "normalize_ticker",
    "sort_allocation",
]
