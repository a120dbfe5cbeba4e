"""Service layer - data service access, refresh orchestration, display."""

from .formatters import (
    format_money,
    format_percent_value,
    format_positions_text,
    format_ratio_percent,
)
from .investment_client import InvestmentServiceClient, InvestmentServiceError
from .portfolio_service import PortfolioSnapshot, PortfolioViewService, RefreshSequencer

__all__ = [
    "InvestmentServiceClient",
    "InvestmentServiceError",
    "PortfolioSnapshot",
    "PortfolioViewService",
    "RefreshSequencer",
    "format_money",
    "format_percent_value",
    "format_positions_text",
    "format_ratio_percent",
]
