"""Ticker normalization and status filtering utilities."""

import logging
from typing import Iterable, Optional

from .models import CategorizedInvestments, Investment, InvestmentStatus

logger = logging.getLogger(__name__)

# Label for lots without a type or currency
UNKNOWN_CATEGORY = "Unknown"


def normalize_ticker(ticker: Optional[str]) -> Optional[str]:
    """
    Normalize ticker symbol for grouping.

    Args:
        ticker: Raw ticker string

    Returns:
        Trimmed uppercase ticker, or None when empty/absent
    """
    if ticker is None:
        return None
    normalized = str(ticker).strip().upper()
    return normalized or None


def display_ticker(ticker: str) -> str:
    """Ticker as shown to the user: trimmed, original casing."""
    return str(ticker).strip()


def normalize_currency(currency: Optional[str]) -> Optional[str]:
    """Trimmed uppercase currency code, or None when empty/absent."""
    if currency is None:
        return None
    normalized = str(currency).strip().upper()
    return normalized or None


def has_status(investment: Investment, status: InvestmentStatus) -> bool:
    return InvestmentStatus.parse(investment.status) is status


def categorize_investments(investments: Iterable[Investment]) -> CategorizedInvestments:
    """
    Split records into active and sold lots.

    Deleted records and records with an unknown status are dropped.
    """
    active = []
    sold = []
    skipped = 0
    for investment in investments:
        status = InvestmentStatus.parse(investment.status)
        if status is InvestmentStatus.ACTIVE:
            active.append(investment)
        elif status is InvestmentStatus.SOLD:
            sold.append(investment)
        else:
            skipped += 1

    logger.debug(
        "Categorized investments: %d active, %d sold, %d skipped",
        len(active), len(sold), skipped,
    )
    return CategorizedInvestments(active=active, sold=sold)
