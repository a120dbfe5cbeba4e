"""Portfolio view service - loads lots and runs the aggregation engine."""

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..domain.allocation import allocation_by_category, by_asset_type
from ..domain.models import (
    AggregatedPosition,
    AggregatedSoldPosition,
    AllocationDetail,
    GroupingScope,
    Investment,
    PortfolioSummary,
)
from ..domain.parsing import categorize_investments
from ..domain.positions import aggregate_active, aggregate_sold
from ..domain.summary import build_portfolio_summary
from .investment_client import InvestmentServiceClient

logger = logging.getLogger(__name__)

ALL_PORTFOLIOS = "All Portfolios"


class RefreshSequencer:
    """
    Hands out increasing request tokens and orders results per view.

    A view is a portfolio id, or None for all portfolios. A result is
    accepted unless a newer token of the same view was already published,
    so a stale refresh can never overwrite a fresher snapshot of its view.
    """

    def __init__(self):
        self._counter = itertools.count(1)
        self._published: Dict[Any, int] = {}

    def issue(self) -> int:
        return next(self._counter)

    def published(self, view: Any = None) -> int:
        """Token of the last accepted result for a view (0 if none)."""
        return self._published.get(view, 0)

    def publish(self, token: int, view: Any = None) -> bool:
        if token < self.published(view):
            return False
        self._published[view] = token
        return True


@dataclass(frozen=True)
class PortfolioSnapshot:
    """Everything the dashboard shows for one data refresh."""
    token: int
    portfolio_id: Optional[Any]
    active_positions: List[AggregatedPosition] = field(default_factory=list)
    sold_positions: List[AggregatedSoldPosition] = field(default_factory=list)
    asset_allocation: List[AllocationDetail] = field(default_factory=list)
    summary: Optional[PortfolioSummary] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token": self.token,
            "portfolioId": self.portfolio_id,
            "activePositions": [p.to_dict() for p in self.active_positions],
            "soldPositions": [p.to_dict() for p in self.sold_positions],
            "assetAllocation": [a.to_dict() for a in self.asset_allocation],
            "summary": self.summary.to_dict() if self.summary else None,
        }


class PortfolioViewService:
    """Service for building dashboard snapshots from the data service."""

    def __init__(self, client: InvestmentServiceClient):
        self.client = client
        self.sequencer = RefreshSequencer()
        self.snapshots: Dict[Any, PortfolioSnapshot] = {}
        self.latest: Optional[PortfolioSnapshot] = None

    @staticmethod
    def compute_snapshot(
        investments: List[Investment],
        token: int = 0,
        portfolio_id: Optional[Any] = None,
        portfolio_name: Optional[str] = None,
    ) -> PortfolioSnapshot:
        """
        Run the engine over an already loaded list of lots.

        Args:
            investments: Lots of one portfolio, or of all portfolios when
                portfolio_id is None
            token: Refresh token the snapshot belongs to
            portfolio_id: Portfolio the lots were loaded for
            portfolio_name: Summary label

        Returns:
            PortfolioSnapshot
        """
        categorized = categorize_investments(investments)
        scope = GroupingScope.PORTFOLIO if portfolio_id is None else GroupingScope.TICKER
        name = portfolio_name or (ALL_PORTFOLIOS if portfolio_id is None else str(portfolio_id))

        summary = build_portfolio_summary(investments, name)
        return PortfolioSnapshot(
            token=token,
            portfolio_id=portfolio_id,
            active_positions=aggregate_active(categorized.active, scope=scope),
            sold_positions=aggregate_sold(categorized.sold),
            asset_allocation=allocation_by_category(
                categorized.active, summary.total_value, by_asset_type
            ),
            summary=summary,
        )

    async def refresh(
        self,
        portfolio_id: Optional[Any] = None,
        portfolio_name: Optional[str] = None,
    ) -> Optional[PortfolioSnapshot]:
        """
        Reload lots and rebuild the snapshot.

        Args:
            portfolio_id: Portfolio to load, None for all portfolios
            portfolio_name: Summary label

        Returns:
            The new snapshot, or None if a newer refresh of the same
            portfolio finished while this one was loading

        Raises:
            InvestmentServiceError: data could not be loaded
        """
        token = self.sequencer.issue()
        if portfolio_id is None:
            investments = await self.client.list_all_investments()
        else:
            investments = await self.client.list_investments(portfolio_id)

        snapshot = self.compute_snapshot(investments, token, portfolio_id, portfolio_name)
        if not self.sequencer.publish(token, portfolio_id):
            logger.info(
                "Discarding refresh %d for portfolio %s (published is %d)",
                token, portfolio_id, self.sequencer.published(portfolio_id),
            )
            return None

        self.snapshots[portfolio_id] = snapshot
        self.latest = snapshot
        logger.debug(
            "Refresh %d done: %d active positions, %d sold positions",
            token, len(snapshot.active_positions), len(snapshot.sold_positions),
        )
        return snapshot
