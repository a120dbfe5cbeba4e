"""Web API - FastAPI application exposing the aggregation engine."""

import logging
import os
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Header, HTTPException, status
from pydantic import BaseModel, Field

from .domain.allocation import (
    allocation_by_category,
    by_asset_type,
    by_currency,
    currency_allocation_rows,
    sort_allocation,
)
from .domain.models import GroupingScope, Investment
from .domain.positions import aggregate_active, aggregate_sold
from .domain.summary import build_portfolio_summary
from .services.formatters import (
    format_percent_value,
    format_positions_text,
    position_display,
    sold_position_display,
)
from .services.investment_client import InvestmentServiceError
from .services.portfolio_service import PortfolioViewService

logger = logging.getLogger(__name__)

# Injected by main.configure_api_dependencies()
_view_service: Optional[PortfolioViewService] = None


def configure_api_dependencies(view_service: Optional[PortfolioViewService]) -> None:
    """Configure API with the portfolio view service used by snapshot routes."""
    global _view_service
    _view_service = view_service


# ============== PYDANTIC MODELS ==============

class InvestmentsRequest(BaseModel):
    investments: List[Dict[str, Any]] = Field(default_factory=list)


class ActivePositionsRequest(InvestmentsRequest):
    group_by_portfolio: bool = False


class AllocationRequest(InvestmentsRequest):
    total_value: float
    category: str = "type"  # "type" or "currency"
    sort_column: Optional[str] = None
    sort_direction: Optional[str] = None


class CurrencyAllocationRequest(BaseModel):
    allocation: Dict[str, float] = Field(default_factory=dict)


class SummaryRequest(InvestmentsRequest):
    portfolio_name: str = "All Portfolios"


# ============== FASTAPI APP ==============

web_api = FastAPI(title="Investment Dashboard API")


def _require_api_auth(x_api_key: Optional[str]) -> None:
    """Enforce API key auth when WEB_API_TOKEN is configured."""
    token = os.getenv("WEB_API_TOKEN", "").strip()
    if not token:
        return
    if not x_api_key or x_api_key != token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )


def _parse_investments(raw: List[Dict[str, Any]]) -> List[Investment]:
    try:
        return [Investment.from_dict(item) for item in raw]
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc


@web_api.get("/healthz")
async def healthz():
    """Unauthenticated health probe endpoint."""
    return {"status": "ok"}


@web_api.post("/api/positions/active")
async def api_active_positions(
    req: ActivePositionsRequest,
    x_api_key: Optional[str] = Header(default=None, alias="X-API-Key"),
):
    """Aggregate active lots into positions."""
    _require_api_auth(x_api_key)
    scope = GroupingScope.PORTFOLIO if req.group_by_portfolio else GroupingScope.TICKER
    positions = aggregate_active(_parse_investments(req.investments), scope=scope)
    return {
        "positions": [{**p.to_dict(), **position_display(p)} for p in positions],
        "text": format_positions_text(positions),
    }


@web_api.post("/api/positions/sold")
async def api_sold_positions(
    req: InvestmentsRequest,
    x_api_key: Optional[str] = Header(default=None, alias="X-API-Key"),
):
    """Aggregate sold lots into realized positions."""
    _require_api_auth(x_api_key)
    positions = aggregate_sold(_parse_investments(req.investments))
    return {"positions": [{**p.to_dict(), **sold_position_display(p)} for p in positions]}


@web_api.post("/api/allocation")
async def api_allocation(
    req: AllocationRequest,
    x_api_key: Optional[str] = Header(default=None, alias="X-API-Key"),
):
    """Allocation breakdown by asset type or currency."""
    _require_api_auth(x_api_key)
    if req.category not in ("type", "currency"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported category: {req.category}",
        )
    key_fn = by_currency if req.category == "currency" else by_asset_type
    details = allocation_by_category(_parse_investments(req.investments), req.total_value, key_fn)
    details = sort_allocation(details, req.sort_column, req.sort_direction)
    return {
        "allocation": [
            {**d.to_dict(), "percentageDisplay": format_percent_value(d.percentage)}
            for d in details
        ]
    }


@web_api.post("/api/allocation/currency")
async def api_currency_allocation(
    req: CurrencyAllocationRequest,
    x_api_key: Optional[str] = Header(default=None, alias="X-API-Key"),
):
    """Turn a {currency: percentage} map into sorted table rows."""
    _require_api_auth(x_api_key)
    return {"rows": [row.to_dict() for row in currency_allocation_rows(req.allocation)]}


@web_api.post("/api/summary")
async def api_summary(
    req: SummaryRequest,
    x_api_key: Optional[str] = Header(default=None, alias="X-API-Key"),
):
    """Headline metrics for a set of lots."""
    _require_api_auth(x_api_key)
    summary = build_portfolio_summary(_parse_investments(req.investments), req.portfolio_name)
    return summary.to_dict()


async def _snapshot(portfolio_id: Optional[str]) -> Dict[str, Any]:
    if _view_service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Investment data service is not configured",
        )
    try:
        snapshot = await _view_service.refresh(portfolio_id)
    except InvestmentServiceError as exc:
        logger.error("Snapshot refresh failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to load investment data",
        ) from exc
    if snapshot is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Refresh superseded by a newer request",
        )
    return snapshot.to_dict()


@web_api.get("/api/snapshot")
async def api_snapshot_all(x_api_key: Optional[str] = Header(default=None, alias="X-API-Key")):
    """Snapshot across all portfolios."""
    _require_api_auth(x_api_key)
    return await _snapshot(None)


@web_api.get("/api/portfolios/{portfolio_id}/snapshot")
async def api_snapshot_portfolio(
    portfolio_id: str,
    x_api_key: Optional[str] = Header(default=None, alias="X-API-Key"),
):
    """Snapshot of a single portfolio."""
    _require_api_auth(x_api_key)
    return await _snapshot(portfolio_id)
