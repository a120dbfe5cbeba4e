"""Domain models for investment tracking."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .numeric import encode_number, to_float


class InvestmentStatus(str, Enum):
    """Lifecycle state of a purchase lot."""
    ACTIVE = "ACTIVE"
    SOLD = "SOLD"
    DELETED = "DELETED"

    @classmethod
    def parse(cls, value: Any) -> Optional["InvestmentStatus"]:
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


class GroupingScope(str, Enum):
    """How active lots are grouped into positions."""
    TICKER = "ticker"  # one row per ticker, portfolios merged
    PORTFOLIO = "portfolio"  # one row per (portfolio, ticker)


def _pick(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _encode_map(values: Dict[str, float]) -> Dict[str, Any]:
    return {key: encode_number(value) for key, value in values.items()}


@dataclass(frozen=True)
class Investment:
    """
    One purchase lot of an instrument inside one portfolio.

    Read-only input supplied by the investment data service. Numeric fields
    may be None; the engine coerces them on use.
    """
    id: Optional[Any]
    portfolio_id: Optional[Any]
    ticker: Optional[str]
    type: Optional[str] = None
    currency: Optional[str] = None
    amount: Optional[float] = None
    purchase_price: Optional[float] = None
    current_value: Optional[float] = None
    sell_price: Optional[float] = None
    status: InvestmentStatus = InvestmentStatus.ACTIVE
    total_cost: Optional[float] = None
    custom_name: Optional[str] = None
    last_update_date: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Investment":
        """
        Build a record from a data-service payload.

        Accepts camelCase (wire format) and snake_case keys. Raises
        ValueError for an unknown status.
        """
        raw_status = _pick(data, "status")
        if raw_status is None:
            status = InvestmentStatus.ACTIVE
        else:
            status = InvestmentStatus.parse(raw_status)
            if status is None:
                raise ValueError(f"Unknown investment status: {raw_status!r}")

        portfolio_id = _pick(data, "portfolioId", "portfolio_id")
        portfolio = data.get("portfolio")
        if portfolio_id is None and isinstance(portfolio, dict):
            portfolio_id = portfolio.get("id")

        ticker = data.get("ticker")
        asset_type = data.get("type")
        currency = data.get("currency")
        return cls(
            id=data.get("id"),
            portfolio_id=portfolio_id,
            ticker=str(ticker) if ticker is not None else None,
            type=str(asset_type) if asset_type is not None else None,
            currency=str(currency) if currency is not None else None,
            amount=to_float(data.get("amount")),
            purchase_price=to_float(_pick(data, "purchasePrice", "purchase_price")),
            current_value=to_float(_pick(data, "currentValue", "current_value")),
            sell_price=to_float(_pick(data, "sellPrice", "sell_price")),
            status=status,
            total_cost=to_float(_pick(data, "totalCost", "total_cost")),
            custom_name=_pick(data, "customName", "custom_name"),
            last_update_date=_pick(data, "lastUpdateDate", "last_update_date"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "portfolioId": self.portfolio_id,
            "ticker": self.ticker,
            "type": self.type,
            "currency": self.currency,
            "amount": encode_number(self.amount),
            "purchasePrice": encode_number(self.purchase_price),
            "currentValue": encode_number(self.current_value),
            "sellPrice": encode_number(self.sell_price),
            "status": self.status.value,
            "totalCost": encode_number(self.total_cost),
            "customName": self.custom_name,
            "lastUpdateDate": self.last_update_date,
        }


@dataclass(frozen=True)
class Portfolio:
    """Portfolio identity as listed by the data service."""
    id: Any
    name: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Portfolio":
        return cls(id=data["id"], name=str(data.get("name") or ""))


@dataclass(frozen=True)
class LotMetrics:
    """Per-lot figures derived by the engine, never stored on the record."""
    cost: float
    market_value: Optional[float] = None
    percent_profit: Optional[float] = None  # ratio, math.inf for free lots
    realized_pnl: Optional[float] = None  # sold lots only

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cost": encode_number(self.cost),
            "marketValue": encode_number(self.market_value),
            "percentProfit": encode_number(self.percent_profit),
            "realizedPnl": encode_number(self.realized_pnl),
        }


@dataclass(frozen=True)
class InvestmentView:
    """An input record paired with its derived metrics."""
    base: Investment
    derived: LotMetrics

    def to_dict(self) -> Dict[str, Any]:
        return {"base": self.base.to_dict(), "derived": self.derived.to_dict()}


@dataclass(frozen=True)
class AggregatedPosition:
    """All active lots of one ticker (optionally within one portfolio)."""
    ticker: str
    type: Optional[str]
    currency: Optional[str]
    total_amount: float
    total_purchase_cost: float
    average_purchase_price: float
    total_current_value: Optional[float]  # None: at least one lot unpriced
    percent_profit: Optional[float]  # ratio; None unknown, inf infinite
    unrealized_pnl: Optional[float]
    portfolio_id: Optional[Any] = None
    individual_investments: Tuple[InvestmentView, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ticker": self.ticker,
            "type": self.type,
            "currency": self.currency,
            "portfolioId": self.portfolio_id,
            "totalAmount": encode_number(self.total_amount),
            "totalPurchaseCost": encode_number(self.total_purchase_cost),
            "averagePurchasePrice": encode_number(self.average_purchase_price),
            "totalCurrentValue": encode_number(self.total_current_value),
            "percentProfit": encode_number(self.percent_profit),
            "unrealizedPnl": encode_number(self.unrealized_pnl),
            "individualInvestments": [v.to_dict() for v in self.individual_investments],
        }


@dataclass(frozen=True)
class AggregatedSoldPosition:
    """All sold lots of one ticker across portfolios."""
    ticker: str
    type: Optional[str]
    currency: Optional[str]
    total_amount: float
    average_purchase_price: float
    average_sell_price: float
    realized_pnl_absolute: float
    realized_pnl_percent: Optional[float]
    individual_investments: Tuple[InvestmentView, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ticker": self.ticker,
            "type": self.type,
            "currency": self.currency,
            "totalAmount": encode_number(self.total_amount),
            "averagePurchasePrice": encode_number(self.average_purchase_price),
            "averageSellPrice": encode_number(self.average_sell_price),
            "realizedPnlAbsolute": encode_number(self.realized_pnl_absolute),
            "realizedPnlPercent": encode_number(self.realized_pnl_percent),
            "individualInvestments": [v.to_dict() for v in self.individual_investments],
        }


@dataclass(frozen=True)
class AllocationDetail:
    """Value and profit of one category (asset type or currency)."""
    category: str
    value: float
    percentage: float
    profit_value: float
    profit_percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.category,
            "value": encode_number(self.value),
            "percentage": encode_number(self.percentage),
            "profitValue": encode_number(self.profit_value),
            "profitPercentage": encode_number(self.profit_percentage),
        }


@dataclass(frozen=True)
class CurrencyAllocationRow:
    currency: str
    percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return {"currency": self.currency, "percentage": encode_number(self.percentage)}


@dataclass(frozen=True)
class CategorizedInvestments:
    active: List[Investment] = field(default_factory=list)
    sold: List[Investment] = field(default_factory=list)


@dataclass(frozen=True)
class PerformerSnapshot:
    """Best or worst performing lot in a summary."""
    ticker: Optional[str]
    type: Optional[str]
    pnl_percent: float
    current_price: float
    holding_value: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ticker": self.ticker,
            "type": self.type,
            "pnlPercent": encode_number(self.pnl_percent),
            "currentPrice": encode_number(self.current_price),
            "holdingValue": encode_number(self.holding_value),
        }


@dataclass(frozen=True)
class PortfolioSummary:
    """Headline metrics for one portfolio or for all portfolios."""
    portfolio_name: str
    total_value: float = 0.0
    total_cost_basis: float = 0.0
    unrealized_pnl_absolute: float = 0.0
    unrealized_pnl_percentage: float = 0.0  # already x100
    realized_pnl_absolute: float = 0.0
    asset_allocation: Dict[str, float] = field(default_factory=dict)
    currency_allocation: Dict[str, float] = field(default_factory=dict)
    active_investments_count: int = 0
    best_performer: Optional[PerformerSnapshot] = None
    worst_performer: Optional[PerformerSnapshot] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "portfolioName": self.portfolio_name,
            "totalValue": encode_number(self.total_value),
            "totalCostBasis": encode_number(self.total_cost_basis),
            "unrealizedPnlAbsolute": encode_number(self.unrealized_pnl_absolute),
            "unrealizedPnlPercentage": encode_number(self.unrealized_pnl_percentage),
            "realizedPnlAbsolute": encode_number(self.realized_pnl_absolute),
            "assetAllocationByValue": _encode_map(self.asset_allocation),
            "currencyAllocationByValue": _encode_map(self.currency_allocation),
            "activeInvestmentsCount": self.active_investments_count,
            "bestPerformer": self.best_performer.to_dict() if self.best_performer else None,
            "worstPerformer": self.worst_performer.to_dict() if self.worst_performer else None,
        }
