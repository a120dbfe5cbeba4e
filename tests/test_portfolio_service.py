"""Tests for PortfolioViewService refresh orchestration."""

import asyncio

import pytest

from investdash.domain.models import Investment, InvestmentStatus
from investdash.services.investment_client import InvestmentServiceError
from investdash.services.portfolio_service import PortfolioViewService, RefreshSequencer


def _lot(lot_id, portfolio_id, ticker, status=InvestmentStatus.ACTIVE, **kwargs):
    return Investment(
        id=lot_id,
        portfolio_id=portfolio_id,
        ticker=ticker,
        type=kwargs.get("type", "Equity"),
        currency="USD",
        amount=kwargs.get("amount", 1),
        purchase_price=kwargs.get("purchase_price", 10.0),
        current_value=kwargs.get("current_value", 12.0),
        sell_price=kwargs.get("sell_price"),
        status=status,
    )


LOTS = [
    _lot("a", 1, "AAPL"),
    _lot("b", 2, "AAPL"),
    _lot("c", 2, "MSFT", status=InvestmentStatus.SOLD, sell_price=15.0),
    _lot("d", 1, "TSLA", status=InvestmentStatus.DELETED),
]


class _FakeClient:
    """Minimal data service mock for refresh tests."""

    def __init__(self, lots):
        self.lots = lots
        self.gates = {}
        self.failures = []

    async def list_all_investments(self):
        return list(self.lots)

    async def list_investments(self, portfolio_id):
        gate = self.gates.pop(portfolio_id, None)
        if gate is not None:
            await gate.wait()
        if self.failures:
            raise self.failures.pop(0)
        return [lot for lot in self.lots if lot.portfolio_id == portfolio_id]


class _FailingClient:

    async def list_all_investments(self):
        raise InvestmentServiceError("boom")


def test_sequencer_tokens():
    sequencer = RefreshSequencer()
    first = sequencer.issue()
    second = sequencer.issue()

    assert second > first
    assert sequencer.publish(second, 1)
    assert not sequencer.publish(first, 1)
    assert sequencer.published(1) == second


def test_sequencer_views_are_independent():
    sequencer = RefreshSequencer()
    first = sequencer.issue()
    second = sequencer.issue()

    assert sequencer.publish(second, 2)
    assert sequencer.publish(first, 1)
    assert sequencer.published(None) == 0


def test_refresh_all_portfolios_groups_per_portfolio():
    service = PortfolioViewService(_FakeClient(LOTS))
    snapshot = asyncio.run(service.refresh())

    assert snapshot is service.latest
    assert [(p.portfolio_id, p.ticker) for p in snapshot.active_positions] == [(1, "AAPL"), (2, "AAPL")]
    assert [p.ticker for p in snapshot.sold_positions] == ["MSFT"]
    assert snapshot.summary.portfolio_name == "All Portfolios"
    assert snapshot.summary.active_investments_count == 2
    assert snapshot.summary.realized_pnl_absolute == pytest.approx(5.0)
    assert [a.category for a in snapshot.asset_allocation] == ["Equity"]
    assert snapshot.asset_allocation[0].percentage == pytest.approx(100.0)


def test_refresh_single_portfolio_groups_by_ticker():
    service = PortfolioViewService(_FakeClient(LOTS))
    snapshot = asyncio.run(service.refresh(2, portfolio_name="Side"))

    assert snapshot.portfolio_id == 2
    assert [p.portfolio_id for p in snapshot.active_positions] == [None]
    assert snapshot.summary.portfolio_name == "Side"


def test_superseded_refresh_is_discarded():
    client = _FakeClient(LOTS)
    service = PortfolioViewService(client)

    async def scenario():
        gate = asyncio.Event()
        client.gates[1] = gate
        stale = asyncio.create_task(service.refresh(1))
        await asyncio.sleep(0)
        fresh = await service.refresh(1)
        gate.set()
        return await stale, fresh

    stale, fresh = asyncio.run(scenario())

    assert stale is None
    assert fresh is not None
    assert service.latest is fresh
    assert service.snapshots[1] is fresh


def test_concurrent_refreshes_of_different_portfolios():
    client = _FakeClient(LOTS)
    service = PortfolioViewService(client)

    async def scenario():
        gate = asyncio.Event()
        client.gates[1] = gate
        first = asyncio.create_task(service.refresh(1))
        await asyncio.sleep(0)
        second = await service.refresh(2)
        gate.set()
        return await first, second

    first, second = asyncio.run(scenario())

    assert first is not None
    assert second is not None
    assert first.portfolio_id == 1
    assert service.snapshots[1] is first
    assert service.snapshots[2] is second


def test_failed_newer_refresh_keeps_older_result():
    client = _FakeClient(LOTS)
    service = PortfolioViewService(client)

    async def scenario():
        gate = asyncio.Event()
        client.gates[1] = gate
        older = asyncio.create_task(service.refresh(1))
        await asyncio.sleep(0)
        client.failures.append(InvestmentServiceError("timeout"))
        with pytest.raises(InvestmentServiceError):
            await service.refresh(1)
        gate.set()
        return await older

    older = asyncio.run(scenario())

    assert older is not None
    assert service.snapshots[1] is older


def test_refresh_propagates_service_errors():
    service = PortfolioViewService(_FailingClient())
    with pytest.raises(InvestmentServiceError):
        asyncio.run(service.refresh())
    assert service.latest is None


def test_snapshot_to_dict_is_json_safe():
    lots = [_lot("free", 1, "GIFT", purchase_price=0.0, current_value=5.0)]
    snapshot = PortfolioViewService.compute_snapshot(lots, token=3, portfolio_id=1)
    payload = snapshot.to_dict()

    assert payload["token"] == 3
    assert payload["activePositions"][0]["percentProfit"] == "Infinity"
