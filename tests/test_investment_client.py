"""Tests for the investment data service client (mocked transport)."""

import asyncio
import json

import httpx
import pytest

from investdash.domain.models import InvestmentStatus
from investdash.services.investment_client import (
    InvestmentServiceClient,
    InvestmentServiceError,
)

BASE_URL = "http://data.test"

PORTFOLIO_LOTS = {
    "1": [
        {"id": "a", "portfolioId": 1, "ticker": "AAPL", "amount": 1, "purchasePrice": 10, "status": "ACTIVE"},
    ],
    "2": [
        {"id": "b", "portfolioId": 2, "ticker": "MSFT", "amount": 2, "purchasePrice": 20, "status": "SOLD", "sellPrice": 25},
        {"id": "c", "portfolioId": 2, "ticker": "AAPL", "amount": 3, "purchasePrice": 11, "status": "ACTIVE"},
    ],
}


def _handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if request.method == "GET" and path == "/api/portfolios":
        return httpx.Response(200, json=[{"id": 1, "name": "Main"}, {"id": 2, "name": "Side"}])
    if request.method == "GET" and path.startswith("/api/portfolios/") and path.endswith("/investments"):
        portfolio_id = path.split("/")[3]
        if portfolio_id not in PORTFOLIO_LOTS:
            return httpx.Response(404, json={"error": "not found"})
        return httpx.Response(200, json=PORTFOLIO_LOTS[portfolio_id])
    if request.method == "POST" and path == "/api/portfolios/1/investments":
        body = json.loads(request.content)
        return httpx.Response(201, json={**body, "id": "new", "portfolioId": 1, "status": "ACTIVE"})
    if request.method == "POST" and path == "/api/investments/b/sell":
        body = json.loads(request.content)
        return httpx.Response(200, json={"id": "b", "ticker": "MSFT", "status": "SOLD", "sellPrice": body["sellPrice"]})
    if request.method == "DELETE" and path == "/api/investments/a":
        return httpx.Response(204)
    return httpx.Response(400, json={"error": "bad request"})


def _run(scenario):
    async def runner():
        async with httpx.AsyncClient(transport=httpx.MockTransport(_handler)) as http_client:
            client = InvestmentServiceClient(BASE_URL, token="secret", http_client=http_client, retries=1)
            return await scenario(client)

    return asyncio.run(runner())


def test_list_portfolios():
    portfolios = _run(lambda client: client.list_portfolios())
    assert [p.name for p in portfolios] == ["Main", "Side"]


def test_list_investments_for_portfolio():
    investments = _run(lambda client: client.list_investments(2))
    assert [i.id for i in investments] == ["b", "c"]
    assert investments[0].status == InvestmentStatus.SOLD
    assert investments[0].sell_price == 25.0


def test_list_all_investments_fans_out():
    investments = _run(lambda client: client.list_all_investments())
    assert sorted(i.id for i in investments) == ["a", "b", "c"]


def test_list_investments_error_raises():
    with pytest.raises(InvestmentServiceError):
        _run(lambda client: client.list_investments(99))


def test_create_investment_sends_only_known_fields():
    created = _run(lambda client: client.create_investment(
        1, {"ticker": "NVDA", "type": "Equity", "currency": "USD", "amount": 4, "purchasePrice": 100, "extra": "x"}
    ))
    assert created.id == "new"
    assert created.ticker == "NVDA"
    assert created.purchase_price == 100.0


def test_sell_and_delete():
    sold = _run(lambda client: client.sell_investment("b", 30.0))
    assert sold.status == InvestmentStatus.SOLD
    assert sold.sell_price == 30.0

    assert _run(lambda client: client.delete_investment("a")) is True


def test_mutation_failure_returns_none():
    assert _run(lambda client: client.update_investment("zzz", {"amount": 1})) is None
    assert _run(lambda client: client.delete_investment("zzz")) is False


def test_bearer_token_header():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json=[])

    async def runner():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
            client = InvestmentServiceClient(BASE_URL, token="secret", http_client=http_client, retries=1)
            return await client.list_portfolios()

    assert asyncio.run(runner()) == []
    assert seen["auth"] == "Bearer secret"
