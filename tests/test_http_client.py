"""Tests for retry behaviour of the shared HTTP helper."""

import asyncio

import httpx
import pytest

from investdash import http_client


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    monkeypatch.setattr(http_client, "_backoff", lambda attempt: 0)


def _request(handler, retries=3):
    async def runner():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await http_client.http_request(
                "GET",
                "http://data.test/api/portfolios",
                client=client,
                semaphore=asyncio.Semaphore(1),
                retries=retries,
            )

    return asyncio.run(runner())


def test_server_error_is_retried():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) < 3:
            return httpx.Response(503)
        return httpx.Response(200, json=[])

    response = _request(handler)
    assert response.status_code == 200
    assert len(calls) == 3


def test_rate_limit_honours_retry_after():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(429, headers={"Retry-After": "0"})
        return httpx.Response(200, json=[])

    assert _request(handler).status_code == 200
    assert len(calls) == 2


def test_client_error_is_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(404)

    with pytest.raises(httpx.HTTPStatusError):
        _request(handler)
    assert len(calls) == 1


def test_connect_error_exhausts_retries():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(httpx.ConnectError):
        _request(handler, retries=2)
    assert len(calls) == 2
