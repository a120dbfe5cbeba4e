"""Client for the external investment data service."""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import Config
from ..domain.models import Investment, Portfolio
from ..http_client import http_get, http_post, http_request

logger = logging.getLogger(__name__)


class InvestmentServiceError(Exception):
    """Raised when investment data cannot be loaded from the data service."""


class InvestmentServiceClient:
    """
    Async wrapper around the data service REST endpoints.

    Listing calls raise InvestmentServiceError; mutations return None (or
    False for deletes) on failure, after logging it.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: int = 30,
        retries: int = 3,
        max_concurrent_requests: int = 10,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.http_client = http_client
        self.timeout = timeout
        self.retries = retries
        self.semaphore = asyncio.Semaphore(max_concurrent_requests)

    @classmethod
    def from_config(
        cls, config: Config, http_client: Optional[httpx.AsyncClient] = None
    ) -> "InvestmentServiceClient":
        return cls(
            base_url=config.data_service_url,
            token=config.data_service_token,
            http_client=http_client,
            timeout=config.http_timeout,
            retries=config.max_retries,
            max_concurrent_requests=config.max_concurrent_requests,
        )

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request_options(self) -> Dict[str, Any]:
        return {
            "client": self.http_client,
            "semaphore": self.semaphore,
            "headers": self._headers(),
            "timeout": self.timeout,
            "retries": self.retries,
        }

    async def _get_list(self, path: str) -> List[Dict[str, Any]]:
        url = f"{self.base_url}{path}"
        try:
            response = await http_get(url, **self._request_options())
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise InvestmentServiceError(f"Failed to load {path}: {exc}") from exc
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise InvestmentServiceError(f"Unexpected payload for {path}: {type(payload).__name__}")
        return payload

    async def list_portfolios(self) -> List[Portfolio]:
        """List the user's portfolios."""
        payload = await self._get_list("/api/portfolios")
        return [Portfolio.from_dict(item) for item in payload]

    async def list_investments(self, portfolio_id: Any) -> List[Investment]:
        """
        List all lots of one portfolio.

        Raises:
            InvestmentServiceError: request failed or a record is malformed
        """
        payload = await self._get_list(f"/api/portfolios/{portfolio_id}/investments")
        try:
            return [Investment.from_dict(item) for item in payload]
        except ValueError as exc:
            raise InvestmentServiceError(str(exc)) from exc

    async def list_all_investments(self) -> List[Investment]:
        """Fetch lots of every portfolio concurrently and join them into one list."""
        portfolios = await self.list_portfolios()
        if not portfolios:
            return []
        batches = await asyncio.gather(
            *(self.list_investments(portfolio.id) for portfolio in portfolios)
        )
        investments = [investment for batch in batches for investment in batch]
        logger.info(
            "Loaded %d investments across %d portfolios", len(investments), len(portfolios)
        )
        return investments

    async def _mutate(self, method: str, path: str, payload: Optional[dict] = None) -> Optional[Investment]:
        url = f"{self.base_url}{path}"
        try:
            if method == "POST":
                response = await http_post(url, json=payload, **self._request_options())
            else:
                response = await http_request(method, url, json=payload, **self._request_options())
            return Investment.from_dict(response.json())
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            return None

    async def create_investment(self, portfolio_id: Any, payload: Dict[str, Any]) -> Optional[Investment]:
        """Create a lot; payload holds ticker, type, currency, amount, purchasePrice."""
        body = {
            key: payload.get(key)
            for key in ("ticker", "type", "currency", "amount", "purchasePrice")
        }
        return await self._mutate("POST", f"/api/portfolios/{portfolio_id}/investments", body)

    async def update_investment(self, investment_id: Any, payload: Dict[str, Any]) -> Optional[Investment]:
        return await self._mutate("PUT", f"/api/investments/{investment_id}", payload)

    async def sell_investment(self, investment_id: Any, sell_price: float) -> Optional[Investment]:
        return await self._mutate(
            "POST", f"/api/investments/{investment_id}/sell", {"sellPrice": sell_price}
        )

    async def delete_investment(self, investment_id: Any) -> bool:
        url = f"{self.base_url}/api/investments/{investment_id}"
        try:
            await http_request("DELETE", url, **self._request_options())
        except httpx.HTTPError as exc:
            logger.warning("DELETE investment %s failed: %s", investment_id, exc)
            return False
        return True
