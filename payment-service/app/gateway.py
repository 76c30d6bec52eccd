"""Client for the Cashfree Payment Gateway orders API."""
import logging
from urllib.parse import quote

import httpx

from app.config import CASHFREE_API_VERSION, Settings
from app.errors import GatewayError

logger = logging.getLogger(__name__)


class CashfreeClient:
    def __init__(self, settings: Settings, http_client: httpx.AsyncClient = None):
        self.base_url = settings.cashfree_base_url
        self.headers = {
            "Content-Type": "application/json",
            "x-client-id": settings.cashfree_app_id,
            "x-client-secret": settings.cashfree_secret_key,
            "x-api-version": CASHFREE_API_VERSION,
        }
        # No timeout override and no retries; httpx defaults apply
        self._client = http_client or httpx.AsyncClient()

    async def create_order(self, payload: dict) -> dict:
        return await self._request("POST", "/orders", json=payload)

    async def get_order(self, order_id: str) -> dict:
        return await self._request("GET", f"/orders/{quote(order_id, safe='')}")

    async def aclose(self):
        await self._client.aclose()

    async def _request(self, method: str, path: str, json: dict = None) -> dict:
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.request(method, url, json=json, headers=self.headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            detail = _response_body(e.response)
            logger.error("Cashfree %s %s returned %s: %s", method, path, e.response.status_code, detail)
            message = detail.get("message") if isinstance(detail, dict) else None
            raise GatewayError(
                message or f"Request failed with status code {e.response.status_code}",
                gateway_status=e.response.status_code,
                detail=detail,
            ) from e
        except httpx.HTTPError as e:
            logger.error("Cashfree %s %s failed: %s", method, path, e)
            raise GatewayError(str(e) or e.__class__.__name__) from e

        try:
            body = response.json()
        except ValueError as e:
            logger.error("Cashfree %s %s returned a non-JSON body: %s", method, path, response.text)
            raise GatewayError("Invalid response from payment gateway") from e
        if not isinstance(body, dict):
            logger.error("Cashfree %s %s returned a non-object body: %s", method, path, body)
            raise GatewayError("Invalid response from payment gateway", detail=body)
        return body


def _response_body(response: httpx.Response):
    try:
        return response.json()
    except ValueError:
        return response.text
