"""Matching service client.

Posts signed orders and wraps the order-management and market-data
endpoints. Submissions are never retried: a rejection is terminal, and a
timeout leaves the outcome unknown until the order status is queried.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

import httpx

from ..errors import CredentialError, PipelineError, SubmissionRejected, SubmissionTimeout
from ..order.types import OrderType, SignedOrder
from .auth import l2_headers, serialize_body
from .types import ApiCredentials, SubmissionResult

logger = logging.getLogger(__name__)

ORDER_PATH = "/order"
GET_ORDER_PATH = "/data/order/"
ORDERS_PATH = "/data/orders"
TRADES_PATH = "/data/trades"
BOOK_PATH = "/book"
MIDPOINT_PATH = "/midpoint"
LAST_TRADE_PRICE_PATH = "/last-trade-price"

INITIAL_CURSOR = "MA=="
END_CURSOR = "LTE="


class SubmissionClient:
    """HTTP client for the CLOB matching service."""

    def __init__(
        self,
        host: str,
        address: str,
        http_client: httpx.AsyncClient,
        timeout: float = 15.0,
        service_api_key: Optional[str] = None,
    ):
        """Initialize the client.

        Args:
            host: Matching service base URL
            address: Signing address the API credentials are bound to
            http_client: Shared async HTTP client
            timeout: Per-request timeout in seconds
            service_api_key: Optional key sent as X-API-KEY
        """
        self.host = host.rstrip("/")
        self.address = address
        self.timeout = timeout
        self._http = http_client
        self._service_api_key = service_api_key

    def _headers(
        self,
        method: str,
        path: str,
        body: str = "",
        credentials: Optional[ApiCredentials] = None,
    ) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._service_api_key:
            headers["X-API-KEY"] = self._service_api_key
        if credentials is not None:
            headers.update(l2_headers(credentials, self.address, method, path, body))
        return headers

    async def _send(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[Dict[str, Any]] = None,
        credentials: Optional[ApiCredentials] = None,
    ) -> httpx.Response:
        content = serialize_body(body)
        headers = self._headers(method, path, content, credentials)
        logger.debug("%s %s", method, path)
        return await self._http.request(
            method,
            f"{self.host}{path}",
            content=content or None,
            params=params,
            headers=headers,
            timeout=self.timeout,
        )

    async def _json(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[Dict[str, Any]] = None,
        credentials: Optional[ApiCredentials] = None,
    ) -> Any:
        try:
            response = await self._send(method, path, body, params, credentials)
        except httpx.TimeoutException as exc:
            raise SubmissionTimeout(f"{method} {path} timed out after {self.timeout}s") from exc
        except httpx.HTTPError as exc:
            raise PipelineError(f"{method} {path} failed: {exc}", stage="query") from exc

        if response.status_code in (401, 403):
            raise CredentialError(
                f"{method} {path} unauthorized (HTTP {response.status_code})",
                detail={"body": response.text},
            )
        if response.status_code >= 400:
            raise SubmissionRejected(
                _error_text(response),
                detail={"http_status": response.status_code, "path": path},
            )
        try:
            return response.json()
        except ValueError as exc:
            raise PipelineError(
                f"{method} {path} returned a non-JSON body (HTTP {response.status_code})",
                stage="query",
                detail={"http_status": response.status_code, "path": path},
            ) from exc

    async def post_order(
        self,
        signed_order: SignedOrder,
        order_type: Union[OrderType, str],
        credentials: ApiCredentials,
    ) -> SubmissionResult:
        """Submit a signed order.

        Returns a SubmissionResult for every structured response, including
        rejections; ``result.error_message`` is the service message as sent.

        Raises:
            SubmissionTimeout: No response within the timeout (outcome unknown)
            CredentialError: Credentials rejected
            SubmissionRejected: Unstructured error response
        """
        order_type = OrderType(order_type)
        body = {
            "order": signed_order.to_payload(),
            "owner": credentials.api_key,
            "orderType": order_type.value,
        }
        salt = signed_order.order.salt

        try:
            response = await self._send("POST", ORDER_PATH, body, credentials=credentials)
        except httpx.TimeoutException as exc:
            raise SubmissionTimeout(
                f"Order submission timed out after {self.timeout}s; outcome unknown",
                salt=salt,
                detail={"salt": salt},
            ) from exc
        except httpx.HTTPError as exc:
            raise PipelineError(
                f"Order submission failed: {exc}", stage="submission", detail={"salt": salt}
            ) from exc

        if response.status_code in (401, 403):
            raise CredentialError(
                f"Order submission unauthorized (HTTP {response.status_code})",
                detail={"body": response.text},
            )

        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            raise SubmissionRejected(
                f"HTTP {response.status_code}: {response.text}",
                detail={"http_status": response.status_code, "salt": salt},
            )

        result = SubmissionResult.from_response(data, response.status_code)
        if result.success:
            logger.info("Order accepted: id=%s status=%s", result.order_id, result.status)
        else:
            logger.warning("Order rejected: %s", result.error_message)
        return result

    async def get_order(self, order_id: str, credentials: ApiCredentials) -> Dict[str, Any]:
        """Fetch one order by id. Used to reconcile after a timeout."""
        return await self._json("GET", f"{GET_ORDER_PATH}{order_id}", credentials=credentials)

    async def cancel_order(self, order_id: str, credentials: ApiCredentials) -> Dict[str, Any]:
        return await self._json(
            "DELETE", ORDER_PATH, body={"orderID": order_id}, credentials=credentials
        )

    async def _paginate(
        self, path: str, params: Dict[str, Any], credentials: ApiCredentials
    ) -> List[Dict[str, Any]]:
        results: List[Dict[str, Any]] = []
        cursor = INITIAL_CURSOR
        while cursor != END_CURSOR:
            page = await self._json(
                "GET", path, params={**params, "next_cursor": cursor}, credentials=credentials
            )
            if not isinstance(page, dict):
                raise PipelineError(
                    f"GET {path} returned an unexpected page: {type(page).__name__}",
                    stage="query",
                    detail={"path": path, "cursor": cursor},
                )
            results.extend(page.get("data", []))
            cursor = page.get("next_cursor") or END_CURSOR
        return results

    async def get_open_orders(
        self,
        credentials: ApiCredentials,
        market: Optional[str] = None,
        asset_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        params = {k: v for k, v in (("market", market), ("asset_id", asset_id)) if v}
        return await self._paginate(ORDERS_PATH, params, credentials)

    async def get_trades(
        self,
        credentials: ApiCredentials,
        market: Optional[str] = None,
        asset_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        params = {k: v for k, v in (("market", market), ("asset_id", asset_id)) if v}
        return await self._paginate(TRADES_PATH, params, credentials)

    async def get_order_book(self, token_id: str) -> Dict[str, Any]:
        return await self._json("GET", BOOK_PATH, params={"token_id": token_id})

    async def get_midpoint(self, token_id: str) -> Decimal:
        data = await self._json("GET", MIDPOINT_PATH, params={"token_id": token_id})
        return Decimal(str(data["mid"]))

    async def get_last_trade_price(self, token_id: str) -> Dict[str, Any]:
        return await self._json("GET", LAST_TRADE_PRICE_PATH, params={"token_id": token_id})


def _error_text(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return f"HTTP {response.status_code}: {response.text}"
    if isinstance(data, dict):
        message = data.get("errorMsg") or data.get("error")
        if message:
            return str(message)
    return f"HTTP {response.status_code}: {response.text}"
