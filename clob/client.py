"""ClobClient — async REST client for the CLOB endpoints the order flow needs.

Wraps API-key derivation, order-book and market metadata reads, and order
placement.  One client belongs to one account task; the API credentials it
derives are stored on the instance and reused for every Layer-2 call.
"""

from __future__ import annotations

import json
from typing import Optional

import httpx
import structlog
from pydantic import ValidationError

from auth.clob_auth import create_level_1_headers, create_level_2_headers
from clob.constants import parse_tick_size
from config.settings import settings
from core.errors import ClobApiError, HttpStatusError, ResponseDecodeError
from core.http import ApiClient, no_retry_on_status
from models.book import OrderBookData
from models.credentials import ApiCredentials
from models.order import OrderRequest, OrderType, PlaceOrderResponse, SignedOrder, TickSize
from web3_infra.eip712_signer import Signer

logger = structlog.get_logger("clob.client")

_GEO_BLOCK_PARAMS = {"geo_block_token": ""}


def _credentials_from_settings() -> Optional[ApiCredentials]:
    if not (
        settings.POLYMARKET_API_KEY
        and settings.POLYMARKET_SECRET
        and settings.POLYMARKET_PASSPHRASE
    ):
        return None
    return ApiCredentials(
        api_key=settings.POLYMARKET_API_KEY,
        api_secret=settings.POLYMARKET_SECRET,
        api_passphrase=settings.POLYMARKET_PASSPHRASE,
    )


class ClobClient(ApiClient):
    """Async CLOB client bound to one wallet.

    Parameters
    ----------
    signer:
        Wallet used for Layer-1 headers and as ``poly_address``.
    credentials:
        Previously issued API credentials.  Falls back to the
        ``POLYMARKET_API_KEY`` / ``SECRET`` / ``PASSPHRASE`` settings when all
        three are set; otherwise they are derived on first use.
    base_url:
        CLOB root.  Defaults to ``settings.CLOB_REST_BASE_URL``.
    """

    _name = "clob_client"

    def __init__(
        self,
        signer: Signer,
        credentials: Optional[ApiCredentials] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(base_url or settings.CLOB_REST_BASE_URL, timeout, transport)
        self._signer = signer
        self.api_credentials = credentials or _credentials_from_settings()

    # ── Public API: API keys ─────────────────────────────────────

    async def derive_api_key(self, nonce: int = 0) -> ApiCredentials:
        """Recover the credentials already issued for this wallet.

        Raises
        ------
        HttpStatusError
            HTTP 400 (no key exists yet) is raised without retrying.
        """
        raw = await self._send(
            "GET",
            "/auth/derive-api-key",
            params=_GEO_BLOCK_PARAMS,
            headers=create_level_1_headers(self._signer, nonce),
            should_retry=no_retry_on_status(400),
        )
        return self._parse_credentials(raw, "/auth/derive-api-key")

    async def create_api_key(self, nonce: int = 0) -> ApiCredentials:
        """Issue new credentials for this wallet."""
        raw = await self._send(
            "POST",
            "/auth/api-key",
            params=_GEO_BLOCK_PARAMS,
            headers=create_level_1_headers(self._signer, nonce),
            should_retry=no_retry_on_status(400),
        )
        return self._parse_credentials(raw, "/auth/api-key")

    async def ensure_api_credentials(self) -> ApiCredentials:
        """Return stored credentials, deriving or creating them on first use."""
        if self.api_credentials is not None:
            return self.api_credentials
        try:
            credentials = await self.derive_api_key()
        except HttpStatusError as exc:
            if exc.status_code != 400:
                raise
            logger.info("clob_client.creating_api_key", address=self._signer.address)
            credentials = await self.create_api_key()
        self.api_credentials = credentials
        logger.info(
            "clob_client.api_key_ready",
            address=self._signer.address,
            api_key=credentials.api_key,
        )
        return credentials

    # ── Public API: Market data ──────────────────────────────────

    async def get_order_book(self, token_id: str) -> OrderBookData:
        raw = await self._send("GET", "/book", params={"token_id": token_id})
        return self._parse_book(raw, "/book")

    async def get_order_books(self, token_ids: list[str]) -> list[OrderBookData]:
        raw = await self._send(
            "POST",
            "/books",
            json_body=[{"token_id": token_id} for token_id in token_ids],
        )
        if not isinstance(raw, list):
            raise ResponseDecodeError(f"{self.base_url}/books", str(raw))
        return [self._parse_book(item, "/books") for item in raw]

    async def get_tick_size(self, token_id: str) -> TickSize:
        """Tick size bucket of *token_id*.

        Raises
        ------
        UnknownTickSizeError
            If the market reports a tick size outside the known buckets.
        """
        raw = await self._send(
            "GET",
            "/tick-size",
            params={"token_id": token_id, **_GEO_BLOCK_PARAMS},
        )
        try:
            value = raw["minimum_tick_size"]
        except (KeyError, TypeError) as exc:
            raise ResponseDecodeError(f"{self.base_url}/tick-size", str(raw)) from exc
        return parse_tick_size(value)

    async def get_neg_risk(self, token_id: str) -> bool:
        raw = await self._send("GET", "/neg-risk", params={"token_id": token_id})
        try:
            return bool(raw["neg_risk"])
        except (KeyError, TypeError) as exc:
            raise ResponseDecodeError(f"{self.base_url}/neg-risk", str(raw)) from exc

    # ── Public API: Orders ───────────────────────────────────────

    async def place_order(
        self,
        signed_order: SignedOrder,
        order_type: OrderType = OrderType.FOK,
    ) -> PlaceOrderResponse:
        """Post a signed order with Layer-2 headers.

        The HMAC covers the exact JSON string that is sent.

        Raises
        ------
        ClobApiError
            If the CLOB answers with a non-empty ``errorMsg``.
        """
        credentials = await self.ensure_api_credentials()
        request = OrderRequest(order=signed_order, owner=credentials.api_key, order_type=order_type)
        body = json.dumps(request.model_dump(by_alias=True, mode="json"), separators=(",", ":"))
        headers = create_level_2_headers(
            self._signer.address, credentials, "POST", "/order", body
        )
        headers["Content-Type"] = "application/json"

        raw = await self._send(
            "POST",
            "/order",
            params=_GEO_BLOCK_PARAMS,
            content=body,
            headers=headers,
        )
        try:
            response = PlaceOrderResponse.model_validate(raw)
        except ValidationError as exc:
            raise ResponseDecodeError(f"{self.base_url}/order", str(raw)) from exc

        if response.error_msg:
            logger.warning(
                "clob_client.order_rejected",
                token_id=signed_order.token_id,
                error=response.error_msg,
            )
            raise ClobApiError(response.error_msg, payload=raw)

        logger.info(
            "clob_client.order_placed",
            side=signed_order.side.value,
            order_id=response.order_id,
            making_amount=response.making_amount,
            taking_amount=response.taking_amount,
            tx=response.transaction_url,
        )
        return response

    # ── Internal ─────────────────────────────────────────────────

    def _parse_credentials(self, raw: object, path: str) -> ApiCredentials:
        try:
            return ApiCredentials.model_validate(raw)
        except ValidationError as exc:
            raise ResponseDecodeError(f"{self.base_url}{path}", "<credentials redacted>") from exc

    def _parse_book(self, raw: object, path: str) -> OrderBookData:
        try:
            return OrderBookData.model_validate(raw)
        except ValidationError as exc:
            raise ResponseDecodeError(f"{self.base_url}{path}", str(raw)) from exc
