"""RelayerClient — nonce, submit and status endpoints of the Safe relayer."""

from __future__ import annotations

import asyncio
from typing import Optional

import httpx
import structlog
from pydantic import ValidationError

from auth.session import PolySession, build_poly_headers
from config.settings import settings
from core.errors import (
    HttpStatusError,
    RelayerNonceError,
    ResponseDecodeError,
    TransactionFailedError,
    TransactionTimeoutError,
)
from core.http import ApiClient
from models.relayer import (
    RelayerNonceResponse,
    RelayerRequestBody,
    RelayerRequestType,
    RelayerSubmitResponse,
    RelayerTransactionStatus,
    TransactionState,
)

logger = structlog.get_logger("relayer.client")

_FINAL_STATES = frozenset({TransactionState.MINED, TransactionState.CONFIRMED})
_FAILED_STATES = frozenset({TransactionState.FAILED, TransactionState.INVALID})


def _is_nonce_rejection(exc: Exception) -> bool:
    return (
        isinstance(exc, HttpStatusError)
        and 400 <= exc.status_code < 500
        and "nonce" in exc.body.lower()
    )


class RelayerClient(ApiClient):
    """Async client for the relayer.

    Every request carries the session cookies of the account, so one client
    belongs to one account task.

    Parameters
    ----------
    session:
        Logged-in session of the account; its AMP cookie is ticked on
        every call.
    base_url:
        Relayer root.  Defaults to ``settings.RELAYER_BASE_URL``.
    """

    _name = "relayer_client"

    def __init__(
        self,
        session: PolySession,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(base_url or settings.RELAYER_BASE_URL, timeout, transport)
        self._session = session

    @property
    def session(self) -> PolySession:
        return self._session

    async def get_nonce(
        self,
        address: str,
        request_type: RelayerRequestType = RelayerRequestType.SAFE,
    ) -> int:
        """Current Safe nonce for the owner *address*.

        Must be fetched right before building the transaction that consumes it.
        """
        raw = await self._send(
            "GET",
            "/nonce",
            params={"address": address, "type": request_type.value},
            headers=build_poly_headers(self._session),
        )
        try:
            nonce = int(RelayerNonceResponse.model_validate(raw).nonce)
        except (ValidationError, ValueError) as exc:
            raise ResponseDecodeError(f"{self.base_url}/nonce", str(raw)) from exc
        logger.debug("relayer_client.nonce", address=address, nonce=nonce)
        return nonce

    async def submit(self, body: RelayerRequestBody) -> RelayerSubmitResponse:
        """Submit a signed transaction.

        Raises
        ------
        RelayerNonceError
            The relayer rejected the nonce; the caller may re-fetch it and
            rebuild once.  Never retried here.
        """
        try:
            raw = await self._send(
                "POST",
                "/submit",
                json_body=body.to_api_dict(),
                headers=build_poly_headers(self._session),
                should_retry=lambda exc: not _is_nonce_rejection(exc),
            )
        except HttpStatusError as exc:
            if _is_nonce_rejection(exc):
                logger.warning(
                    "relayer_client.nonce_rejected",
                    proxy_wallet=body.proxy_wallet,
                    nonce=body.nonce,
                )
                raise RelayerNonceError(exc.body, nonce=body.nonce) from exc
            raise

        try:
            response = RelayerSubmitResponse.model_validate(raw)
        except ValidationError as exc:
            raise ResponseDecodeError(f"{self.base_url}/submit", str(raw)) from exc
        logger.info(
            "relayer_client.submitted",
            type=body.type.value,
            proxy_wallet=body.proxy_wallet,
            transaction_id=response.transaction_id,
            state=response.state,
        )
        return response

    async def get_transaction_status(self, transaction_id: str) -> Optional[str]:
        """Transaction hash once mined, ``None`` while still pending.

        Raises
        ------
        TransactionFailedError
            If the relayer reports the transaction as failed or invalid.
        """
        raw = await self._send(
            "GET",
            "/transaction",
            params={"id": transaction_id},
            headers=build_poly_headers(self._session),
        )
        if not raw:
            return None
        try:
            status = RelayerTransactionStatus.model_validate(raw[0])
        except (ValidationError, KeyError, TypeError) as exc:
            raise ResponseDecodeError(f"{self.base_url}/transaction", str(raw)) from exc
        if status.state in _FINAL_STATES:
            return status.transaction_hash
        if status.state in _FAILED_STATES:
            logger.error(
                "relayer_client.transaction_failed",
                transaction_id=transaction_id,
                state=status.state.value,
            )
            raise TransactionFailedError(transaction_id, status.state.value)
        return None

    async def wait_for_transaction_confirmation(
        self,
        transaction_id: str,
        timeout: Optional[float] = None,
        poll_interval: Optional[float] = None,
    ) -> str:
        """Poll until *transaction_id* is mined and return its hash.

        Raises
        ------
        TransactionTimeoutError
            If it is not mined within *timeout* seconds (default 100).
        TransactionFailedError
            If the relayer reports a terminal failure before that.
        """
        timeout = settings.TX_CONFIRMATION_TIMEOUT_SECONDS if timeout is None else timeout
        poll_interval = settings.TX_POLL_INTERVAL_SECONDS if poll_interval is None else poll_interval

        async def _poll() -> str:
            while True:
                tx_hash = await self.get_transaction_status(transaction_id)
                if tx_hash is not None:
                    return tx_hash
                await asyncio.sleep(poll_interval)

        try:
            tx_hash = await asyncio.wait_for(_poll(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            logger.error(
                "relayer_client.confirmation_timeout",
                transaction_id=transaction_id,
                timeout=timeout,
            )
            raise TransactionTimeoutError(transaction_id, timeout) from exc

        logger.info("relayer_client.confirmed", transaction_id=transaction_id, tx_hash=tx_hash)
        return tx_hash
