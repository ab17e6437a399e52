"""Gamma login — trade a signed sign-in attestation for session cookies."""

from __future__ import annotations

from typing import Optional

import httpx
import structlog

from auth.session import (
    AMP_COOKIE_NAME,
    NONCE_COOKIE_NAME,
    SESSION_COOKIE_NAME,
    PolySession,
    build_cookie_header,
)
from auth.sign_in import build_sign_in_header
from config.settings import settings
from core.errors import ResponseDecodeError, SessionError
from core.http import ApiClient, decode_json, request_with_retries
from web3_infra.eip712_signer import Signer

logger = structlog.get_logger("auth.gamma_client")


class GammaAuthClient(ApiClient):
    """Client for ``/nonce`` and ``/login`` on the gamma API."""

    _name = "gamma_client"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(base_url or settings.GAMMA_BASE_URL, timeout, transport)

    async def get_auth_nonce(self) -> tuple[str, str]:
        """Fetch a sign-in nonce.

        Returns
        -------
        tuple[str, str]
            ``(message_nonce, polymarketnonce_cookie)``.

        Raises
        ------
        SessionError
            If the response does not set ``polymarketnonce``.
        """
        response = await request_with_retries(self.http, "GET", "/nonce")
        body = decode_json(response)
        if not isinstance(body, dict) or "nonce" not in body:
            raise ResponseDecodeError(str(response.request.url), response.text)
        cookie = response.cookies.get(NONCE_COOKIE_NAME)
        if not cookie:
            raise SessionError(NONCE_COOKIE_NAME)
        return str(body["nonce"]), cookie

    async def login(self, signer: Signer, session: Optional[PolySession] = None) -> PolySession:
        """Sign in *signer* and store the nonce and session cookies on *session*.

        A new :class:`PolySession` is created when none is given.
        """
        session = session or PolySession()
        message_nonce, nonce_cookie = await self.get_auth_nonce()
        session.polymarket_nonce = nonce_cookie

        headers = {
            "Authorization": build_sign_in_header(signer, message_nonce),
            "Cookie": build_cookie_header([
                (NONCE_COOKIE_NAME, nonce_cookie),
                (AMP_COOKIE_NAME, session.amp_cookie.to_base64_url_encoded()),
            ]),
        }
        response = await request_with_retries(self.http, "GET", "/login", headers=headers)
        session_cookie = response.cookies.get(SESSION_COOKIE_NAME)
        if not session_cookie:
            raise SessionError(SESSION_COOKIE_NAME)
        session.polymarket_session = session_cookie

        logger.info("gamma_client.logged_in", address=signer.address)
        return session
