"""CLOB authentication headers.

Layer 1 proves control of the wallet with an EIP-712 ``ClobAuth``
signature and is only used to derive or create API keys.  Layer 2 signs
each request with an HMAC keyed by the API secret.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import time
from typing import Optional

from eth_utils import to_hex

from models.credentials import ApiCredentials
from web3_infra.eip712_signer import Signer

CLOB_AUTH_MESSAGE = "This message attests that I control the given wallet"
CLOB_AUTH_DOMAIN_NAME = "ClobAuthDomain"
CLOB_AUTH_VERSION = "1"

CLOB_AUTH_TYPES = {
    "ClobAuth": [
        {"name": "address", "type": "address"},
        {"name": "timestamp", "type": "string"},
        {"name": "nonce", "type": "uint256"},
        {"name": "message", "type": "string"},
    ],
}

POLY_ADDRESS = "poly_address"
POLY_SIGNATURE = "poly_signature"
POLY_TIMESTAMP = "poly_timestamp"
POLY_NONCE = "poly_nonce"
POLY_API_KEY = "poly_api_key"
POLY_PASSPHRASE = "poly_passphrase"


def clob_auth_domain(chain_id: int = 137) -> dict:
    return {"name": CLOB_AUTH_DOMAIN_NAME, "version": CLOB_AUTH_VERSION, "chainId": chain_id}


def clob_auth_message(address: str, timestamp: str, nonce: int = 0) -> dict:
    return {
        "address": address,
        "timestamp": timestamp,
        "nonce": nonce,
        "message": CLOB_AUTH_MESSAGE,
    }


def sign_clob_auth_message(
    signer: Signer,
    timestamp: str,
    nonce: int = 0,
    chain_id: int = 137,
) -> str:
    """``0x``-prefixed EIP-712 signature of the ``ClobAuth`` attestation."""
    signature = signer.sign_typed_data(
        clob_auth_domain(chain_id),
        CLOB_AUTH_TYPES,
        clob_auth_message(signer.address, timestamp, nonce),
    )
    return to_hex(signature)


def create_level_1_headers(
    signer: Signer,
    nonce: int = 0,
    timestamp: Optional[int] = None,
) -> dict[str, str]:
    """Wallet-level headers for ``/auth/derive-api-key`` and ``/auth/api-key``.

    Parameters
    ----------
    signer:
        Wallet whose control is attested.
    nonce:
        Attestation nonce; the exchange issues keys for nonce 0.
    timestamp:
        Unix seconds.  Defaults to now.
    """
    ts = str(int(time.time()) if timestamp is None else timestamp)
    return {
        POLY_ADDRESS: signer.address,
        POLY_NONCE: str(nonce),
        POLY_SIGNATURE: sign_clob_auth_message(signer, ts, nonce),
        POLY_TIMESTAMP: ts,
    }


def build_hmac_signature(
    secret: str,
    timestamp: str,
    method: str,
    request_path: str,
    body: Optional[str] = None,
) -> str:
    """URL-safe base64 HMAC-SHA256 of ``timestamp + method + path [+ body]``.

    *secret* is the base64url API secret; *body* must be the exact string
    sent on the wire.
    """
    message = f"{timestamp}{method}{request_path}"
    if body is not None:
        message += body
    key = base64.urlsafe_b64decode(secret)
    digest = hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()
    return base64.urlsafe_b64encode(digest).decode("utf-8")


def create_level_2_headers(
    address: str,
    credentials: ApiCredentials,
    method: str,
    request_path: str,
    body: Optional[str] = None,
    timestamp: Optional[int] = None,
) -> dict[str, str]:
    """API-key headers for trading and account endpoints.

    The same timestamp is used in the signed message and in
    ``poly_timestamp``.
    """
    ts = str(int(time.time()) if timestamp is None else timestamp)
    return {
        POLY_ADDRESS: address,
        POLY_SIGNATURE: build_hmac_signature(
            credentials.api_secret, ts, method, request_path, body
        ),
        POLY_TIMESTAMP: ts,
        POLY_API_KEY: credentials.api_key,
        POLY_PASSPHRASE: credentials.api_passphrase,
    }
