"""Sign-in attestation — SIWE-style message signed once per session login."""

from __future__ import annotations

import base64
import json
from datetime import datetime, timedelta, timezone
from typing import Optional

from eth_utils import to_hex
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from web3_infra.eip712_signer import Signer

SIGN_IN_DOMAIN = "polymarket.com"
SIGN_IN_URI = "https://polymarket.com"
SIGN_IN_STATEMENT = "Welcome to Polymarket! Sign to connect."
SIGN_IN_VERSION = "1"
SIGN_IN_VALIDITY = timedelta(days=7)


def format_timestamp(moment: datetime) -> str:
    """UTC ISO-8601 with millisecond precision, e.g. ``2024-05-01T12:00:00.123Z``."""
    utc = moment.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


class SignInPayload(BaseModel):
    """Fields of the sign-in message; the JSON form keeps this field order."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    address: str
    chain_id: int = 137
    nonce: str
    domain: str = SIGN_IN_DOMAIN
    issued_at: str
    expiration_time: str
    uri: str = SIGN_IN_URI
    statement: str = SIGN_IN_STATEMENT
    version: str = SIGN_IN_VERSION

    @classmethod
    def new(cls, address: str, nonce: str, now: Optional[datetime] = None) -> SignInPayload:
        """Payload issued at *now* (default: current time) and valid for 7 days."""
        issued = now or datetime.now(timezone.utc)
        return cls(
            address=address,
            nonce=nonce,
            issued_at=format_timestamp(issued),
            expiration_time=format_timestamp(issued + SIGN_IN_VALIDITY),
        )

    def message(self) -> str:
        """Human-readable text the wallet signs."""
        return "\n".join([
            f"{self.domain} wants you to sign in with your Ethereum account:",
            self.address,
            "",
            self.statement,
            "",
            f"URI: {self.uri}",
            f"Version: {self.version}",
            f"Chain ID: {self.chain_id}",
            f"Nonce: {self.nonce}",
            f"Issued At: {self.issued_at}",
            f"Expiration Time: {self.expiration_time}",
        ])

    def to_json(self) -> str:
        return json.dumps(self.model_dump(by_alias=True), separators=(",", ":"))

    def to_base64(self, signature: str) -> str:
        """``base64(json + ":::" + signature)``, the value sent to the gamma auth endpoint."""
        raw = f"{self.to_json()}:::{signature}"
        return base64.b64encode(raw.encode("utf-8")).decode("ascii")

    def sign(self, signer: Signer) -> str:
        """Personal-sign :meth:`message` and return the encoded header value."""
        signature = signer.sign_message(self.message().encode("utf-8"))
        return self.to_base64(to_hex(signature))


def build_sign_in_header(signer: Signer, nonce: str, now: Optional[datetime] = None) -> str:
    """Sign a fresh payload for *signer*."""
    return SignInPayload.new(signer.address, nonce, now).sign(signer)
