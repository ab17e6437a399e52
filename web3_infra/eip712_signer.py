"""Signer capability — EIP-191 and EIP-712 signing behind one small interface.

Every builder in this package depends only on :class:`Signer`, so a remote
or hardware signer can replace :class:`LocalKeySigner` without touching the
order, relayer or auth code.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import structlog
from eth_account import Account
from eth_account.messages import SignableMessage, encode_defunct, encode_typed_data
from eth_utils import keccak, to_checksum_address

from config.settings import settings
from core.errors import EncodingError

logger = structlog.get_logger("web3_infra.eip712_signer")

TypedDataTypes = dict[str, list[dict[str, str]]]


@runtime_checkable
class Signer(Protocol):
    """Anything that holds a key and can produce 65-byte ECDSA signatures."""

    @property
    def address(self) -> str:
        """Checksummed wallet address of the key."""
        ...

    def sign_message(self, message: bytes) -> bytes:
        """EIP-191 personal-sign *message*; returns ``r || s || v``."""
        ...

    def sign_typed_data(
        self,
        domain: dict[str, Any],
        types: TypedDataTypes,
        message: dict[str, Any],
    ) -> bytes:
        """EIP-712 sign *message*; returns ``r || s || v``."""
        ...


class LocalKeySigner:
    """Signer backed by a private key held in process memory.

    Parameters
    ----------
    private_key:
        Hex-encoded secp256k1 key, with or without ``0x``.

    Raises
    ------
    EncodingError
        If *private_key* is not a valid key.
    """

    def __init__(self, private_key: str) -> None:
        try:
            self._account = Account.from_key(private_key)
        except (ValueError, TypeError) as exc:
            raise EncodingError("invalid private key") from exc
        logger.debug("eip712_signer.loaded", address=self._account.address)

    @property
    def address(self) -> str:
        return self._account.address

    def sign_message(self, message: bytes) -> bytes:
        signed = self._account.sign_message(encode_defunct(primitive=message))
        return bytes(signed.signature)

    def sign_typed_data(
        self,
        domain: dict[str, Any],
        types: TypedDataTypes,
        message: dict[str, Any],
    ) -> bytes:
        signable = encode_typed_data(
            domain_data=domain,
            message_types=types,
            message_data=message,
        )
        signed = self._account.sign_message(signable)
        return bytes(signed.signature)

    @classmethod
    def from_settings(cls) -> LocalKeySigner:
        """Signer for ``POLYMARKET_PRIVATE_KEY``."""
        if not settings.POLYMARKET_PRIVATE_KEY:
            raise EncodingError("POLYMARKET_PRIVATE_KEY is not set")
        return cls(settings.POLYMARKET_PRIVATE_KEY)

    def __repr__(self) -> str:
        return f"LocalKeySigner(address={self.address!r})"


# ── Helpers ─────────────────────────────────────────────────────────


def typed_data_signable(
    domain: dict[str, Any],
    types: TypedDataTypes,
    message: dict[str, Any],
) -> SignableMessage:
    """EIP-712 signable message for *domain*, *types* and *message*."""
    return encode_typed_data(domain_data=domain, message_types=types, message_data=message)


def typed_data_hash(
    domain: dict[str, Any],
    types: TypedDataTypes,
    message: dict[str, Any],
) -> bytes:
    """The 32-byte EIP-712 signing hash: ``keccak(0x19 0x01 || domainSeparator || structHash)``."""
    signable = typed_data_signable(domain, types, message)
    return keccak(b"\x19" + signable.version + signable.header + signable.body)


def split_signature(signature: bytes) -> tuple[int, int, int]:
    """Split a 65-byte signature into ``(r, s, v)``.

    Raises
    ------
    EncodingError
        If *signature* is not 65 bytes long.
    """
    if len(signature) != 65:
        raise EncodingError(f"signature must be 65 bytes, got {len(signature)}")
    r = int.from_bytes(signature[0:32], "big")
    s = int.from_bytes(signature[32:64], "big")
    return r, s, signature[64]


def recover_typed_data_signer(
    domain: dict[str, Any],
    types: TypedDataTypes,
    message: dict[str, Any],
    signature: bytes | str,
) -> str:
    """Checksummed address that produced *signature* over the typed data."""
    signable = typed_data_signable(domain, types, message)
    return to_checksum_address(Account.recover_message(signable, signature=signature))


def checksum(address: str) -> str:
    """Checksum *address*, raising :class:`EncodingError` for malformed input."""
    try:
        return to_checksum_address(address)
    except (ValueError, TypeError) as exc:
        raise EncodingError(f"malformed address: {address!r}") from exc
