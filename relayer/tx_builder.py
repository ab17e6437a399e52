"""Safe meta-transactions — multisend packing and relayer-compatible signatures.

The relayer executes a ``SafeTx`` from the account's proxy wallet.  It
expects an ``eth_sign`` signature over the SafeTx EIP-712 hash, with the
recovery id shifted by 4 so the Safe contract knows which scheme to verify.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable

import structlog
from eth_abi import decode, encode
from eth_abi.packed import encode_packed
from eth_utils import function_signature_to_4byte_selector, to_checksum_address, to_hex

from core.errors import EncodingError, RecoveryIdError
from web3_infra.constants import ZERO_ADDRESS
from web3_infra.eip712_signer import Signer, checksum, split_signature, typed_data_hash
from web3_infra.proxy_wallet import get_proxy_wallet_address

logger = structlog.get_logger("relayer.tx_builder")

MULTISEND_SELECTOR = function_signature_to_4byte_selector("multiSend(bytes)")

SAFE_TX_TYPES = {
    "SafeTx": [
        {"name": "to", "type": "address"},
        {"name": "value", "type": "uint256"},
        {"name": "data", "type": "bytes"},
        {"name": "operation", "type": "uint8"},
        {"name": "safeTxGas", "type": "uint256"},
        {"name": "baseGas", "type": "uint256"},
        {"name": "gasPrice", "type": "uint256"},
        {"name": "gasToken", "type": "address"},
        {"name": "refundReceiver", "type": "address"},
        {"name": "nonce", "type": "uint256"},
    ],
}

# Packed multisend entry: operation, to, value, data length, then data.
_ENTRY_HEADER_LEN = 1 + 20 + 32 + 32


class Operation(IntEnum):
    CALL = 0
    DELEGATE_CALL = 1


@dataclass(frozen=True)
class RelayerTransaction:
    """One call inside a multisend bundle."""

    to: str
    data: bytes
    value: int = 0
    operation: Operation = Operation.CALL

    def encode_packed(self) -> bytes:
        return encode_packed(
            ["uint8", "address", "uint256", "uint256", "bytes"],
            [int(self.operation), checksum(self.to), self.value, len(self.data), self.data],
        )


@dataclass(frozen=True)
class SafeTx:
    """Gas-less Safe transaction; every gas and refund field is zero."""

    to: str
    data: bytes
    nonce: int
    operation: Operation = Operation.CALL
    value: int = 0
    safe_tx_gas: int = 0
    base_gas: int = 0
    gas_price: int = 0
    gas_token: str = ZERO_ADDRESS
    refund_receiver: str = ZERO_ADDRESS

    def message(self) -> dict:
        return {
            "to": checksum(self.to),
            "value": self.value,
            "data": self.data,
            "operation": int(self.operation),
            "safeTxGas": self.safe_tx_gas,
            "baseGas": self.base_gas,
            "gasPrice": self.gas_price,
            "gasToken": checksum(self.gas_token),
            "refundReceiver": checksum(self.refund_receiver),
            "nonce": self.nonce,
        }


def safe_tx_domain(proxy_wallet: str, chain_id: int = 137) -> dict:
    # Safe domains carry neither name nor version.
    return {"chainId": chain_id, "verifyingContract": checksum(proxy_wallet)}


def safe_tx_hash(tx: SafeTx, proxy_wallet: str, chain_id: int = 137) -> bytes:
    """EIP-712 signing hash of *tx* as verified by *proxy_wallet*."""
    return typed_data_hash(safe_tx_domain(proxy_wallet, chain_id), SAFE_TX_TYPES, tx.message())


# ── Multisend ────────────────────────────────────────────────────────


def encode_multisend_transactions(transactions: Iterable[RelayerTransaction]) -> bytes:
    """Concatenate the packed encodings of *transactions*."""
    return b"".join(tx.encode_packed() for tx in transactions)


def decode_multisend_transactions(packed: bytes) -> list[RelayerTransaction]:
    """Inverse of :func:`encode_multisend_transactions`.

    Raises
    ------
    EncodingError
        If *packed* is truncated or has an invalid operation byte.
    """
    transactions: list[RelayerTransaction] = []
    offset = 0
    while offset < len(packed):
        if offset + _ENTRY_HEADER_LEN > len(packed):
            raise EncodingError(f"truncated multisend entry at byte {offset}")
        operation = packed[offset]
        to = to_checksum_address(packed[offset + 1:offset + 21])
        value = int.from_bytes(packed[offset + 21:offset + 53], "big")
        data_len = int.from_bytes(packed[offset + 53:offset + 85], "big")
        start = offset + _ENTRY_HEADER_LEN
        end = start + data_len
        if end > len(packed):
            raise EncodingError(f"multisend data overruns buffer at byte {start}")
        try:
            op = Operation(operation)
        except ValueError as exc:
            raise EncodingError(f"invalid multisend operation {operation}") from exc
        transactions.append(
            RelayerTransaction(to=to, data=bytes(packed[start:end]), value=value, operation=op)
        )
        offset = end
    return transactions


def get_multisend_calldata(transactions: Iterable[RelayerTransaction]) -> bytes:
    """``multiSend(bytes)`` calldata executing *transactions* in order."""
    return MULTISEND_SELECTOR + encode(["bytes"], [encode_multisend_transactions(transactions)])


def decode_multisend_calldata(calldata: bytes) -> list[RelayerTransaction]:
    if calldata[:4] != MULTISEND_SELECTOR:
        raise EncodingError("calldata is not a multiSend(bytes) call")
    (packed,) = decode(["bytes"], calldata[4:])
    return decode_multisend_transactions(packed)


# ── Signing ──────────────────────────────────────────────────────────


def normalize_v(v: int) -> int:
    """Shift a recovery id into the Safe's ``eth_sign`` range (31 or 32).

    Raises
    ------
    RecoveryIdError
        If *v* is not 0, 1, 27 or 28.
    """
    if v in (0, 1):
        return v + 31
    if v in (27, 28):
        return v + 4
    raise RecoveryIdError(v)


def get_packed_signature(
    signer: Signer,
    to: str,
    data: bytes,
    nonce: int,
    operation: Operation = Operation.CALL,
    chain_id: int = 137,
) -> str:
    """Sign a SafeTx for the signer's proxy wallet in the relayer's format.

    Parameters
    ----------
    signer:
        Owner of the proxy wallet.
    to, data, operation:
        Call executed by the Safe.  Multisend bundles use
        ``DELEGATE_CALL`` to the multisend contract.
    nonce:
        Safe nonce just fetched from the relayer; never cached.

    Returns
    -------
    str
        ``0x``-prefixed ``r (32) || s (32) || v (1)``, with ``v`` in {31, 32}.
    """
    proxy_wallet = get_proxy_wallet_address(signer.address)
    tx = SafeTx(to=to, data=data, nonce=nonce, operation=operation)
    digest = safe_tx_hash(tx, proxy_wallet, chain_id)

    r, s, v = split_signature(signer.sign_message(digest))
    packed = encode_packed(["uint256", "uint256", "uint8"], [r, s, normalize_v(v)])

    logger.debug(
        "tx_builder.signed",
        proxy_wallet=proxy_wallet,
        to=tx.to,
        operation=int(operation),
        nonce=nonce,
    )
    return to_hex(packed)
