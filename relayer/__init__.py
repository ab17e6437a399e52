"""Polymarket signing engine — relayer package."""

from .calls import get_approve_bundle
from .client import RelayerClient
from .flows import (
    approve_tokens,
    build_approve_tokens_request,
    build_enable_trading_request,
    build_withdraw_request,
    enable_trading,
    withdraw_usdc,
)
from .tx_builder import (
    Operation,
    RelayerTransaction,
    SafeTx,
    get_multisend_calldata,
    get_packed_signature,
    normalize_v,
)

__all__ = [
    "Operation",
    "RelayerClient",
    "RelayerTransaction",
    "SafeTx",
    "approve_tokens",
    "build_approve_tokens_request",
    "build_enable_trading_request",
    "build_withdraw_request",
    "enable_trading",
    "get_approve_bundle",
    "get_multisend_calldata",
    "get_packed_signature",
    "normalize_v",
    "withdraw_usdc",
]
