"""Polymarket signing engine — web3_infra package.

- Signer / LocalKeySigner: EIP-191 and EIP-712 signing capability
- get_proxy_wallet_address: offline CREATE2 derivation of the trading Safe
- sign_enable_trading_message: signature that asks the relayer to deploy it
"""

from .eip712_signer import LocalKeySigner, Signer, split_signature, typed_data_hash
from .proxy_wallet import get_proxy_wallet_address, sign_enable_trading_message

__all__ = [
    "LocalKeySigner",
    "Signer",
    "get_proxy_wallet_address",
    "sign_enable_trading_message",
    "split_signature",
    "typed_data_hash",
]
