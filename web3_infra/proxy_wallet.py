"""Proxy wallet — offline CREATE2 derivation and the Safe-creation signature.

The trading wallet of an account is a Safe deployed by the proxy factory
with a salt derived from the owner's address, so its address is known
before it exists on chain.
"""

from __future__ import annotations

from eth_abi import encode
from eth_utils import decode_hex, keccak, to_checksum_address, to_hex

from web3_infra.constants import (
    SAFE_FACTORY_ADDRESS,
    SAFE_FACTORY_NAME,
    SAFE_INIT_CODE_HASH,
    ZERO_ADDRESS,
)
from web3_infra.eip712_signer import Signer, checksum

CREATE_PROXY_TYPES = {
    "CreateProxy": [
        {"name": "paymentToken", "type": "address"},
        {"name": "payment", "type": "uint256"},
        {"name": "paymentReceiver", "type": "address"},
    ],
}


def create2_address(deployer: str, salt: bytes, init_code_hash: bytes) -> str:
    """Address of a contract deployed with CREATE2.

    ``keccak256(0xff || deployer || salt || init_code_hash)[12:]``
    """
    digest = keccak(b"\xff" + decode_hex(deployer) + salt + init_code_hash)
    return to_checksum_address(digest[12:])


def get_proxy_wallet_address(
    owner: str,
    factory: str = SAFE_FACTORY_ADDRESS,
    init_code_hash: str = SAFE_INIT_CODE_HASH,
) -> str:
    """Deterministic Safe address for *owner*.

    Parameters
    ----------
    owner:
        Signer (EOA) address.
    factory, init_code_hash:
        Overridable for tests; production values are the deployed factory's.

    Returns
    -------
    str
        Checksummed proxy wallet address.

    Raises
    ------
    EncodingError
        If *owner* is not a valid address.
    """
    salt = keccak(encode(["address"], [checksum(owner)]))
    return create2_address(checksum(factory), salt, decode_hex(init_code_hash))


def create_proxy_domain(chain_id: int = 137) -> dict:
    return {
        "name": SAFE_FACTORY_NAME,
        "chainId": chain_id,
        "verifyingContract": SAFE_FACTORY_ADDRESS,
    }


def create_proxy_message() -> dict:
    # Gas for the deployment is paid by the relayer.
    return {
        "paymentToken": ZERO_ADDRESS,
        "payment": 0,
        "paymentReceiver": ZERO_ADDRESS,
    }


def sign_enable_trading_message(signer: Signer, chain_id: int = 137) -> str:
    """Sign the ``CreateProxy`` request that deploys the signer's Safe.

    Returns
    -------
    str
        ``0x``-prefixed 65-byte signature.
    """
    signature = signer.sign_typed_data(
        create_proxy_domain(chain_id),
        CREATE_PROXY_TYPES,
        create_proxy_message(),
    )
    return to_hex(signature)
