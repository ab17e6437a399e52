"""Relayed wallet operations: enable trading, approve tokens, withdraw collateral.

The ``build_*`` functions are pure and produce the exact body the relayer
expects.  The async wrappers fetch the Safe nonce and immediately build,
sign and submit, so no other nonce-consuming call for the same wallet can
slip in between.
"""

from __future__ import annotations

import structlog
from eth_utils import to_hex

from models.relayer import RelayerRequestBody, RelayerRequestType, SignatureParams
from relayer.calls import erc20_transfer_call, get_approve_bundle
from relayer.client import RelayerClient
from relayer.tx_builder import Operation, get_multisend_calldata, get_packed_signature
from web3_infra.constants import SAFE_FACTORY_ADDRESS, SAFE_MULTISEND_ADDRESS, USDC_E_ADDRESS
from web3_infra.eip712_signer import Signer, checksum
from web3_infra.proxy_wallet import get_proxy_wallet_address, sign_enable_trading_message

logger = structlog.get_logger("relayer.flows")


def build_safe_request(
    signer: Signer,
    to: str,
    data: bytes,
    nonce: int,
    operation: Operation = Operation.CALL,
) -> RelayerRequestBody:
    """Sign a ``SAFE`` transaction executed by the signer's proxy wallet."""
    signature = get_packed_signature(signer, to, data, nonce, operation)
    return RelayerRequestBody(
        from_=signer.address,
        to=checksum(to),
        proxy_wallet=get_proxy_wallet_address(signer.address),
        data=to_hex(data),
        nonce=str(nonce),
        signature=signature,
        signature_params=SignatureParams.for_safe(int(operation)),
        type=RelayerRequestType.SAFE,
    )


def build_withdraw_request(signer: Signer, to: str, amount: int, nonce: int) -> RelayerRequestBody:
    """Transfer *amount* USDC.e base units from the proxy wallet to *to*."""
    return build_safe_request(signer, USDC_E_ADDRESS, erc20_transfer_call(to, amount), nonce)


def build_approve_tokens_request(signer: Signer, nonce: int) -> RelayerRequestBody:
    """Delegate-call multisend running the seven trading approvals."""
    return build_safe_request(
        signer,
        SAFE_MULTISEND_ADDRESS,
        get_multisend_calldata(get_approve_bundle()),
        nonce,
        Operation.DELEGATE_CALL,
    )


def build_enable_trading_request(signer: Signer) -> RelayerRequestBody:
    """``SAFE-CREATE`` request deploying the signer's proxy wallet.  No nonce."""
    return RelayerRequestBody(
        from_=signer.address,
        to=SAFE_FACTORY_ADDRESS,
        proxy_wallet=get_proxy_wallet_address(signer.address),
        data="0x",
        signature=sign_enable_trading_message(signer),
        signature_params=SignatureParams.for_safe_create(),
        type=RelayerRequestType.SAFE_CREATE,
    )


# ── Submission ───────────────────────────────────────────────────────


async def enable_trading(client: RelayerClient, signer: Signer) -> str:
    """Deploy the proxy wallet; returns the relayer transaction id."""
    response = await client.submit(build_enable_trading_request(signer))
    logger.info("flows.enable_trading", address=signer.address, transaction_id=response.transaction_id)
    return response.transaction_id


async def approve_tokens(client: RelayerClient, signer: Signer) -> str:
    """Approve collateral and outcome tokens for every exchange operator.

    Returns the relayer transaction id.
    """
    nonce = await client.get_nonce(signer.address)
    response = await client.submit(build_approve_tokens_request(signer, nonce))
    logger.info("flows.approve_tokens", address=signer.address, transaction_id=response.transaction_id)
    return response.transaction_id


async def withdraw_usdc(client: RelayerClient, signer: Signer, to: str, amount: int) -> str:
    """Withdraw *amount* USDC.e base units to *to*; returns the transaction hash."""
    nonce = await client.get_nonce(signer.address)
    response = await client.submit(build_withdraw_request(signer, to, amount, nonce))
    logger.info(
        "flows.withdraw_usdc",
        address=signer.address,
        to=to,
        amount=amount,
        transaction_id=response.transaction_id,
    )
    return response.transaction_hash or response.transaction_id
