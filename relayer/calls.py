"""ABI-encoded contract calls executed through the relayer."""

from __future__ import annotations

from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector

from relayer.tx_builder import RelayerTransaction
from web3_infra.constants import (
    CONDITIONAL_TOKENS_ADDRESS,
    CTF_EXCHANGE_ADDRESS,
    MAX_UINT256,
    NEG_RISK_ADAPTER_ADDRESS,
    NEG_RISK_CTF_EXCHANGE_ADDRESS,
    USDC_E_ADDRESS,
)
from web3_infra.eip712_signer import checksum

TRANSFER_SELECTOR = function_signature_to_4byte_selector("transfer(address,uint256)")
APPROVE_SELECTOR = function_signature_to_4byte_selector("approve(address,uint256)")
SET_APPROVAL_FOR_ALL_SELECTOR = function_signature_to_4byte_selector(
    "setApprovalForAll(address,bool)"
)


def erc20_transfer_call(to: str, amount: int) -> bytes:
    return TRANSFER_SELECTOR + encode(["address", "uint256"], [checksum(to), amount])


def erc20_approve_call(spender: str, amount: int = MAX_UINT256) -> bytes:
    return APPROVE_SELECTOR + encode(["address", "uint256"], [checksum(spender), amount])


def set_approval_for_all_call(operator: str, approved: bool = True) -> bytes:
    return SET_APPROVAL_FOR_ALL_SELECTOR + encode(
        ["address", "bool"], [checksum(operator), approved]
    )


def get_approve_bundle() -> list[RelayerTransaction]:
    """The seven approvals a fresh proxy wallet needs before it can trade.

    Collateral is approved for the conditional-tokens contract and for every
    exchange operator; outcome tokens are approved for every operator.  The
    order matches what the web front-end submits.
    """
    return [
        RelayerTransaction(USDC_E_ADDRESS, erc20_approve_call(CONDITIONAL_TOKENS_ADDRESS)),
        RelayerTransaction(USDC_E_ADDRESS, erc20_approve_call(CTF_EXCHANGE_ADDRESS)),
        RelayerTransaction(CONDITIONAL_TOKENS_ADDRESS, set_approval_for_all_call(CTF_EXCHANGE_ADDRESS)),
        RelayerTransaction(USDC_E_ADDRESS, erc20_approve_call(NEG_RISK_CTF_EXCHANGE_ADDRESS)),
        RelayerTransaction(USDC_E_ADDRESS, erc20_approve_call(NEG_RISK_ADAPTER_ADDRESS)),
        RelayerTransaction(
            CONDITIONAL_TOKENS_ADDRESS, set_approval_for_all_call(NEG_RISK_CTF_EXCHANGE_ADDRESS)
        ),
        RelayerTransaction(
            CONDITIONAL_TOKENS_ADDRESS, set_approval_for_all_call(NEG_RISK_ADAPTER_ADDRESS)
        ),
    ]
