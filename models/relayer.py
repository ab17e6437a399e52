"""Relayer wire models — request body, signature params and responses."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from web3_infra.constants import ZERO_ADDRESS


class RelayerRequestType(str, Enum):
    """Kind of relayed transaction."""

    SAFE = "SAFE"
    SAFE_CREATE = "SAFE-CREATE"


class TransactionState(str, Enum):
    """Lifecycle of a relayed transaction."""

    NEW = "STATE_NEW"
    EXECUTED = "STATE_EXECUTED"
    MINED = "STATE_MINED"
    CONFIRMED = "STATE_CONFIRMED"
    FAILED = "STATE_FAILED"
    INVALID = "STATE_INVALID"


class SignatureParams(BaseModel):
    """Parameters the relayer needs to re-assemble what was signed.

    Only the fields of one request type are set; unset fields are left out
    of the JSON body.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    payment_token: Optional[str] = None
    payment: Optional[str] = None
    payment_receiver: Optional[str] = None
    gas_price: Optional[str] = None
    operation: Optional[str] = None
    safe_txn_gas: Optional[str] = None
    base_gas: Optional[str] = None
    gas_token: Optional[str] = None
    refund_receiver: Optional[str] = None

    @classmethod
    def for_safe(cls, operation: int) -> SignatureParams:
        """Zero-gas params for a ``SAFE`` transaction."""
        return cls(
            gas_price="0",
            operation=str(operation),
            safe_txn_gas="0",
            base_gas="0",
            gas_token=ZERO_ADDRESS,
            refund_receiver=ZERO_ADDRESS,
        )

    @classmethod
    def for_safe_create(cls) -> SignatureParams:
        """Zero-payment params for a ``SAFE-CREATE`` transaction."""
        return cls(
            payment_token=ZERO_ADDRESS,
            payment="0",
            payment_receiver=ZERO_ADDRESS,
        )


class RelayerRequestBody(BaseModel):
    """Body of ``POST /submit``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    from_: str = Field(..., alias="from")
    to: str
    proxy_wallet: str
    data: str
    nonce: Optional[str] = None
    signature: str
    signature_params: SignatureParams
    type: RelayerRequestType

    def to_api_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class RelayerSubmitResponse(BaseModel):
    """Response of ``POST /submit``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    transaction_id: str = Field(..., alias="transactionID")
    transaction_hash: Optional[str] = None
    state: str = ""


class RelayerTransactionStatus(BaseModel):
    """One entry of ``GET /transaction``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    state: TransactionState
    transaction_hash: Optional[str] = None


class RelayerNonceResponse(BaseModel):
    """Response of ``GET /nonce``; the nonce is a decimal string."""

    nonce: str
