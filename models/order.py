"""Order models — user intent, builder record and the signed wire order."""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from web3_infra.constants import POLYGON_EXPLORER_TX_URL, ZERO_ADDRESS


class Side(str, Enum):
    """Order side.  The label goes on the wire; the index goes into the signature."""

    BUY = "BUY"
    SELL = "SELL"

    @property
    def index(self) -> int:
        return 0 if self is Side.BUY else 1


class SignatureType(IntEnum):
    """How the exchange contract relates ``signer`` to ``maker``."""

    EOA = 0
    POLY_PROXY = 1
    POLY_GNOSIS_SAFE = 2


class TickSize(str, Enum):
    """Minimum price increment buckets."""

    TENTH = "0.1"
    HUNDREDTH = "0.01"
    THOUSANDTH = "0.001"
    TEN_THOUSANDTH = "0.0001"


class OrderType(str, Enum):
    """Time-in-force of an order."""

    FOK = "FOK"  # Fill-Or-Kill
    GTC = "GTC"  # Good-Til-Cancelled
    GTD = "GTD"  # Good-Til-Date


class OrderStatus(str, Enum):
    """Status returned by the CLOB when an order is placed."""

    LIVE = "live"
    MATCHED = "matched"
    DELAYED = "delayed"
    UNMATCHED = "unmatched"


# ── Caller intent ───────────────────────────────────────────────────


class UserOrder(BaseModel):
    """Limit order intent in human units."""

    token_id: str = Field(..., min_length=1)
    price: float = Field(..., gt=0, le=1)
    size: float = Field(..., gt=0)
    side: Side
    fee_rate_bps: int = Field(default=0, ge=0)
    nonce: int = Field(default=0, ge=0)
    expiration: int = Field(default=0, ge=0, description="Unix seconds, 0 = never")
    taker: str = ZERO_ADDRESS


class UserMarketOrder(BaseModel):
    """Market buy intent: spend ``amount`` collateral at up to ``price``."""

    token_id: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    price: Optional[float] = Field(default=None, gt=0, le=1)
    fee_rate_bps: int = Field(default=0, ge=0)
    nonce: int = Field(default=0, ge=0)
    taker: str = ZERO_ADDRESS


class CreateOrderOptions(BaseModel):
    """Per-market parameters that change how an order is rounded and signed."""

    tick_size: TickSize
    neg_risk: bool = False


# ── Builder record ──────────────────────────────────────────────────


class OrderData(BaseModel):
    """Order fields after rounding and scaling, before salt and signature.

    ``signer``, ``expiration`` and ``signature_type`` are filled with
    defaults by the builder when left unset.
    """

    maker: str
    taker: str = ZERO_ADDRESS
    token_id: str
    maker_amount: str
    taker_amount: str
    side: Side
    fee_rate_bps: str = "0"
    nonce: str = "0"
    signer: Optional[str] = None
    expiration: Optional[str] = None
    signature_type: Optional[SignatureType] = None


# ── Wire order ──────────────────────────────────────────────────────


class SignedOrder(BaseModel):
    """Order struct plus its EIP-712 signature, shaped for ``POST /order``."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    salt: int
    maker: str
    signer: str
    taker: str
    token_id: str
    maker_amount: str
    taker_amount: str
    expiration: str
    nonce: str
    fee_rate_bps: str
    side: Side
    signature_type: SignatureType
    signature: str


class OrderRequest(BaseModel):
    """Body of ``POST /order``; ``owner`` is the API key."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    order: SignedOrder
    owner: str
    order_type: OrderType = OrderType.FOK


class PlaceOrderResponse(BaseModel):
    """Response of ``POST /order``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    error_msg: str = ""
    order_id: Optional[str] = Field(default=None, alias="orderID")
    taking_amount: Optional[str] = None
    making_amount: Optional[str] = None
    status: Optional[OrderStatus] = None
    transactions_hashes: Optional[list[str]] = None
    success: Optional[bool] = None

    @property
    def transaction_url(self) -> Optional[str]:
        if not self.transactions_hashes:
            return None
        return f"{POLYGON_EXPLORER_TX_URL}{self.transactions_hashes[0]}"
