"""Polymarket signing engine — models package."""

from .book import AccumulatedLevel, BookLevel, OrderBookData
from .credentials import ApiCredentials
from .order import (
    CreateOrderOptions,
    OrderData,
    OrderRequest,
    OrderStatus,
    OrderType,
    PlaceOrderResponse,
    Side,
    SignatureType,
    SignedOrder,
    TickSize,
    UserMarketOrder,
    UserOrder,
)
from .relayer import (
    RelayerNonceResponse,
    RelayerRequestBody,
    RelayerRequestType,
    RelayerSubmitResponse,
    RelayerTransactionStatus,
    SignatureParams,
    TransactionState,
)

__all__ = [
    "AccumulatedLevel",
    "ApiCredentials",
    "BookLevel",
    "CreateOrderOptions",
    "OrderBookData",
    "OrderData",
    "OrderRequest",
    "OrderStatus",
    "OrderType",
    "PlaceOrderResponse",
    "RelayerNonceResponse",
    "RelayerRequestBody",
    "RelayerRequestType",
    "RelayerSubmitResponse",
    "RelayerTransactionStatus",
    "SignatureParams",
    "SignatureType",
    "SignedOrder",
    "Side",
    "TickSize",
    "TransactionState",
    "UserMarketOrder",
    "UserOrder",
]
