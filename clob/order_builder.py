"""OrderBuilder — turn a trade intent into a signed CTF Exchange order.

Amounts are rounded with the market's tick-size bucket, scaled to 6-decimal
base units and signed as the exchange's EIP-712 ``Order`` struct.
"""

from __future__ import annotations

import random
import time
from typing import Any, Optional

import structlog
from eth_utils import to_hex

from clob.constants import (
    PROTOCOL_NAME,
    PROTOCOL_VERSION,
    RoundingConfig,
    get_contract_config_or_mainnet,
    get_rounding_config,
)
from clob.precision import adjust_amount, round_down, round_normal, to_base_units
from config.settings import settings
from core.errors import InvalidPriceError, SignerMismatchError
from models.order import (
    CreateOrderOptions,
    OrderData,
    Side,
    SignatureType,
    SignedOrder,
    UserMarketOrder,
    UserOrder,
)
from web3_infra.eip712_signer import Signer, checksum, recover_typed_data_signer

logger = structlog.get_logger("clob.order_builder")

ORDER_TYPES = {
    "Order": [
        {"name": "salt", "type": "uint256"},
        {"name": "maker", "type": "address"},
        {"name": "signer", "type": "address"},
        {"name": "taker", "type": "address"},
        {"name": "tokenId", "type": "uint256"},
        {"name": "makerAmount", "type": "uint256"},
        {"name": "takerAmount", "type": "uint256"},
        {"name": "expiration", "type": "uint256"},
        {"name": "nonce", "type": "uint256"},
        {"name": "feeRateBps", "type": "uint256"},
        {"name": "side", "type": "uint8"},
        {"name": "signatureType", "type": "uint8"},
    ],
}


def get_order_raw_amounts(
    side: Side,
    size: float,
    price: float,
    rounding: RoundingConfig,
) -> tuple[float, float]:
    """Human-unit ``(maker_amount, taker_amount)`` of a limit order.

    A buy gives collateral for shares, a sell gives shares for collateral;
    the share leg is truncated to the size precision and the collateral leg
    is derived from it.

    Raises
    ------
    InvalidPriceError
        If *price* rounds to zero at the bucket's price precision.
    """
    raw_price = round_normal(price, rounding.price)
    if raw_price <= 0:
        raise InvalidPriceError(price, rounding.price)
    if side is Side.BUY:
        raw_taker = round_down(size, rounding.size)
        raw_maker = adjust_amount(raw_taker * raw_price, rounding.amount)
    else:
        raw_maker = round_down(size, rounding.size)
        raw_taker = adjust_amount(raw_maker * raw_price, rounding.amount)
    return raw_maker, raw_taker


def get_market_buy_raw_amounts(
    amount: float,
    price: float,
    rounding: RoundingConfig,
) -> tuple[float, float]:
    """Human-unit ``(maker_amount, taker_amount)`` of a market buy.

    The collateral leg is what the caller spends; the share leg is what
    that buys at the capped price.

    Raises
    ------
    InvalidPriceError
        If *price* truncates to zero at the bucket's price precision.
    """
    raw_maker = round_down(amount, rounding.size)
    raw_price = round_down(price, rounding.price)
    if raw_price <= 0:
        raise InvalidPriceError(price, rounding.price)
    raw_taker = adjust_amount(raw_maker / raw_price, rounding.amount)
    return raw_maker, raw_taker


def order_domain(chain_id: int, verifying_contract: str) -> dict[str, Any]:
    return {
        "name": PROTOCOL_NAME,
        "version": PROTOCOL_VERSION,
        "chainId": chain_id,
        "verifyingContract": checksum(verifying_contract),
    }


def order_message(order: SignedOrder) -> dict[str, Any]:
    """EIP-712 message for *order*; the signature field is ignored."""
    return {
        "salt": order.salt,
        "maker": checksum(order.maker),
        "signer": checksum(order.signer),
        "taker": checksum(order.taker),
        "tokenId": int(order.token_id),
        "makerAmount": int(order.maker_amount),
        "takerAmount": int(order.taker_amount),
        "expiration": int(order.expiration),
        "nonce": int(order.nonce),
        "feeRateBps": int(order.fee_rate_bps),
        "side": order.side.index,
        "signatureType": int(order.signature_type),
    }


def recover_order_signer(order: SignedOrder, chain_id: int, verifying_contract: str) -> str:
    """Address that produced ``order.signature``."""
    return recover_typed_data_signer(
        order_domain(chain_id, verifying_contract),
        ORDER_TYPES,
        order_message(order),
        order.signature,
    )


def generate_salt() -> int:
    """Random order salt in ``[0, now_ms)``; only used to de-duplicate orders."""
    return random.randrange(0, int(time.time() * 1000))


class OrderBuilder:
    """Builds and signs orders for one wallet.

    Parameters
    ----------
    signer:
        Signing capability of the account.
    chain_id:
        Chain whose exchange contracts verify the order.  Defaults to
        ``settings.CHAIN_ID``; unknown chains fall back to Polygon mainnet.
    signature_type:
        How the exchange relates signer and maker.  ``None`` lets
        :meth:`build_order` default to ``POLY_GNOSIS_SAFE``.
    funder:
        Address that holds the funds (the proxy wallet).  Defaults to the
        signer's own address.
    """

    def __init__(
        self,
        signer: Signer,
        chain_id: Optional[int] = None,
        signature_type: Optional[SignatureType] = None,
        funder: Optional[str] = None,
    ) -> None:
        self._signer = signer
        self._chain_id = settings.CHAIN_ID if chain_id is None else chain_id
        self._signature_type = signature_type
        self._funder = funder

    @property
    def signer(self) -> Signer:
        return self._signer

    @property
    def chain_id(self) -> int:
        return self._chain_id

    @property
    def maker(self) -> str:
        return self._funder or self._signer.address

    # ── Public API ───────────────────────────────────────────────

    def build_signed_order(
        self,
        user_order: UserOrder,
        options: CreateOrderOptions,
    ) -> SignedOrder:
        """Round, scale and sign a limit order.

        Raises
        ------
        UnknownTickSizeError
            If ``options.tick_size`` is not a supported bucket.
        InvalidPriceError
            If the price rounds to zero at the bucket's precision.
        SignerMismatchError
            If the resolved signer is not the held key.
        """
        rounding = get_rounding_config(options.tick_size)
        raw_maker, raw_taker = get_order_raw_amounts(
            user_order.side, user_order.size, user_order.price, rounding
        )
        order_data = OrderData(
            maker=self.maker,
            taker=user_order.taker,
            token_id=user_order.token_id,
            maker_amount=to_base_units(raw_maker),
            taker_amount=to_base_units(raw_taker),
            side=user_order.side,
            fee_rate_bps=str(user_order.fee_rate_bps),
            nonce=str(user_order.nonce),
            signer=self._signer.address,
            expiration=str(user_order.expiration),
            signature_type=self._signature_type,
        )
        return self.build_order(order_data, neg_risk=options.neg_risk)

    def build_signed_market_buy_order(
        self,
        user_market_order: UserMarketOrder,
        options: CreateOrderOptions,
    ) -> SignedOrder:
        """Round, scale and sign a market buy spending ``amount`` collateral.

        Without a price the order is capped at ``1.0``, i.e. it accepts any
        price the book offers.
        """
        rounding = get_rounding_config(options.tick_size)
        price = user_market_order.price if user_market_order.price is not None else 1.0
        raw_maker, raw_taker = get_market_buy_raw_amounts(
            user_market_order.amount, price, rounding
        )
        order_data = OrderData(
            maker=self.maker,
            taker=user_market_order.taker,
            token_id=user_market_order.token_id,
            maker_amount=to_base_units(raw_maker),
            taker_amount=to_base_units(raw_taker),
            side=Side.BUY,
            fee_rate_bps=str(user_market_order.fee_rate_bps),
            nonce=str(user_market_order.nonce),
            signer=self._signer.address,
            expiration="0",
            signature_type=self._signature_type,
        )
        return self.build_order(order_data, neg_risk=options.neg_risk)

    def build_order(
        self,
        order_data: OrderData,
        neg_risk: bool = False,
        salt: Optional[int] = None,
    ) -> SignedOrder:
        """Fill defaults, validate the signer, salt and sign *order_data*.

        Parameters
        ----------
        order_data:
            Scaled order fields.  Missing ``signer`` defaults to ``maker``,
            missing ``expiration`` to ``"0"`` and missing
            ``signature_type`` to ``POLY_GNOSIS_SAFE``.
        neg_risk:
            Sign against the neg-risk exchange instead of the standard one.
        salt:
            Fixed salt; a random one is drawn when ``None``.

        Raises
        ------
        SignerMismatchError
            If the resolved signer is not the held key.
        EncodingError
            If an address field is malformed.
        """
        signer_address = self._signer.address
        resolved_signer = order_data.signer or order_data.maker
        if checksum(resolved_signer) != checksum(signer_address):
            raise SignerMismatchError(expected=signer_address, actual=resolved_signer)

        contracts = get_contract_config_or_mainnet(self._chain_id)
        verifying_contract = contracts.neg_risk_exchange if neg_risk else contracts.exchange

        unsigned = SignedOrder(
            salt=generate_salt() if salt is None else salt,
            maker=checksum(order_data.maker),
            signer=checksum(resolved_signer),
            taker=checksum(order_data.taker),
            token_id=order_data.token_id,
            maker_amount=order_data.maker_amount,
            taker_amount=order_data.taker_amount,
            expiration=order_data.expiration or "0",
            nonce=order_data.nonce,
            fee_rate_bps=order_data.fee_rate_bps,
            side=order_data.side,
            signature_type=(
                order_data.signature_type
                if order_data.signature_type is not None
                else SignatureType.POLY_GNOSIS_SAFE
            ),
            signature="0x",
        )

        signature = self._signer.sign_typed_data(
            order_domain(self._chain_id, verifying_contract),
            ORDER_TYPES,
            order_message(unsigned),
        )
        signed = unsigned.model_copy(update={"signature": to_hex(signature)})

        logger.debug(
            "order_builder.signed",
            side=signed.side.value,
            token_id=signed.token_id,
            maker_amount=signed.maker_amount,
            taker_amount=signed.taker_amount,
            neg_risk=neg_risk,
        )
        return signed
