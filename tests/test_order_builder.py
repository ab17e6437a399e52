"""Tests for clob/order_builder.py and clob/constants.py."""

from __future__ import annotations

import time

import pytest
from eth_abi import encode
from eth_keys import keys
from eth_utils import keccak
from pydantic import ValidationError

from clob.constants import (
    CONTRACT_CONFIG,
    POLYGON_AMOY,
    POLYGON_MAINNET,
    get_contract_config,
    get_contract_config_or_mainnet,
    get_rounding_config,
    parse_tick_size,
)
from clob.order_builder import (
    OrderBuilder,
    generate_salt,
    get_market_buy_raw_amounts,
    get_order_raw_amounts,
    recover_order_signer,
)
from core.errors import (
    InvalidPriceError,
    SignerMismatchError,
    UnknownTickSizeError,
    UnsupportedChainError,
)
from models.order import (
    CreateOrderOptions,
    OrderData,
    Side,
    SignatureType,
    SignedOrder,
    TickSize,
    UserMarketOrder,
    UserOrder,
)
from web3_infra.eip712_signer import LocalKeySigner
from web3_infra.proxy_wallet import get_proxy_wallet_address

PRIVATE_KEY = "0x" + "ab" * 32
OTHER_KEY = "0x" + "cd" * 32
TOKEN_ID = "71321045679252212594626385532706912750332728571942532289631379312455583992563"
EXCHANGE = CONTRACT_CONFIG[POLYGON_MAINNET].exchange
NEG_RISK_EXCHANGE = CONTRACT_CONFIG[POLYGON_MAINNET].neg_risk_exchange


@pytest.fixture
def signer() -> LocalKeySigner:
    return LocalKeySigner(PRIVATE_KEY)


@pytest.fixture
def builder(signer: LocalKeySigner) -> OrderBuilder:
    return OrderBuilder(signer)


@pytest.fixture
def hundredth() -> CreateOrderOptions:
    return CreateOrderOptions(tick_size=TickSize.HUNDREDTH)


class TestRawAmounts:

    def test_buy(self) -> None:
        rounding = get_rounding_config("0.01")
        assert get_order_raw_amounts(Side.BUY, 10, 0.37, rounding) == (3.7, 10.0)

    def test_sell(self) -> None:
        rounding = get_rounding_config("0.01")
        assert get_order_raw_amounts(Side.SELL, 10, 0.37, rounding) == (10.0, 3.7)

    def test_size_truncated(self) -> None:
        rounding = get_rounding_config("0.01")
        maker, taker = get_order_raw_amounts(Side.SELL, 10.129, 0.5, rounding)
        assert maker == 10.12
        assert taker == 5.06

    def test_market_buy(self) -> None:
        rounding = get_rounding_config("0.01")
        assert get_market_buy_raw_amounts(5, 0.5, rounding) == (5.0, 10.0)

    @pytest.mark.parametrize("side", [Side.BUY, Side.SELL])
    def test_sub_tick_price_rejected(self, side: Side) -> None:
        rounding = get_rounding_config("0.01")
        with pytest.raises(InvalidPriceError) as exc_info:
            get_order_raw_amounts(side, 10, 0.004, rounding)
        assert exc_info.value.decimals == 2

    def test_market_buy_sub_tick_price_rejected(self) -> None:
        rounding = get_rounding_config("0.01")
        with pytest.raises(InvalidPriceError):
            get_market_buy_raw_amounts(5, 0.009, rounding)


class TestLimitOrders:

    def test_buy_amounts(self, builder: OrderBuilder, hundredth: CreateOrderOptions) -> None:
        order = builder.build_signed_order(
            UserOrder(token_id=TOKEN_ID, price=0.37, size=10, side=Side.BUY),
            hundredth,
        )
        assert order.maker_amount == "3700000"
        assert order.taker_amount == "10000000"
        assert order.side is Side.BUY

    def test_sell_amounts(self, builder: OrderBuilder, hundredth: CreateOrderOptions) -> None:
        order = builder.build_signed_order(
            UserOrder(token_id=TOKEN_ID, price=0.37, size=10, side=Side.SELL),
            hundredth,
        )
        assert order.maker_amount == "10000000"
        assert order.taker_amount == "3700000"

    def test_defaults(
        self, builder: OrderBuilder, signer: LocalKeySigner, hundredth: CreateOrderOptions
    ) -> None:
        order = builder.build_signed_order(
            UserOrder(token_id=TOKEN_ID, price=0.5, size=2, side=Side.BUY),
            hundredth,
        )
        assert order.maker == signer.address
        assert order.signer == signer.address
        assert order.expiration == "0"
        assert order.nonce == "0"
        assert order.fee_rate_bps == "0"
        assert order.signature_type is SignatureType.POLY_GNOSIS_SAFE

    def test_signature_recovers_to_signer(
        self, builder: OrderBuilder, signer: LocalKeySigner, hundredth: CreateOrderOptions
    ) -> None:
        order = builder.build_signed_order(
            UserOrder(token_id=TOKEN_ID, price=0.37, size=10, side=Side.BUY),
            hundredth,
        )
        assert order.signature.startswith("0x")
        assert len(order.signature) == 2 + 130
        assert recover_order_signer(order, POLYGON_MAINNET, EXCHANGE) == signer.address

    def test_neg_risk_uses_neg_risk_exchange(
        self, builder: OrderBuilder, signer: LocalKeySigner
    ) -> None:
        order = builder.build_signed_order(
            UserOrder(token_id=TOKEN_ID, price=0.37, size=10, side=Side.BUY),
            CreateOrderOptions(tick_size=TickSize.HUNDREDTH, neg_risk=True),
        )
        assert recover_order_signer(order, POLYGON_MAINNET, NEG_RISK_EXCHANGE) == signer.address
        assert recover_order_signer(order, POLYGON_MAINNET, EXCHANGE) != signer.address

    def test_funder_is_maker(self, signer: LocalKeySigner, hundredth: CreateOrderOptions) -> None:
        proxy = get_proxy_wallet_address(signer.address)
        builder = OrderBuilder(signer, funder=proxy)
        order = builder.build_signed_order(
            UserOrder(token_id=TOKEN_ID, price=0.37, size=10, side=Side.BUY),
            hundredth,
        )
        assert order.maker == proxy
        assert order.signer == signer.address
        assert recover_order_signer(order, POLYGON_MAINNET, EXCHANGE) == signer.address

    def test_explicit_signature_type(
        self, signer: LocalKeySigner, hundredth: CreateOrderOptions
    ) -> None:
        builder = OrderBuilder(signer, signature_type=SignatureType.EOA)
        order = builder.build_signed_order(
            UserOrder(token_id=TOKEN_ID, price=0.37, size=10, side=Side.BUY),
            hundredth,
        )
        assert order.signature_type is SignatureType.EOA

    def test_invalid_user_order_rejected(self) -> None:
        with pytest.raises(ValidationError):
            UserOrder(token_id=TOKEN_ID, price=0, size=10, side=Side.BUY)
        with pytest.raises(ValidationError):
            UserOrder(token_id=TOKEN_ID, price=1.5, size=10, side=Side.BUY)

    def test_sub_tick_price_not_signed(
        self, builder: OrderBuilder, hundredth: CreateOrderOptions
    ) -> None:
        with pytest.raises(InvalidPriceError):
            builder.build_signed_order(
                UserOrder(token_id=TOKEN_ID, price=0.004, size=10, side=Side.BUY),
                hundredth,
            )


class TestMarketBuyOrders:

    def test_uncapped_price(self, builder: OrderBuilder, hundredth: CreateOrderOptions) -> None:
        order = builder.build_signed_market_buy_order(
            UserMarketOrder(token_id=TOKEN_ID, amount=10),
            hundredth,
        )
        assert order.side is Side.BUY
        assert order.maker_amount == "10000000"
        assert order.taker_amount == "10000000"

    def test_capped_price(self, builder: OrderBuilder, hundredth: CreateOrderOptions) -> None:
        order = builder.build_signed_market_buy_order(
            UserMarketOrder(token_id=TOKEN_ID, amount=5, price=0.5),
            hundredth,
        )
        assert order.maker_amount == "5000000"
        assert order.taker_amount == "10000000"
        assert order.expiration == "0"

    def test_sub_tick_price_not_signed(
        self, builder: OrderBuilder, hundredth: CreateOrderOptions
    ) -> None:
        with pytest.raises(InvalidPriceError) as exc_info:
            builder.build_signed_market_buy_order(
                UserMarketOrder(token_id=TOKEN_ID, amount=5, price=0.001),
                hundredth,
            )
        assert exc_info.value.price == 0.001


class TestBuildOrder:

    def _order_data(self, maker: str, **overrides: object) -> OrderData:
        fields = {
            "maker": maker,
            "token_id": TOKEN_ID,
            "maker_amount": "3700000",
            "taker_amount": "10000000",
            "side": Side.BUY,
        }
        fields.update(overrides)
        return OrderData(**fields)

    def test_fixed_salt_is_deterministic(
        self, builder: OrderBuilder, signer: LocalKeySigner
    ) -> None:
        data = self._order_data(signer.address)
        first = builder.build_order(data, salt=123)
        second = builder.build_order(data, salt=123)
        assert first.salt == 123
        assert first.signature == second.signature

    def test_different_salt_different_signature(
        self, builder: OrderBuilder, signer: LocalKeySigner
    ) -> None:
        data = self._order_data(signer.address)
        assert builder.build_order(data, salt=1).signature != builder.build_order(data, salt=2).signature

    def test_signer_mismatch(self, builder: OrderBuilder, signer: LocalKeySigner) -> None:
        other = LocalKeySigner(OTHER_KEY)
        data = self._order_data(signer.address, signer=other.address)
        with pytest.raises(SignerMismatchError) as exc_info:
            builder.build_order(data)
        assert exc_info.value.expected == signer.address

    def test_missing_signer_defaults_to_maker(self, builder: OrderBuilder) -> None:
        other = LocalKeySigner(OTHER_KEY)
        # maker is someone else and no signer given, so maker is the signer
        with pytest.raises(SignerMismatchError):
            builder.build_order(self._order_data(other.address))

    def test_lowercase_signer_accepted(self, builder: OrderBuilder, signer: LocalKeySigner) -> None:
        data = self._order_data(signer.address.lower(), signer=signer.address.lower())
        order = builder.build_order(data, salt=7)
        assert order.signer == signer.address
        assert order.maker == signer.address

    def test_random_salt_range(self, builder: OrderBuilder, signer: LocalKeySigner) -> None:
        order = builder.build_order(self._order_data(signer.address))
        assert 0 <= order.salt < int(time.time() * 1000)

    def test_wire_shape(self, builder: OrderBuilder, signer: LocalKeySigner) -> None:
        order = builder.build_order(self._order_data(signer.address), salt=42)
        wire = order.model_dump(by_alias=True, mode="json")
        assert wire["salt"] == 42
        assert wire["side"] == "BUY"
        assert wire["signatureType"] == 2
        assert wire["tokenId"] == TOKEN_ID
        assert wire["makerAmount"] == "3700000"
        assert wire["feeRateBps"] == "0"
        assert set(wire) == {
            "salt", "maker", "signer", "taker", "tokenId", "makerAmount",
            "takerAmount", "expiration", "nonce", "feeRateBps", "side",
            "signatureType", "signature",
        }

    def test_unknown_chain_falls_back_to_mainnet_contracts(self, signer: LocalKeySigner) -> None:
        builder = OrderBuilder(signer, chain_id=1)
        order = builder.build_order(self._order_data(signer.address), salt=5)
        assert recover_order_signer(order, 1, EXCHANGE) == signer.address

    def test_amoy_contracts(self, signer: LocalKeySigner) -> None:
        builder = OrderBuilder(signer, chain_id=POLYGON_AMOY)
        order = builder.build_order(self._order_data(signer.address), salt=5)
        amoy_exchange = CONTRACT_CONFIG[POLYGON_AMOY].exchange
        assert recover_order_signer(order, POLYGON_AMOY, amoy_exchange) == signer.address


# keccak256("EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)")
DOMAIN_TYPEHASH = bytes.fromhex("8b73c3c69bb8fe3d512ecc4cf759cc79239f7b179b0ffacaa9a75d522b39400f")
ORDER_TYPE_STRING = (
    "Order(uint256 salt,address maker,address signer,address taker,uint256 tokenId,"
    "uint256 makerAmount,uint256 takerAmount,uint256 expiration,uint256 nonce,"
    "uint256 feeRateBps,uint8 side,uint8 signatureType)"
)


def _order_digest(order: SignedOrder, chain_id: int, exchange: str) -> bytes:
    domain_separator = keccak(encode(
        ["bytes32", "bytes32", "bytes32", "uint256", "address"],
        [
            DOMAIN_TYPEHASH,
            keccak(text="Polymarket CTF Exchange"),
            keccak(text="1"),
            chain_id,
            exchange,
        ],
    ))
    struct_hash = keccak(encode(
        [
            "bytes32", "uint256", "address", "address", "address", "uint256", "uint256",
            "uint256", "uint256", "uint256", "uint256", "uint8", "uint8",
        ],
        [
            keccak(text=ORDER_TYPE_STRING),
            order.salt,
            order.maker,
            order.signer,
            order.taker,
            int(order.token_id),
            int(order.maker_amount),
            int(order.taker_amount),
            int(order.expiration),
            int(order.nonce),
            int(order.fee_rate_bps),
            0 if order.side is Side.BUY else 1,
            int(order.signature_type),
        ],
    ))
    return keccak(b"\x19\x01" + domain_separator + struct_hash)


def _recover_from_digest(digest: bytes, signature: str) -> str:
    raw = bytes.fromhex(signature[2:])
    r = int.from_bytes(raw[:32], "big")
    s = int.from_bytes(raw[32:64], "big")
    sig = keys.Signature(vrs=(raw[64] - 27, r, s))
    return sig.recover_public_key_from_msg_hash(digest).to_checksum_address()


class TestOrderDigest:

    def test_domain_typehash(self) -> None:
        type_string = "EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"
        assert keccak(text=type_string) == DOMAIN_TYPEHASH

    def test_signature_is_over_exchange_digest(
        self, builder: OrderBuilder, signer: LocalKeySigner
    ) -> None:
        data = OrderData(
            maker=signer.address,
            token_id=TOKEN_ID,
            maker_amount="3700000",
            taker_amount="10000000",
            side=Side.BUY,
        )
        order = builder.build_order(data, salt=42)
        digest = _order_digest(order, POLYGON_MAINNET, EXCHANGE)
        assert _recover_from_digest(digest, order.signature) == signer.address

    def test_sell_side_and_neg_risk_digest(
        self, builder: OrderBuilder, signer: LocalKeySigner
    ) -> None:
        data = OrderData(
            maker=signer.address,
            token_id=TOKEN_ID,
            maker_amount="10000000",
            taker_amount="3700000",
            side=Side.SELL,
            fee_rate_bps="100",
            nonce="9",
            expiration="1700000000",
            signature_type=SignatureType.EOA,
        )
        order = builder.build_order(data, neg_risk=True, salt=7)
        digest = _order_digest(order, POLYGON_MAINNET, NEG_RISK_EXCHANGE)
        assert _recover_from_digest(digest, order.signature) == signer.address


class TestConstants:

    def test_rounding_buckets(self) -> None:
        assert get_rounding_config(TickSize.TENTH).price == 1
        assert get_rounding_config("0.01").amount == 4
        assert get_rounding_config("0.001").amount == 5
        assert get_rounding_config("0.0001").price == 4

    def test_parse_tick_size_from_number(self) -> None:
        assert parse_tick_size(0.001) is TickSize.THOUSANDTH
        assert parse_tick_size("0.1") is TickSize.TENTH

    def test_unknown_tick_size(self) -> None:
        with pytest.raises(UnknownTickSizeError):
            get_rounding_config("0.05")

    def test_strict_contract_lookup(self) -> None:
        with pytest.raises(UnsupportedChainError):
            get_contract_config(1)

    def test_lenient_contract_lookup(self) -> None:
        assert get_contract_config_or_mainnet(1) == CONTRACT_CONFIG[POLYGON_MAINNET]

    def test_generate_salt_bounds(self) -> None:
        assert 0 <= generate_salt() < int(time.time() * 1000)
