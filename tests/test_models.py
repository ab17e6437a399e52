"""Tests for models/ and config/settings.py."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from config.settings import Settings
from models.order import (
    OrderRequest,
    OrderType,
    PlaceOrderResponse,
    Side,
    SignatureType,
    SignedOrder,
    UserMarketOrder,
)
from models.relayer import (
    RelayerSubmitResponse,
    RelayerTransactionStatus,
    SignatureParams,
    TransactionState,
)

ADDRESS = "0x" + "11" * 20


def _signed_order() -> SignedOrder:
    return SignedOrder(
        salt=1,
        maker=ADDRESS,
        signer=ADDRESS,
        taker="0x" + "00" * 20,
        token_id="99",
        maker_amount="1000000",
        taker_amount="2000000",
        expiration="0",
        nonce="0",
        fee_rate_bps="0",
        side=Side.SELL,
        signature_type=SignatureType.EOA,
        signature="0xsig",
    )


class TestOrderModels:

    def test_side_index(self) -> None:
        assert Side.BUY.index == 0
        assert Side.SELL.index == 1

    def test_signed_order_is_frozen(self) -> None:
        order = _signed_order()
        with pytest.raises(ValidationError):
            order.salt = 2  # type: ignore[misc]

    def test_order_request_wire_shape(self) -> None:
        request = OrderRequest(order=_signed_order(), owner="key", order_type=OrderType.GTC)
        wire = request.model_dump(by_alias=True, mode="json")
        assert wire["owner"] == "key"
        assert wire["orderType"] == "GTC"
        assert wire["order"]["side"] == "SELL"
        assert wire["order"]["signatureType"] == 0
        assert wire["order"]["salt"] == 1

    def test_place_order_response_defaults(self) -> None:
        response = PlaceOrderResponse.model_validate({"orderID": "0x1", "transactionsHashes": None})
        assert response.error_msg == ""
        assert response.order_id == "0x1"
        assert response.transaction_url is None

    def test_market_order_price_optional(self) -> None:
        assert UserMarketOrder(token_id="1", amount=5).price is None
        with pytest.raises(ValidationError):
            UserMarketOrder(token_id="1", amount=0)


class TestRelayerModels:

    def test_safe_params_exclude_create_fields(self) -> None:
        dumped = SignatureParams.for_safe(1).model_dump(by_alias=True, exclude_none=True)
        assert dumped["operation"] == "1"
        assert "paymentToken" not in dumped

    def test_submit_response(self) -> None:
        response = RelayerSubmitResponse.model_validate(
            {"transactionID": "t", "transactionHash": "0xh", "state": "STATE_NEW"}
        )
        assert response.transaction_id == "t"
        assert response.transaction_hash == "0xh"

    def test_transaction_state(self) -> None:
        status = RelayerTransactionStatus.model_validate({"state": "STATE_FAILED"})
        assert status.state is TransactionState.FAILED
        with pytest.raises(ValidationError):
            RelayerTransactionStatus.model_validate({"state": "STATE_UNKNOWN"})


class TestSettings:

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("CHAIN_ID", raising=False)
        monkeypatch.delenv("HTTP_MAX_RETRIES", raising=False)
        cfg = Settings(_env_file=None)
        assert cfg.CHAIN_ID == 137
        assert cfg.HTTP_MAX_RETRIES == 5
        assert cfg.TX_CONFIRMATION_TIMEOUT_SECONDS == 100.0

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CHAIN_ID", "80002")
        cfg = Settings(_env_file=None)
        assert cfg.CHAIN_ID == 80002
