"""Tests for auth/clob_auth.py."""

from __future__ import annotations

import base64
import hashlib
import hmac

import pytest

from auth.clob_auth import (
    CLOB_AUTH_TYPES,
    POLY_ADDRESS,
    POLY_API_KEY,
    POLY_NONCE,
    POLY_PASSPHRASE,
    POLY_SIGNATURE,
    POLY_TIMESTAMP,
    build_hmac_signature,
    clob_auth_domain,
    clob_auth_message,
    create_level_1_headers,
    create_level_2_headers,
)
from models.credentials import ApiCredentials
from web3_infra.eip712_signer import LocalKeySigner, recover_typed_data_signer

PRIVATE_KEY = "0x" + "ab" * 32
SECRET_BYTES = b"super-secret-hmac-key-0123456789"
SECRET = base64.urlsafe_b64encode(SECRET_BYTES).decode()


@pytest.fixture
def signer() -> LocalKeySigner:
    return LocalKeySigner(PRIVATE_KEY)


@pytest.fixture
def credentials() -> ApiCredentials:
    return ApiCredentials(api_key="key-123", api_secret=SECRET, api_passphrase="pass-456")


class TestLevel1Headers:

    def test_keys_and_values(self, signer: LocalKeySigner) -> None:
        headers = create_level_1_headers(signer, timestamp=1_700_000_000)
        assert set(headers) == {POLY_ADDRESS, POLY_NONCE, POLY_SIGNATURE, POLY_TIMESTAMP}
        assert headers[POLY_ADDRESS] == signer.address
        assert headers[POLY_NONCE] == "0"
        assert headers[POLY_TIMESTAMP] == "1700000000"

    def test_signature_recovers(self, signer: LocalKeySigner) -> None:
        headers = create_level_1_headers(signer, nonce=3, timestamp=1_700_000_000)
        recovered = recover_typed_data_signer(
            clob_auth_domain(),
            CLOB_AUTH_TYPES,
            clob_auth_message(signer.address, "1700000000", 3),
            headers[POLY_SIGNATURE],
        )
        assert recovered == signer.address

    def test_defaults_to_current_time(self, signer: LocalKeySigner) -> None:
        headers = create_level_1_headers(signer)
        assert headers[POLY_TIMESTAMP].isdigit()


class TestHmacSignature:

    def test_matches_reference(self) -> None:
        expected = base64.urlsafe_b64encode(
            hmac.new(SECRET_BYTES, b"1700000000POST/order{}", hashlib.sha256).digest()
        ).decode()
        assert build_hmac_signature(SECRET, "1700000000", "POST", "/order", "{}") == expected

    def test_reproducible(self) -> None:
        first = build_hmac_signature(SECRET, "1", "GET", "/orders")
        second = build_hmac_signature(SECRET, "1", "GET", "/orders")
        assert first == second

    def test_body_changes_signature(self) -> None:
        without_body = build_hmac_signature(SECRET, "1", "POST", "/order")
        with_body = build_hmac_signature(SECRET, "1", "POST", "/order", '{"a":1}')
        other_body = build_hmac_signature(SECRET, "1", "POST", "/order", '{"a":2}')
        assert len({without_body, with_body, other_body}) == 3


class TestLevel2Headers:

    def test_keys_and_values(self, signer: LocalKeySigner, credentials: ApiCredentials) -> None:
        headers = create_level_2_headers(
            signer.address, credentials, "POST", "/order", "{}", timestamp=1_700_000_000
        )
        assert headers == {
            POLY_ADDRESS: signer.address,
            POLY_SIGNATURE: build_hmac_signature(SECRET, "1700000000", "POST", "/order", "{}"),
            POLY_TIMESTAMP: "1700000000",
            POLY_API_KEY: "key-123",
            POLY_PASSPHRASE: "pass-456",
        }


class TestApiCredentials:

    def test_parses_api_body(self) -> None:
        creds = ApiCredentials.model_validate(
            {"apiKey": "k", "secret": SECRET, "passphrase": "p"}
        )
        assert creds.api_key == "k"
        assert creds.api_secret == SECRET
        assert creds.api_passphrase == "p"

    def test_repr_hides_secret(self, credentials: ApiCredentials) -> None:
        text = repr(credentials)
        assert SECRET not in text
        assert "pass-456" not in text
        assert "key-123" in text
