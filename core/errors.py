"""Exception taxonomy for the signing engine and its HTTP collaborators.

Validation, encoding and recovery-id errors are fatal to the single build
call that raised them.  Transport errors carry enough context (status,
body, attempts) for the caller to decide what to do next; the engine never
retries on its own.
"""

from __future__ import annotations

from typing import Any


class EngineError(Exception):
    """Base class for every error raised by this package."""


# ── Validation ──────────────────────────────────────────────────────


class OrderValidationError(EngineError):
    """Order parameters cannot produce an order the held key can authorize."""


class SignerMismatchError(OrderValidationError):
    """Raised when an order's ``signer`` differs from the signing wallet."""

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(
            f"signer does not match signing wallet: expected {expected}, got {actual}"
        )
        self.expected = expected
        self.actual = actual


class UnknownTickSizeError(OrderValidationError):
    """Raised for a tick size outside the supported buckets."""

    def __init__(self, tick_size: Any) -> None:
        super().__init__(f"unsupported tick size: {tick_size!r}")
        self.tick_size = tick_size


class UnsupportedChainError(OrderValidationError):
    """Raised when no contract configuration exists for a chain id."""

    def __init__(self, chain_id: int) -> None:
        super().__init__(f"no contract configuration for chain id {chain_id}")
        self.chain_id = chain_id


class InvalidPriceError(OrderValidationError):
    """Raised when a price rounds to zero at the market's price precision."""

    def __init__(self, price: float, decimals: int) -> None:
        super().__init__(f"price {price} rounds to zero at {decimals} decimal places")
        self.price = price
        self.decimals = decimals


# ── Pricing ─────────────────────────────────────────────────────────


class InsufficientLiquidityError(EngineError):
    """Raised when the book cannot fill the requested amount within slippage."""

    def __init__(self, side: str, amount: float, slippage: float) -> None:
        super().__init__(
            f"order book cannot fill {side} of {amount} within {slippage}% slippage"
        )
        self.side = side
        self.amount = amount
        self.slippage = slippage


# ── Encoding ────────────────────────────────────────────────────────


class EncodingError(EngineError):
    """Malformed address, hex string or amount."""


class RecoveryIdError(EncodingError):
    """Raised when a signature's recovery id is not 0, 1, 27 or 28."""

    def __init__(self, v: int) -> None:
        super().__init__(f"invalid signature recovery id: {v}")
        self.v = v


# ── Transport ───────────────────────────────────────────────────────


class TransportError(EngineError):
    """Base class for failures talking to the CLOB or the relayer."""


class HttpStatusError(TransportError):
    """Non-2xx response that the retry policy did not retry."""

    def __init__(self, method: str, url: str, status_code: int, body: str) -> None:
        super().__init__(f"{method} {url} returned HTTP {status_code}: {body[:200]}")
        self.method = method
        self.url = url
        self.status_code = status_code
        self.body = body


class RetriesExceededError(TransportError):
    """Raised when every attempt of a request failed."""

    def __init__(self, method: str, url: str, attempts: int) -> None:
        super().__init__(f"{method} {url} failed after {attempts} attempts")
        self.method = method
        self.url = url
        self.attempts = attempts


class ClobApiError(TransportError):
    """The CLOB accepted the request but reported an error message."""

    def __init__(self, message: str, payload: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.payload = payload or {}


class RelayerNonceError(TransportError):
    """The relayer rejected a transaction because of its nonce.

    Callers may re-fetch the nonce and rebuild once.
    """

    def __init__(self, message: str, nonce: str | None = None) -> None:
        super().__init__(message)
        self.nonce = nonce


class TransactionTimeoutError(TransportError):
    """Raised when a relayed transaction is not mined before the deadline."""

    def __init__(self, transaction_id: str, timeout: float) -> None:
        super().__init__(
            f"transaction {transaction_id} not confirmed within {timeout:g}s"
        )
        self.transaction_id = transaction_id
        self.timeout = timeout


class TransactionFailedError(TransportError):
    """Raised when the relayer reports a transaction as failed or invalid."""

    def __init__(self, transaction_id: str, state: str) -> None:
        super().__init__(f"transaction {transaction_id} ended in {state}")
        self.transaction_id = transaction_id
        self.state = state


class ResponseDecodeError(TransportError):
    """A 2xx response whose body is not the JSON the caller expected."""

    def __init__(self, url: str, body: str) -> None:
        super().__init__(f"could not decode response from {url}: {body[:200]}")
        self.url = url
        self.body = body


class SessionError(TransportError):
    """Login or nonce response did not set the expected session cookie."""

    def __init__(self, cookie_name: str) -> None:
        super().__init__(f"response did not set the {cookie_name} cookie")
        self.cookie_name = cookie_name
