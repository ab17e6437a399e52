"""CLOB API credentials (Layer 2)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ApiCredentials(BaseModel):
    """Key, base64url secret and passphrase issued by ``/auth/api-key``.

    Parsed straight from the API body (``apiKey``, ``secret``,
    ``passphrase``).  ``repr`` hides the secret and the passphrase.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    api_key: str = Field(..., alias="apiKey", min_length=1)
    api_secret: str = Field(..., alias="secret", min_length=1, repr=False)
    api_passphrase: str = Field(..., alias="passphrase", min_length=1, repr=False)
