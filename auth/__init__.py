"""Polymarket signing engine — auth package."""

from .clob_auth import build_hmac_signature, create_level_1_headers, create_level_2_headers
from .gamma_client import GammaAuthClient
from .session import AmpCookie, PolySession, build_poly_headers
from .sign_in import SignInPayload, build_sign_in_header

__all__ = [
    "AmpCookie",
    "GammaAuthClient",
    "PolySession",
    "SignInPayload",
    "build_hmac_signature",
    "build_poly_headers",
    "build_sign_in_header",
    "create_level_1_headers",
    "create_level_2_headers",
]
