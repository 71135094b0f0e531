"""OIDC configuration, JWKS and token checks."""

from ssowizard.core.oidc.utils import (
    DecodedToken,
    decode_jwt,
    format_claim,
    format_token_claims,
)
from ssowizard.core.oidc.validation import (
    check_jwks,
    check_oidc_config,
    check_token,
    is_placeholder,
)

__all__ = [
    # Utils
    "DecodedToken",
    "decode_jwt",
    "format_claim",
    "format_token_claims",
    # Validation
    "check_jwks",
    "check_oidc_config",
    "check_token",
    "is_placeholder",
]
