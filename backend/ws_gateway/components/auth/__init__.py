"""
Handshake authentication strategies.
"""

from ws_gateway.components.auth.strategies import (
    AuthResult,
    AuthStrategy,
    JWTAuthStrategy,
    NullAuthStrategy,
    OriginValidationMixin,
    extract_handshake_token,
)

__all__ = [
    "AuthResult",
    "AuthStrategy",
    "JWTAuthStrategy",
    "NullAuthStrategy",
    "OriginValidationMixin",
    "extract_handshake_token",
]
