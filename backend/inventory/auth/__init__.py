"""Auth gate and route policy for the inventory service."""

from inventory.auth.gate import AuthContext, UnauthorizedError, UnauthorizedReason, authenticate, extract_bearer_token
from inventory.auth.policy import protected_api, public_route, validate_route_auth_policy

__all__ = [
    "AuthContext",
    "UnauthorizedError",
    "UnauthorizedReason",
    "authenticate",
    "extract_bearer_token",
    "protected_api",
    "public_route",
    "validate_route_auth_policy",
]
