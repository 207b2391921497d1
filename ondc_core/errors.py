"""
ondc_core.errors
----------------
Error taxonomy for the trust layer.

Each error carries the HTTP status the edge should answer with. Crypto
failures (key init, signing, challenge decryption) are reported to peers as a
generic internal error; the cause is only logged.
"""

from __future__ import annotations
from typing import Optional


class OndcError(Exception):
    status_code: int = 500
    public_message: str = "Internal server error"


class ConfigError(OndcError):
    """Missing or malformed required configuration. Fatal at startup."""


class KeyInitError(OndcError):
    pass


class SigningError(OndcError):
    pass


class ChallengeDecryptError(OndcError):
    pass


class ValidationError(OndcError):
    status_code = 400

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"Missing required field: {field}")

    @property
    def public_message(self) -> str:
        return str(self)


class MalformedHeaderError(OndcError):
    status_code = 401
    public_message = "invalid"


class AuthError(OndcError):
    status_code = 401
    public_message = "invalid"


class UpstreamError(OndcError):
    """Transport failure, timeout or non-2xx answer from registry, gateway or peer."""

    def __init__(self, message: str, status: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.body = body

    def detail(self) -> dict:
        return {"error": str(self), "upstream_status": self.status, "upstream_body": self.body}
