"""
ondc_core.handshake
-------------------
Composes the trust-layer pieces into the three flows a participant runs:

- inbound challenge  : registry on_subscribe -> decrypt -> answer
- outbound signed call: payload -> JSON bytes -> Authorization header -> gateway
- inbound verification: Authorization header + raw body -> envelope or AuthError

Holds no state beyond the immutable settings and key material handed in at
construction.
"""

from __future__ import annotations
from typing import Any, Mapping, Optional

from .auth_header import AuthorizationHeaderCodec, SigningEnvelope
from .challenge import decrypt_challenge
from .config import Settings
from .errors import AuthError, ValidationError
from .gateway import GatewayResponse, NetworkGateway
from .keys import KeyMaterial
from .logger import get_logger
from .utils import canonical_json

log = get_logger("ondc.handshake")


class HandshakeOrchestrator:
    def __init__(
        self,
        settings: Settings,
        keys: KeyMaterial,
        codec: AuthorizationHeaderCodec,
        gateway: NetworkGateway,
    ):
        self.settings = settings
        self.keys = keys
        self.codec = codec
        self.gateway = gateway

    def answer_challenge(self, payload: Optional[Mapping[str, Any]]) -> str:
        payload = payload or {}
        challenge = payload.get("challenge")
        if not isinstance(challenge, str) or not challenge:
            raise ValidationError("challenge")
        log.info(f"on_subscribe: challenge received, subscriber_id={payload.get('subscriber_id')}")
        return decrypt_challenge(self.keys.shared_secret, challenge)

    def sign_body(self, body: bytes) -> str:
        return self.codec.build_header(
            body,
            self.settings.signing_private_key,
            self.settings.subscriber_id,
            self.settings.unique_key_id,
            ttl_seconds=self.settings.header_ttl_seconds,
        )

    def send_signed(self, payload: Mapping[str, Any], url: str) -> GatewayResponse:
        """Sign the serialised payload and POST it. Gateway errors propagate unchanged."""
        body = canonical_json(dict(payload))
        header = self.sign_body(body)
        return self.gateway.post(url, body, {"Authorization": header})

    def send_unsigned(self, payload: Mapping[str, Any], url: str) -> GatewayResponse:
        return self.gateway.post(url, canonical_json(dict(payload)))

    def verify_inbound(self, headers: Mapping[str, str], body: bytes, public_key_b64: str) -> SigningEnvelope:
        """Raises AuthError ("invalid") unless the Authorization header verifies over `body`."""
        header = headers.get("authorization") or headers.get("Authorization")
        if not header:
            log.warning("verify_inbound: missing Authorization header")
            raise AuthError("invalid")
        if not public_key_b64:
            log.error("verify_inbound: no peer public key configured")
            raise AuthError("invalid")

        result = self.codec.verify_header(header, body, public_key_b64)
        if not result.ok:
            log.warning(f"verify_inbound: rejected, reason={result.reason.value}")
            raise AuthError("invalid")
        log.info(f"verify_inbound: verified request from {result.envelope.subscriber_id}")
        return result.envelope
