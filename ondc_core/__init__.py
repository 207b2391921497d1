"""
ondc_core
=========
Trust layer for an ONDC network participant.

Provides:
- X25519 key material and the registry challenge handshake
- Ed25519 request signing with BLAKE-512 body digests
- The signed Authorization header envelope (build / verify)
- A FastAPI app exposing site verification, subscription and signed calls
"""

from .auth_header import AuthorizationHeaderCodec, SigningEnvelope, VerificationReason, VerificationResult
from .challenge import decrypt_challenge
from .config import Settings
from .handshake import HandshakeOrchestrator
from .keys import KeyMaterial, load_key_material
from .signer import RequestSigner, default_signer, sign_message

__all__ = [
    "AuthorizationHeaderCodec",
    "HandshakeOrchestrator",
    "KeyMaterial",
    "RequestSigner",
    "Settings",
    "SigningEnvelope",
    "VerificationReason",
    "VerificationResult",
    "decrypt_challenge",
    "default_signer",
    "load_key_material",
    "sign_message",
]
