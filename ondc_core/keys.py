"""
ondc_core.keys
--------------
Key material for a network participant:

- Encryption pair (X25519, PKCS#8 / SPKI DER, base64) and the registry's
  encryption public key, combined once via ECDH into the shared secret that
  unlocks subscription challenges.
- Signing pair (Ed25519). The private key is a base64 32-byte seed or a
  64-byte libsodium secret key (seed || public key).

`load_key_material()` runs once at startup. The result is immutable; a new
shared secret requires a restart.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519, x25519

from .config import Settings
from .errors import KeyInitError, SigningError
from .logger import get_logger
from .utils import b64e, b64d

log = get_logger("ondc.keys")

ED25519_SEED_LEN = 32
SODIUM_SECRET_KEY_LEN = 64


@dataclass(frozen=True)
class KeyPair:
    private_key: bytes
    public_key: bytes
    purpose: str  # "encryption" | "signing"


@dataclass(frozen=True)
class KeyMaterial:
    encryption: KeyPair
    registry_public_key: bytes
    shared_secret: bytes
    signing: KeyPair

    @property
    def signing_public_key_b64(self) -> str:
        return b64e(self.signing.public_key)

    @property
    def encryption_public_key_b64(self) -> str:
        return b64e(self.encryption.public_key)


# --------- X25519 (challenge key agreement) ----------
def _load_x25519_private(private_key_b64: str) -> x25519.X25519PrivateKey:
    try:
        key = serialization.load_der_private_key(b64d(private_key_b64), password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise KeyInitError(f"cannot load encryption private key: {e}") from e
    if not isinstance(key, x25519.X25519PrivateKey):
        raise KeyInitError(f"encryption private key must be X25519, got {type(key).__name__}")
    return key


def _load_x25519_public(public_key_b64: str) -> x25519.X25519PublicKey:
    try:
        key = serialization.load_der_public_key(b64d(public_key_b64))
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise KeyInitError(f"cannot load registry public key: {e}") from e
    if not isinstance(key, x25519.X25519PublicKey):
        raise KeyInitError(f"registry public key must be X25519, got {type(key).__name__}")
    return key


def _exchange(sk: x25519.X25519PrivateKey, pk: x25519.X25519PublicKey) -> bytes:
    try:
        return sk.exchange(pk)
    except ValueError as e:
        # all-zero output from a low-order registry point
        raise KeyInitError(f"key agreement failed: {e}") from e


def derive_shared_secret(encryption_private_key_b64: str, registry_public_key_b64: str) -> bytes:
    """ECDH(local encryption private key, registry public key) -> 32 raw bytes."""
    sk = _load_x25519_private(encryption_private_key_b64)
    pk = _load_x25519_public(registry_public_key_b64)
    return _exchange(sk, pk)


# --------- Ed25519 (request signing) ----------
def load_signing_key(signing_private_key_b64: str) -> ed25519.Ed25519PrivateKey:
    try:
        raw = b64d(signing_private_key_b64)
    except ValueError as e:
        raise SigningError(f"signing key is not base64: {e}") from e

    if len(raw) == SODIUM_SECRET_KEY_LEN:
        seed, embedded_pub = raw[:ED25519_SEED_LEN], raw[ED25519_SEED_LEN:]
        sk = ed25519.Ed25519PrivateKey.from_private_bytes(seed)
        if sk.public_key().public_bytes_raw() != embedded_pub:
            raise SigningError("signing key public half does not match its seed")
        return sk
    if len(raw) != ED25519_SEED_LEN:
        raise SigningError(f"signing key must be a {ED25519_SEED_LEN}-byte seed, got {len(raw)} bytes")
    return ed25519.Ed25519PrivateKey.from_private_bytes(raw)


def load_key_material(settings: Settings) -> KeyMaterial:
    """Load both key pairs and derive the shared secret. Raises KeyInitError."""
    enc_sk = _load_x25519_private(settings.encryption_private_key)
    reg_pk = _load_x25519_public(settings.ondc_public_key)
    shared = _exchange(enc_sk, reg_pk)

    try:
        sign_sk = load_signing_key(settings.signing_private_key)
    except SigningError as e:
        raise KeyInitError(str(e)) from e

    material = KeyMaterial(
        encryption=KeyPair(
            private_key=enc_sk.private_bytes_raw(),
            public_key=enc_sk.public_key().public_bytes(
                serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo
            ),
            purpose="encryption",
        ),
        registry_public_key=reg_pk.public_bytes_raw(),
        shared_secret=shared,
        signing=KeyPair(
            private_key=sign_sk.private_bytes_raw(),
            public_key=sign_sk.public_key().public_bytes_raw(),
            purpose="signing",
        ),
    )
    log.info("Key initialization successful")
    return material


def generate_key_material() -> Dict[str, str]:
    """Fresh base64 key set in the encodings `Settings` expects."""
    enc = x25519.X25519PrivateKey.generate()
    sign = ed25519.Ed25519PrivateKey.generate()
    return {
        "ENCRYPTION_PRIVATE_KEY": b64e(enc.private_bytes(
            serialization.Encoding.DER,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )),
        "ENCRYPTION_PUBLIC_KEY": b64e(enc.public_key().public_bytes(
            serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo
        )),
        "SIGNING_PRIVATE_KEY": b64e(sign.private_bytes_raw()),
        "SIGNING_PUBLIC_KEY": b64e(sign.public_key().public_bytes_raw()),
    }
