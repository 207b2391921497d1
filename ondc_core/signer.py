"""
ondc_core.signer
----------------
Detached request signatures and body digests.

- Ed25519 (64-byte detached signatures) via `cryptography`
- BLAKE2b-512 body digests, labelled "BLAKE-512" on the wire

Both primitives sit behind small interfaces (`SignatureScheme`, `Digester`)
so the header protocol can be exercised with other implementations.

`RequestSigner.ready()` is the one-time readiness gate: await it once at
startup, after which sign/verify are plain synchronous calls.
"""

from __future__ import annotations
import asyncio, hashlib
from functools import lru_cache
from typing import Optional, Protocol

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric import ed25519

from .errors import SigningError
from .keys import load_signing_key
from .logger import get_logger
from .utils import b64e, b64d

log = get_logger("ondc.signer")


class Digester(Protocol):
    name: str

    def digest(self, data: bytes) -> bytes: ...


class SignatureScheme(Protocol):
    name: str

    def sign(self, private_key_b64: str, data: bytes) -> bytes: ...

    def verify(self, public_key_b64: str, signature: bytes, data: bytes) -> bool: ...

    def self_test(self) -> None: ...


class Blake512Digester:
    name = "BLAKE-512"

    def digest(self, data: bytes) -> bytes:
        return hashlib.blake2b(data, digest_size=64).digest()


@lru_cache(maxsize=16)
def _private_key(private_key_b64: str) -> ed25519.Ed25519PrivateKey:
    return load_signing_key(private_key_b64)


class Ed25519Scheme:
    name = "ed25519"

    def sign(self, private_key_b64: str, data: bytes) -> bytes:
        return _private_key(private_key_b64).sign(data)

    def verify(self, public_key_b64: str, signature: bytes, data: bytes) -> bool:
        try:
            raw = b64d(public_key_b64)
            ed25519.Ed25519PublicKey.from_public_bytes(raw).verify(signature, data)
            return True
        except (InvalidSignature, ValueError):
            return False

    def self_test(self) -> None:
        sk = ed25519.Ed25519PrivateKey.generate()
        sig = sk.sign(b"ready")
        sk.public_key().verify(sig, b"ready")


class RequestSigner:
    """Signs and verifies UTF-8 messages once the primitive library is ready."""

    def __init__(self, scheme: Optional[SignatureScheme] = None):
        self.scheme = scheme or Ed25519Scheme()
        self._ready = False
        self._lock = asyncio.Lock()

    @property
    def is_ready(self) -> bool:
        return self._ready

    async def ready(self) -> None:
        """Idempotent; concurrent awaiters share a single completion."""
        if self._ready:
            return
        async with self._lock:
            if self._ready:
                return
            try:
                self.scheme.self_test()
            except Exception as e:
                raise SigningError(f"{self.scheme.name} backend failed its self test: {e}") from e
            self._ready = True
            log.info(f"RequestSigner: {self.scheme.name} backend ready")

    def sign(self, message: str, signing_private_key_b64: str) -> str:
        if not self._ready:
            raise SigningError("RequestSigner used before ready() completed")
        try:
            sig = self.scheme.sign(signing_private_key_b64, message.encode("utf-8"))
        except SigningError:
            log.error("signMessage: Failed to sign message, invalid signing key")
            raise
        log.debug(f"signMessage: Message signed successfully, signing_string={message!r}")
        return b64e(sig)

    def verify(self, message: str, signature_b64: str, public_key_b64: str) -> bool:
        if not self._ready:
            raise SigningError("RequestSigner used before ready() completed")
        try:
            sig = b64d(signature_b64)
        except ValueError:
            return False
        return self.scheme.verify(public_key_b64, sig, message.encode("utf-8"))


_DEFAULT_SIGNER = RequestSigner()


def default_signer() -> RequestSigner:
    """Process-wide signer; await `default_signer().ready()` once at startup."""
    return _DEFAULT_SIGNER


def sign_message(message: str, signing_private_key_b64: str) -> str:
    """Sign with the process-wide signer. Raises SigningError before it is ready."""
    return _DEFAULT_SIGNER.sign(message, signing_private_key_b64)
