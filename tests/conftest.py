import asyncio
from dataclasses import replace

import pytest
from cryptography.hazmat.primitives import padding, serialization
from cryptography.hazmat.primitives.asymmetric import ed25519, x25519
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from ondc_core.auth_header import AuthorizationHeaderCodec
from ondc_core.config import Settings
from ondc_core.errors import UpstreamError
from ondc_core.gateway import GatewayResponse
from ondc_core.signer import RequestSigner
from ondc_core.utils import b64e

# Fixed test keys so challenge fixtures are reproducible
PARTICIPANT_ENC_SK = x25519.X25519PrivateKey.from_private_bytes(bytes([0x11]) * 32)
REGISTRY_ENC_SK = x25519.X25519PrivateKey.from_private_bytes(bytes([0x22]) * 32)
SIGNING_SK = ed25519.Ed25519PrivateKey.from_private_bytes(bytes([0x33]) * 32)
PEER_SIGNING_SK = ed25519.Ed25519PrivateKey.from_private_bytes(bytes([0x44]) * 32)


def pkcs8_b64(sk) -> str:
    return b64e(sk.private_bytes(
        serialization.Encoding.DER,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ))


def spki_b64(pk) -> str:
    return b64e(pk.public_bytes(serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo))


def raw_b64(sk) -> str:
    return b64e(sk.private_bytes_raw())


def raw_pub_b64(sk) -> str:
    return b64e(sk.public_key().public_bytes_raw())


def registry_shared_secret() -> bytes:
    """The secret as the registry computes it from its side."""
    return REGISTRY_ENC_SK.exchange(PARTICIPANT_ENC_SK.public_key())


def encrypt_as_registry(secret: bytes, text: str) -> str:
    """AES-256-ECB with PKCS#7, the way the registry builds a challenge."""
    padder = padding.PKCS7(128).padder()
    data = padder.update(text.encode()) + padder.finalize()
    enc = Cipher(algorithms.AES(secret), modes.ECB()).encryptor()
    return b64e(enc.update(data) + enc.finalize())


class FakeGateway:
    """Records outbound calls; answers with a canned response or raises."""

    def __init__(self, response=None, error=None):
        self.response = response or GatewayResponse(200, b'{"message":{"ack":{"status":"ACK"}}}',
                                                    {"Content-Type": "application/json"})
        self.error = error
        self.calls = []
        self.closed = False

    def post(self, url, body, headers=None):
        self.calls.append({"url": url, "body": body, "headers": dict(headers or {})})
        if self.error:
            raise self.error
        return self.response

    def close(self):
        self.closed = True


@pytest.fixture
def settings():
    return Settings(
        encryption_private_key=pkcs8_b64(PARTICIPANT_ENC_SK),
        ondc_public_key=spki_b64(REGISTRY_ENC_SK.public_key()),
        signing_private_key=raw_b64(SIGNING_SK),
        request_id="req-123",
        unique_key_id="ukid-1",
        subscriber_id="buyer.example.com",
        subscriber_url="https://buyer.example.com/bap",
        callback_path="/ondc",
        subscriber_path="/bap",
        gst_no="22AAAAA0000A1Z5",
        legal_entity_name="Example Traders",
        ondc_lookup_url="https://registry.test/v2.0/lookup",
        ondc_subscribe_url="https://registry.test/subscribe",
        gateway_url="https://gateway.test",
        peer_public_key=raw_pub_b64(PEER_SIGNING_SK),
    )


@pytest.fixture
def signer():
    s = RequestSigner()
    asyncio.run(s.ready())
    return s


@pytest.fixture
def codec(signer):
    return AuthorizationHeaderCodec(signer)


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def failing_gateway():
    return FakeGateway(error=UpstreamError("timeout calling https://registry.test/v2.0/lookup"))


@pytest.fixture
def with_settings(settings):
    return lambda **kw: replace(settings, **kw)
