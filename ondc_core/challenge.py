"""
ondc_core.challenge
-------------------
Registry challenge handling for the subscription handshake.

The registry encrypts a nonce with AES-256-ECB under the ECDH shared secret
(PKCS#7 padded, no IV). Returning the decrypted text proves possession of the
encryption private key that was registered.
"""

from __future__ import annotations
from typing import Optional

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .errors import ChallengeDecryptError
from .logger import get_logger
from .utils import b64e, b64d

log = get_logger("ondc.challenge")

AES_KEY_LEN = 32
BLOCK_SIZE = 16


def _cipher(shared_secret: Optional[bytes]) -> Cipher:
    if not shared_secret:
        raise ChallengeDecryptError("shared secret not initialized")
    if len(shared_secret) != AES_KEY_LEN:
        raise ChallengeDecryptError(f"shared secret must be {AES_KEY_LEN} bytes, got {len(shared_secret)}")
    return Cipher(algorithms.AES(shared_secret), modes.ECB())


def decrypt_challenge(shared_secret: Optional[bytes], challenge_b64: str) -> str:
    """Decrypt a base64 AES-256-ECB challenge to its UTF-8 answer. Raises ChallengeDecryptError."""
    cipher = _cipher(shared_secret)
    try:
        ct = b64d(challenge_b64)
    except ValueError as e:
        raise ChallengeDecryptError("challenge is not valid base64") from e
    if not ct or len(ct) % BLOCK_SIZE:
        raise ChallengeDecryptError(f"ciphertext length {len(ct)} is not a positive multiple of {BLOCK_SIZE}")

    decryptor = cipher.decryptor()
    padded = decryptor.update(ct) + decryptor.finalize()
    unpadder = padding.PKCS7(BLOCK_SIZE * 8).unpadder()
    try:
        pt = unpadder.update(padded) + unpadder.finalize()
        answer = pt.decode("utf-8")
    except ValueError as e:
        # bad padding or non UTF-8 plaintext: wrong key or corrupted challenge
        raise ChallengeDecryptError("failed to decrypt challenge") from e

    log.info("decrypt_challenge: Decryption successful")
    return answer


def encrypt_challenge(shared_secret: bytes, plaintext: str) -> str:
    """Inverse of decrypt_challenge, i.e. what the registry sends."""
    cipher = _cipher(shared_secret)
    padder = padding.PKCS7(BLOCK_SIZE * 8).padder()
    padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
    encryptor = cipher.encryptor()
    return b64e(encryptor.update(padded) + encryptor.finalize())
