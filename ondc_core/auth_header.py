"""
ondc_core.auth_header
---------------------
The network's signed `Authorization` header envelope.

Build:
    digest         = base64(BLAKE-512(body))
    signing string = "(created): <c>\\n(expires): <e>\\ndigest: BLAKE-512=<digest>"
    header         = Signature keyId="<subscriber>|<ukid>|ed25519",algorithm="ed25519",
                     created="<c>",expires="<e>",headers="(created) (expires) digest",
                     digest="BLAKE-512=<digest>",signature="<sig>"

Verify (stops at the first failure):
    1. parse                      -> MALFORMED_HEADER
    2. body digest vs. header     -> DIGEST_MISMATCH
    3. created <= now <= expires  -> EXPIRED
    4. signature over the rebuilt signing string -> SIGNATURE_INVALID

Only the digest is signed, so the signing string has a fixed shape whatever
the body size.
"""

from __future__ import annotations
import hmac, re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from .errors import MalformedHeaderError
from .logger import get_logger
from .signer import Blake512Digester, Digester, RequestSigner
from .utils import b64e, now_unix

log = get_logger("ondc.auth_header")

DEFAULT_TTL_SECONDS = 300
SIGNED_HEADERS = "(created) (expires) digest"
REQUIRED_PARAMS = ("keyId", "created", "expires", "signature")

_PARAM_RE = re.compile(r'\s*([A-Za-z]+)="([^"]*)"\s*')


class VerificationReason(str, Enum):
    MALFORMED_HEADER = "malformed_header"
    DIGEST_MISMATCH = "digest_mismatch"
    EXPIRED = "expired"
    SIGNATURE_INVALID = "signature_invalid"


@dataclass(frozen=True)
class SigningEnvelope:
    created_at: int
    expires_at: int
    signature: str
    key_id: str
    body_digest: Optional[str] = None
    algorithm: str = "ed25519"
    digest_algorithm: str = "BLAKE-512"
    headers: str = SIGNED_HEADERS

    @property
    def subscriber_id(self) -> str:
        return self.key_id.split("|")[0]

    @property
    def unique_key_id(self) -> str:
        return self.key_id.split("|")[1]

    def to_header(self) -> str:
        parts = [
            f'keyId="{self.key_id}"',
            f'algorithm="{self.algorithm}"',
            f'created="{self.created_at}"',
            f'expires="{self.expires_at}"',
            f'headers="{self.headers}"',
        ]
        if self.body_digest is not None:
            parts.append(f'digest="{self.digest_algorithm}={self.body_digest}"')
        parts.append(f'signature="{self.signature}"')
        return "Signature " + ",".join(parts)


@dataclass(frozen=True)
class VerificationResult:
    ok: bool
    reason: Optional[VerificationReason] = None
    envelope: Optional[SigningEnvelope] = None

    def __bool__(self) -> bool:
        return self.ok


def create_signing_string(created_at: int, expires_at: int, digest_b64: str, digest_algorithm: str = "BLAKE-512") -> str:
    return f"(created): {created_at}\n(expires): {expires_at}\ndigest: {digest_algorithm}={digest_b64}"


def _split_params(header: str) -> Dict[str, str]:
    scheme, _, rest = header.strip().partition(" ")
    if scheme.lower() != "signature" or not rest.strip():
        raise MalformedHeaderError("header must use the Signature scheme")

    params: Dict[str, str] = {}
    pos = 0
    while True:
        m = _PARAM_RE.match(rest, pos)
        if not m:
            raise MalformedHeaderError(f"bad parameter quoting at offset {pos}")
        name, value = m.group(1), m.group(2)
        if name in params:
            raise MalformedHeaderError(f"duplicate parameter {name}")
        params[name] = value
        pos = m.end()
        if pos == len(rest):
            return params
        if rest[pos] != ",":
            raise MalformedHeaderError(f"expected ',' at offset {pos}")
        pos += 1


def parse_header(header: str, digest_algorithm: str = "BLAKE-512") -> SigningEnvelope:
    """Parse an Authorization header value. Raises MalformedHeaderError."""
    if not header:
        raise MalformedHeaderError("empty header")
    params = _split_params(header)

    missing = [p for p in REQUIRED_PARAMS if not params.get(p)]
    if missing:
        raise MalformedHeaderError(f"missing parameter(s): {', '.join(missing)}")

    try:
        created_at = int(params["created"])
        expires_at = int(params["expires"])
    except ValueError as e:
        raise MalformedHeaderError("created/expires must be unix seconds") from e

    key_parts = params["keyId"].split("|")
    if len(key_parts) != 3 or not all(key_parts):
        raise MalformedHeaderError("keyId must be <subscriber_id>|<unique_key_id>|<algorithm>")

    algorithm = params.get("algorithm", key_parts[2])
    if algorithm != key_parts[2]:
        raise MalformedHeaderError("algorithm does not match keyId")

    body_digest = None
    if "digest" in params:
        label, sep, value = params["digest"].partition("=")
        if label != digest_algorithm or not sep or not value:
            raise MalformedHeaderError(f"digest must be {digest_algorithm}=<base64>")
        body_digest = value

    return SigningEnvelope(
        created_at=created_at,
        expires_at=expires_at,
        signature=params["signature"],
        key_id=params["keyId"],
        body_digest=body_digest,
        algorithm=algorithm,
        digest_algorithm=digest_algorithm,
        headers=params.get("headers", SIGNED_HEADERS),
    )


class AuthorizationHeaderCodec:
    """Builds and verifies signed Authorization headers with pluggable primitives."""

    def __init__(self, signer: RequestSigner, digester: Optional[Digester] = None):
        self.signer = signer
        self.digester = digester or Blake512Digester()

    def body_digest(self, body: bytes) -> str:
        return b64e(self.digester.digest(body))

    def build_header(
        self,
        body: bytes,
        signing_private_key_b64: str,
        subscriber_id: str,
        unique_key_id: str,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        now: Optional[int] = None,
    ) -> str:
        digest = self.body_digest(body)
        created_at = now_unix() if now is None else now
        expires_at = created_at + ttl_seconds
        signing_string = create_signing_string(created_at, expires_at, digest, self.digester.name)
        signature = self.signer.sign(signing_string, signing_private_key_b64)

        envelope = SigningEnvelope(
            created_at=created_at,
            expires_at=expires_at,
            signature=signature,
            key_id=f"{subscriber_id}|{unique_key_id}|{self.signer.scheme.name}",
            body_digest=digest,
            algorithm=self.signer.scheme.name,
            digest_algorithm=self.digester.name,
        )
        return envelope.to_header()

    def verify_header(self, header: str, body: bytes, public_key_b64: str, now: Optional[int] = None) -> VerificationResult:
        try:
            envelope = parse_header(header, self.digester.name)
        except MalformedHeaderError as e:
            log.warning(f"verify_header: malformed header, {e}")
            return VerificationResult(False, VerificationReason.MALFORMED_HEADER)

        digest = self.body_digest(body)
        if envelope.body_digest is not None and not hmac.compare_digest(
            envelope.body_digest.encode("ascii", "replace"), digest.encode("ascii")
        ):
            return VerificationResult(False, VerificationReason.DIGEST_MISMATCH, envelope)

        current = now_unix() if now is None else now
        if current < envelope.created_at or current > envelope.expires_at:
            return VerificationResult(False, VerificationReason.EXPIRED, envelope)

        signing_string = create_signing_string(envelope.created_at, envelope.expires_at, digest, self.digester.name)
        if not self.signer.verify(signing_string, envelope.signature, public_key_b64):
            return VerificationResult(False, VerificationReason.SIGNATURE_INVALID, envelope)

        return VerificationResult(True, None, envelope)
