"""
ondc_core.config
----------------
Process configuration, read once at startup from the environment (and a
`.env` file when present) into an immutable `Settings` object that is passed
explicitly to every component.
"""

from __future__ import annotations
import os, re
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigError

REQUIRED_VARS = (
    "ENCRYPTION_PRIVATE_KEY",
    "ONDC_PUBLIC_KEY",
    "SIGNING_PRIVATE_KEY",
    "REQUEST_ID",
    "UNIQUE_KEY_ID",
    "SUBSCRIBER_ID",
)

RELATIVE_PATH_RE = re.compile(r"^/[a-zA-Z0-9_\-/]*$")
GST_RE = re.compile(r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z]{1}[1-9A-Z]{1}Z[0-9A-Z]{1}$")


@dataclass(frozen=True)
class Settings:
    # key material
    encryption_private_key: str
    ondc_public_key: str
    signing_private_key: str
    request_id: str
    unique_key_id: str

    # network identity
    subscriber_id: str
    subscriber_url: str = ""
    callback_path: str = "/ondc"
    subscriber_path: str = "/bap"
    domain: str = "ONDC:RET10"
    country: str = "IND"
    city_code: str = "std:080"
    participant_type: str = "buyerApp"

    # business identity (subscribe payload only)
    gst_no: str = ""
    pan_no: str = ""
    legal_entity_name: str = ""
    business_address: str = ""
    email_id: str = ""
    mobile_no: str = ""

    # endpoints
    ondc_lookup_url: str = ""
    ondc_subscribe_url: str = ""
    gateway_url: str = ""
    peer_public_key: str = ""
    default_bpp_id: str = ""
    default_bpp_uri: str = ""

    port: int = 3000
    gateway_timeout: float = 10.0
    header_ttl_seconds: int = 300

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None, dotenv: bool = True) -> "Settings":
        """Build settings from `env` (defaults to os.environ). Raises ConfigError on missing/invalid values."""
        if env is None:
            if dotenv:
                load_dotenv(override=False)
            env = os.environ

        missing = [name for name in REQUIRED_VARS if not env.get(name)]
        if missing:
            raise ConfigError(f"Missing required environment variable(s): {', '.join(missing)}")

        callback_path = env.get("CALLBACK_PATH", "/ondc")
        if not RELATIVE_PATH_RE.match(callback_path):
            raise ConfigError(f"CALLBACK_PATH must be a relative URL starting with '/', got {callback_path}")
        subscriber_path = env.get("SUBSCRIBER_PATH", "/bap")
        if not RELATIVE_PATH_RE.match(subscriber_path):
            raise ConfigError(f"SUBSCRIBER_PATH must be a relative URL starting with '/', got {subscriber_path}")

        gst_no = env.get("GST_NO", "")
        if gst_no and not GST_RE.match(gst_no):
            raise ConfigError(f"GST_NO must be a valid 15-character GST number, got {gst_no}")

        try:
            port = int(env.get("PORT", "3000"))
            gateway_timeout = float(env.get("GATEWAY_TIMEOUT", "10"))
            ttl = int(env.get("HEADER_TTL_SECONDS", "300"))
        except ValueError as e:
            raise ConfigError(f"Invalid numeric setting: {e}") from e
        if gateway_timeout <= 0 or ttl <= 0:
            raise ConfigError("GATEWAY_TIMEOUT and HEADER_TTL_SECONDS must be positive")

        subscriber_id = env["SUBSCRIBER_ID"]
        return cls(
            encryption_private_key=env["ENCRYPTION_PRIVATE_KEY"],
            ondc_public_key=env["ONDC_PUBLIC_KEY"],
            signing_private_key=env["SIGNING_PRIVATE_KEY"],
            request_id=env["REQUEST_ID"],
            unique_key_id=env["UNIQUE_KEY_ID"],
            subscriber_id=subscriber_id,
            subscriber_url=env.get("SUBSCRIBER_URL") or f"https://{subscriber_id}{subscriber_path}",
            callback_path=callback_path.rstrip("/") or "/",
            subscriber_path=subscriber_path.rstrip("/") or "/",
            domain=env.get("DOMAIN", "ONDC:RET10"),
            country=env.get("COUNTRY", "IND"),
            city_code=env.get("CITY_CODE", "std:080"),
            participant_type=env.get("PARTICIPANT_TYPE", "buyerApp"),
            gst_no=gst_no,
            pan_no=env.get("PAN_NO", ""),
            legal_entity_name=env.get("LEGAL_ENTITY_NAME", ""),
            business_address=env.get("BUSINESS_ADDRESS", ""),
            email_id=env.get("EMAIL_ID", ""),
            mobile_no=env.get("MOBILE_NO", ""),
            ondc_lookup_url=env.get("ONDC_LOOKUP_URL", ""),
            ondc_subscribe_url=env.get("ONDC_SUBSCRIBE_URL", ""),
            gateway_url=env.get("GATEWAY_URL", "").rstrip("/"),
            peer_public_key=env.get("PEER_PUBLIC_KEY", ""),
            default_bpp_id=env.get("DEFAULT_BPP_ID", ""),
            default_bpp_uri=env.get("DEFAULT_BPP_URI", "").rstrip("/"),
            port=port,
            gateway_timeout=gateway_timeout,
            header_ttl_seconds=ttl,
        )
