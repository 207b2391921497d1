"""
ondc_core.utils
---------------
Lightweight helpers for base64 handling, unix clocks, message ids and canonical JSON.
Everything that ends up inside a signed envelope goes through these helpers.
"""

from __future__ import annotations
import base64, binascii, json, time, uuid
from datetime import datetime, timezone
from typing import Any, Dict

def b64e(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")

def b64d(s: str) -> bytes:
    # strict: rejects characters outside the standard alphabet
    try:
        return base64.b64decode(s.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError, AttributeError, TypeError) as e:
        raise ValueError(f"invalid base64: {e}") from e

def now_unix() -> int:
    return int(time.time())

def now_rfc3339() -> str:
    # millisecond precision, as the network's context.timestamp expects
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")

def new_id() -> str:
    return str(uuid.uuid4())

def canonical_json(obj: Dict[str, Any]) -> bytes:
    # Compact JSON; the signed digest covers exactly these bytes
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
