"""
ondc_core.payloads
------------------
Request bodies exchanged with the registry, the gateway and sellers (BPPs).

Every network action carries a `context` (who, where, which transaction) and
a `message` (the action body).
"""

from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Mapping, Optional

from .config import Settings
from .keys import KeyMaterial
from .schemas import LookupRequest
from .utils import new_id, now_rfc3339

CORE_VERSION = "1.2.0"
CONTEXT_TTL = "PT30S"
KEY_VALIDITY = timedelta(days=365)
LOOKUP_FIELDS = ("subscriber_id", "country", "city", "domain", "type")


def _rfc3339(dt: datetime) -> str:
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_context(
    settings: Settings,
    action: str,
    transaction_id: Optional[str] = None,
    bpp_id: Optional[str] = None,
    bpp_uri: Optional[str] = None,
) -> Dict[str, Any]:
    context = {
        "domain": settings.domain,
        "country": settings.country,
        "city": settings.city_code,
        "action": action,
        "core_version": CORE_VERSION,
        "bap_id": settings.subscriber_id,
        "bap_uri": settings.subscriber_url,
        "transaction_id": transaction_id or new_id(),
        "message_id": new_id(),
        "timestamp": now_rfc3339(),
        "ttl": CONTEXT_TTL,
    }
    if bpp_id:
        context["bpp_id"] = bpp_id
    if bpp_uri:
        context["bpp_uri"] = bpp_uri
    return context


def build_subscribe_payload(settings: Settings, keys: KeyMaterial, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Registry /subscribe body (ops_no 1: buyer app registration)."""
    now = now or datetime.now(timezone.utc)
    return {
        "context": {"operation": {"ops_no": 1}},
        "message": {
            "request_id": settings.request_id,
            "timestamp": _rfc3339(now),
            "entity": {
                "gst": {
                    "legal_entity_name": settings.legal_entity_name,
                    "business_address": settings.business_address,
                    "city_code": [settings.city_code],
                    "gst_no": settings.gst_no,
                },
                "pan": {
                    "name_as_per_pan": settings.legal_entity_name,
                    "pan_no": settings.pan_no,
                    "date_of_incorporation": "",
                },
                "name_of_authorised_signatory": settings.legal_entity_name,
                "email_id": settings.email_id,
                "mobile_no": settings.mobile_no,
                "country": settings.country,
                "subscriber_id": settings.subscriber_id,
                "unique_key_id": settings.unique_key_id,
                "callback_url": settings.callback_path,
                "key_pair": {
                    "signing_public_key": keys.signing_public_key_b64,
                    "encryption_public_key": keys.encryption_public_key_b64,
                    "valid_from": _rfc3339(now),
                    "valid_until": _rfc3339(now + KEY_VALIDITY),
                },
            },
            "network_participant": [
                {
                    "subscriber_url": settings.subscriber_url,
                    "domain": settings.domain,
                    "type": settings.participant_type,
                    "msn": False,
                    "city_code": [settings.city_code],
                }
            ],
        },
    }


def build_lookup_payload(req: LookupRequest) -> Dict[str, Any]:
    return req.model_dump(include=set(LOOKUP_FIELDS))


def build_search_payload(settings: Settings, intent: Mapping[str, Any], transaction_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "context": build_context(settings, "search", transaction_id=transaction_id),
        "message": {"intent": dict(intent)},
    }


def build_select_payload(
    settings: Settings,
    order: Mapping[str, Any],
    bpp_id: str,
    bpp_uri: str,
    transaction_id: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "context": build_context(settings, "select", transaction_id=transaction_id, bpp_id=bpp_id, bpp_uri=bpp_uri),
        "message": {"order": dict(order)},
    }
