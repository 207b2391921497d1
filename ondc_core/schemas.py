"""
Request bodies accepted by the participant API.

Validation failures from these models are reported as 400 with the offending
field named, through `validation_error_from`.
"""

from typing import Any, Dict, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from .errors import ValidationError


class OnSubscribeRequest(BaseModel):
    """Registry on_subscribe callback."""
    subscriber_id: Optional[str] = None
    challenge: str = Field(..., min_length=1, description="base64 AES-256-ECB ciphertext")


class LookupRequest(BaseModel):
    subscriber_id: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    domain: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)


class SearchRequest(BaseModel):
    intent: Dict[str, Any]
    transaction_id: Optional[str] = None


class PeerContext(BaseModel):
    """The parts of an on_search context needed to address the seller."""
    model_config = ConfigDict(extra="allow")

    bpp_id: Optional[str] = None
    bpp_uri: Optional[str] = None
    transaction_id: Optional[str] = None


class SelectRequest(BaseModel):
    order: Dict[str, Any]
    bpp_id: Optional[str] = None
    bpp_uri: Optional[str] = None
    transaction_id: Optional[str] = None
    context: Optional[PeerContext] = None


class CallbackPayload(BaseModel):
    """Inbound on_search / on_select body. Parsed only after the signature checks out."""
    model_config = ConfigDict(extra="allow")

    context: Dict[str, Any]
    message: Dict[str, Any]


def validation_error_from(errors: Sequence[Dict[str, Any]]) -> ValidationError:
    """Collapse pydantic / FastAPI error details into the first failing field."""
    if not errors:
        return ValidationError("body", "Invalid request body")
    first = errors[0]
    if first.get("type") == "json_invalid":
        return ValidationError("body", "Request body must be valid JSON")

    loc = [str(part) for part in first.get("loc", ()) if part != "body"]
    field = ".".join(loc) or "body"
    if first.get("type") == "missing":
        return ValidationError(field)
    return ValidationError(field, f"Invalid field: {field}")
