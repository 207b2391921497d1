# ondc_core/gateway.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Optional

import requests

from .errors import UpstreamError
from .logger import get_logger

log = get_logger("ondc.gateway")

Headers = Dict[str, str]


@dataclass
class GatewayResponse:
    status_code: int
    body: bytes
    headers: Headers = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", "replace")

    @property
    def content_type(self) -> str:
        for name, value in self.headers.items():
            if name.lower() == "content-type":
                return value
        return "application/json"

    def raise_for_status(self) -> "GatewayResponse":
        if not self.ok:
            raise UpstreamError(f"upstream returned {self.status_code}", status=self.status_code, body=self.text)
        return self


class NetworkGateway:
    """
    Outbound HTTP transport towards the registry, gateway and peers.

    Sends already-serialised bytes so the signed digest covers exactly what
    goes on the wire. Every call has a bounded timeout; transport failures
    raise UpstreamError. No retries: a signed envelope expires, so a retry
    must be re-signed by the caller.
    """

    def __init__(self, timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session or requests.Session()

    def post(self, url: str, body: bytes, headers: Optional[Headers] = None) -> GatewayResponse:
        send_headers = {"Content-Type": "application/json"}
        send_headers.update(headers or {})

        log.info(f"[GW POST] → {url} | bytes={len(body)} signed={'Authorization' in send_headers}")
        try:
            res = self.session.post(url, data=body, headers=send_headers, timeout=self.timeout)
        except requests.Timeout as e:
            log.error(f"[GW POST] timeout after {self.timeout}s: {url}")
            raise UpstreamError(f"timeout calling {url}") from e
        except requests.RequestException as e:
            log.error(f"[GW POST] transport error: {url} {e}")
            raise UpstreamError(f"transport error calling {url}: {e}") from e

        log.info(f"[GW POST] {res.status_code} {res.reason} ← {url}")
        return GatewayResponse(status_code=res.status_code, body=res.content, headers=dict(res.headers))

    def close(self) -> None:
        self.session.close()
