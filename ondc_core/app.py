"""
ondc_core.app
-------------
FastAPI surface of a buyer-side network participant:

- site verification page and registry on_subscribe challenge
- signed outbound calls: /lookup, /search, /select (and unsigned /subscribe)
- signature-verified inbound callbacks: on_search, on_select

Keys and settings are loaded when the app is created (fail fast); the signer
readiness gate is awaited in the lifespan, before traffic is served.
Handlers that call the network gateway are plain `def` so FastAPI runs the
blocking `requests` call in its threadpool.
"""

from __future__ import annotations
import json, sys
from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, Optional

import pydantic
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response

from .auth_header import AuthorizationHeaderCodec
from .config import Settings
from .errors import ConfigError, KeyInitError, OndcError, SigningError, UpstreamError, ValidationError
from .gateway import GatewayResponse, NetworkGateway
from .handshake import HandshakeOrchestrator
from .keys import load_key_material
from .logger import get_logger
from .payloads import (
    build_lookup_payload,
    build_search_payload,
    build_select_payload,
    build_subscribe_payload,
)
from .schemas import (
    CallbackPayload,
    LookupRequest,
    OnSubscribeRequest,
    PeerContext,
    SearchRequest,
    SelectRequest,
    validation_error_from,
)
from .signer import RequestSigner, default_signer

log = get_logger("ondc.app")

SITE_VERIFICATION_HTML = """
<html>
  <head>
    <meta
      name="ondc-site-verification"
      content="SIGNED_UNIQUE_REQ_ID"
    />
  </head>
  <body>
    ONDC Site Verification Page
  </body>
</html>
"""

ACK = {"message": {"ack": {"status": "ACK"}}}

CallbackHook = Callable[[str, Dict[str, Any]], None]


def _route(prefix: str, action: str) -> str:
    return f"{prefix.rstrip('/')}/{action}"


def _passthrough(res: GatewayResponse) -> Response:
    return Response(content=res.body, status_code=res.status_code, media_type=res.content_type)


def _error_response(request: Request, exc: OndcError) -> JSONResponse:
    if exc.status_code >= 500:
        log.error(f"{request.url.path}: {type(exc).__name__}: {exc}")
    else:
        log.warning(f"{request.url.path}: {type(exc).__name__}: {exc}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.public_message})


def create_app(
    settings: Optional[Settings] = None,
    gateway: Optional[NetworkGateway] = None,
    signer: Optional[RequestSigner] = None,
    on_callback: Optional[CallbackHook] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    keys = load_key_material(settings)
    signer = signer or default_signer()
    gateway = gateway or NetworkGateway(timeout=settings.gateway_timeout)
    orchestrator = HandshakeOrchestrator(settings, keys, AuthorizationHeaderCodec(signer), gateway)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await signer.ready()
        log.info(f"Server ready, subscriber_id={settings.subscriber_id}")
        try:
            yield
        finally:
            gateway.close()

    app = FastAPI(title="ONDC participant", lifespan=lifespan)
    app.state.settings = settings
    app.state.orchestrator = orchestrator

    # ------------------------------------------------------------------
    # Error mapping
    # ------------------------------------------------------------------
    @app.exception_handler(UpstreamError)
    async def upstream_error_handler(request: Request, exc: UpstreamError):
        log.error(f"{request.url.path}: upstream failure, {exc} status={exc.status}")
        return JSONResponse(status_code=500, content=exc.detail())

    @app.exception_handler(OndcError)
    async def ondc_error_handler(request: Request, exc: OndcError):
        return _error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return _error_response(request, validation_error_from(exc.errors()))

    # ------------------------------------------------------------------
    # Liveness and site verification
    # ------------------------------------------------------------------
    @app.get("/", response_class=PlainTextResponse)
    async def root():
        return "ONDC Onboarding is live"

    @app.get("/health", response_class=PlainTextResponse)
    async def health():
        return "Health OK!!"

    @app.get("/ondc-site-verification.html")
    async def site_verification():
        log.info(f"/ondc-site-verification.html: Serving site verification file, request_id={settings.request_id}")
        try:
            signed = signer.sign(settings.request_id, settings.signing_private_key)
        except SigningError as e:
            log.error(f"/ondc-site-verification.html: Failed to serve site verification file, error={e}")
            return PlainTextResponse("Internal server error", status_code=500)
        return HTMLResponse(SITE_VERIFICATION_HTML.replace("SIGNED_UNIQUE_REQ_ID", signed))

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------
    @app.post(_route(settings.callback_path, "on_subscribe"))
    async def on_subscribe(payload: OnSubscribeRequest):
        answer = orchestrator.answer_challenge(payload.model_dump())
        return {"answer": answer}

    @app.post("/lookup")
    def lookup(body: LookupRequest):
        if not settings.ondc_lookup_url:
            raise ConfigError("ONDC_LOOKUP_URL is not configured")
        res = orchestrator.send_signed(build_lookup_payload(body), settings.ondc_lookup_url)
        return _passthrough(res)

    @app.post("/subscribe")
    def subscribe():
        if not settings.ondc_subscribe_url:
            raise ConfigError("ONDC_SUBSCRIBE_URL is not configured")
        payload = build_subscribe_payload(settings, keys)
        # the registry authenticates subscription by the on_subscribe challenge, not by header
        res = orchestrator.send_unsigned(payload, settings.ondc_subscribe_url)
        res.raise_for_status()
        try:
            data = json.loads(res.body) if res.body else None
        except ValueError:
            data = res.text
        return {"message": "Subscription request sent", "data": data}

    # ------------------------------------------------------------------
    # Discovery and ordering
    # ------------------------------------------------------------------
    @app.post("/search")
    def search(body: SearchRequest):
        if not settings.gateway_url:
            raise ConfigError("GATEWAY_URL is not configured")
        payload = build_search_payload(settings, body.intent, transaction_id=body.transaction_id)
        res = orchestrator.send_signed(payload, f"{settings.gateway_url}/search")
        return _passthrough(res)

    @app.post("/select")
    def select(body: SelectRequest):
        # peer identity comes from the on_search context the caller received
        ctx = body.context or PeerContext()
        bpp_id = body.bpp_id or ctx.bpp_id or settings.default_bpp_id
        bpp_uri = body.bpp_uri or ctx.bpp_uri or settings.default_bpp_uri
        if not bpp_id:
            raise ValidationError("bpp_id")
        if not bpp_uri:
            raise ValidationError("bpp_uri")
        transaction_id = body.transaction_id or ctx.transaction_id
        payload = build_select_payload(settings, body.order, bpp_id, bpp_uri, transaction_id=transaction_id)
        res = orchestrator.send_signed(payload, f"{bpp_uri.rstrip('/')}/select")
        return _passthrough(res)

    async def _signed_callback(request: Request, action: str):
        raw = await request.body()
        envelope = orchestrator.verify_inbound(request.headers, raw, settings.peer_public_key)
        try:
            payload = CallbackPayload.model_validate_json(raw).model_dump()
        except pydantic.ValidationError as e:
            raise validation_error_from(e.errors()) from e
        log.info(f"{action}: accepted from {envelope.subscriber_id}, transaction_id={payload['context'].get('transaction_id')}")
        if on_callback:
            on_callback(action, payload)
        return ACK

    @app.post(_route(settings.subscriber_path, "on_search"))
    async def on_search(request: Request):
        return await _signed_callback(request, "on_search")

    @app.post(_route(settings.subscriber_path, "on_select"))
    async def on_select(request: Request):
        return await _signed_callback(request, "on_select")

    return app


def main() -> None:
    """Console entry point: load config and keys, then serve with uvicorn."""
    import uvicorn

    try:
        settings = Settings.from_env()
        app = create_app(settings)
    except (ConfigError, KeyInitError) as e:
        log.error(f"Error: {e}")
        sys.exit(1)
    log.info(f"Server starting on port {settings.port}")
    uvicorn.run(app, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
