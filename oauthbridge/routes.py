#!/usr/bin/env python3

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool
import threading
import uuid

from .bridge import AuthorizationBridge, AuthorizationRequest
from .config import settings
from .errors import InvalidInput
from .events import default_event_hook

router = APIRouter(prefix="/api", tags=["OAuth1 Authorize"])

_BRIDGE = None
_BRIDGE_LOCK = threading.Lock()


def get_bridge() -> AuthorizationBridge:
    """Return the process-wide bridge built from config"""
    global _BRIDGE
    if _BRIDGE is not None:
        return _BRIDGE

    with _BRIDGE_LOCK:
        if _BRIDGE is None:
            _BRIDGE = AuthorizationBridge(
                timeout=settings.provider_timeout,
                oob_callback=settings.oob_callback,
                check_email_format=settings.check_email_format,
                body_preview_length=settings.body_preview_length,
                on_event=default_event_hook(settings.logging_enabled),
            )
            print(f"INFO: Authorization bridge ready (timeout: {settings.provider_timeout}s, oob_callback: {settings.oob_callback})")
    return _BRIDGE


@router.post("/oauth1/authorize")
async def authorize(request: Request, bridge: AuthorizationBridge = Depends(get_bridge)):
    """Authorize a request token with the user's email and password (JSON body)"""
    request_id = str(uuid.uuid4())

    try:
        body = await request.json()
    except ValueError:
        print(f"ERROR: [{request_id}] Failed to parse request body")
        raise InvalidInput("Invalid request body", request_id=request_id)

    if not isinstance(body, dict):
        print(f"ERROR: [{request_id}] Request body is not a JSON object")
        raise InvalidInput("Invalid request body", request_id=request_id)

    auth_request = AuthorizationRequest.from_mapping(body, token_key="oauthToken")
    result = await run_in_threadpool(bridge.authorize, auth_request, request_id)
    return result.to_dict()


@router.get("/oauth")
def authorize_query(request: Request, bridge: AuthorizationBridge = Depends(get_bridge)):
    """Same authorization driven by query parameters, echoing the provider headers"""
    auth_request = AuthorizationRequest.from_mapping(request.query_params, token_key="oauth_token")
    result = bridge.authorize(auth_request)
    return result.to_dict(include_headers=True)
