#!/usr/bin/env python3

from typing import Optional

import requests

from .bridge import DEFAULT_TIMEOUT, AuthorizationRequest, AuthorizationResult
from .errors import TransportFailure, error_for_kind

AUTHORIZE_ROUTE = "/api/oauth1/authorize"


def error_message(payload) -> str:
    """Message of a failure payload; FastAPI validation errors carry a list under detail"""
    message = payload.get("message") or payload.get("detail") or "Authorization failed"
    if isinstance(message, list):
        message = "; ".join(
            str(item.get("msg", item)) if isinstance(item, dict) else str(item)
            for item in message
        )
    return str(message)


class BridgeClient:
    """
    Runs an authorization through a trusted bridge service instead of
    calling the provider from this process. The password then only travels
    to the bridge, which holds the single outbound call.
    """

    def __init__(self, base_url: str, session: Optional[requests.Session] = None, timeout: float = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    @property
    def authorize_url(self) -> str:
        return f"{self.base_url}{AUTHORIZE_ROUTE}"

    def authorize(self, request: AuthorizationRequest) -> AuthorizationResult:
        """Post the credentials to the bridge and rebuild its answer"""
        body = {
            "email": request.email,
            "password": request.password,
            "oauthToken": request.request_token,
        }

        try:
            response = self.session.post(self.authorize_url, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportFailure(f"Failed to reach bridge at {self.base_url}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise TransportFailure(f"Bridge returned an unreadable response (HTTP {response.status_code})") from e

        if not isinstance(payload, dict):
            raise TransportFailure(f"Bridge returned an unexpected payload (HTTP {response.status_code})")

        if response.status_code == 200 and payload.get("verifier"):
            return AuthorizationResult(
                status_code=payload.get("statusCode", response.status_code),
                verifier=payload["verifier"],
                request_id=payload.get("requestId", ""),
                redirect_location=payload.get("redirectLocation"),
            )

        error_class = error_for_kind(payload.get("errorKind"))
        kwargs = dict(
            provider_status=payload.get("providerStatus"),
            provider_status_text=payload.get("providerStatusText"),
            provider_body=payload.get("providerBody"),
            redirect_location=payload.get("redirectLocation"),
            missing=payload.get("missing"),
            request_id=payload.get("requestId"),
            http_status=response.status_code,
        )
        if payload.get("looksAuthorized") is not None and error_class.error_kind == "AmbiguousResponse":
            kwargs["looks_authorized"] = payload["looksAuthorized"]

        raise error_class(error_message(payload), **kwargs)
