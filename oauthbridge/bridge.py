#!/usr/bin/env python3

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional
import re
import uuid

import requests

from .errors import AmbiguousResponse, InvalidInput, ProviderRejected, TransportFailure
from .events import EventHook, discard_event
from .provider import (
    PROVIDER_HEADERS,
    ProviderResponse,
    build_authorize_url,
    extract,
    looks_authorized,
    redact_url,
)

EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

DEFAULT_TIMEOUT = 15


@dataclass(frozen=True)
class AuthorizationRequest:
    email: str
    password: str
    request_token: str
    # Name the token carries at the inbound boundary, used in error payloads
    token_field: str = "oauthToken"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], token_key: str = "oauthToken") -> "AuthorizationRequest":
        """Build a request from inbound JSON or query parameters"""
        return cls(
            email=data.get("email") or "",
            password=data.get("password") or "",
            request_token=data.get(token_key) or "",
            token_field=token_key,
        )

    def missing_fields(self) -> List[str]:
        fields = {"email": self.email, "password": self.password, self.token_field: self.request_token}
        return [name for name, value in fields.items() if not value]


@dataclass(frozen=True)
class AuthorizationResult:
    status_code: int
    verifier: str
    request_id: str
    redirect_location: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)

    def to_dict(self, include_headers: bool = False) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "statusCode": self.status_code,
            "verifier": self.verifier,
            "requestId": self.request_id,
        }
        if self.redirect_location:
            payload["redirectLocation"] = self.redirect_location
        if include_headers:
            payload["headers"] = dict(self.headers)
        return payload


def validate_request(request: AuthorizationRequest, check_email_format: bool = True, request_id: Optional[str] = None):
    """Reject incomplete or malformed input before anything goes over the wire"""
    fields = (("email", request.email), ("password", request.password), (request.token_field, request.request_token))
    for name, value in fields:
        if value is not None and not isinstance(value, str):
            raise InvalidInput(f"Field '{name}' must be a string", request_id=request_id)

    missing = request.missing_fields()
    if missing:
        raise InvalidInput("Missing required fields", missing=missing, request_id=request_id)

    # Lone surrogates survive JSON decoding but cannot be percent-encoded
    for name, value in fields:
        try:
            value.encode("utf-8")
        except UnicodeEncodeError:
            raise InvalidInput(f"Field '{name}' is not valid text", request_id=request_id)

    if check_email_format and not EMAIL_REGEX.fullmatch(request.email):
        raise InvalidInput("Invalid email format", request_id=request_id)


class AuthorizationBridge:
    """
    Submits user credentials to the provider's authorize endpoint and
    recovers the oauth_verifier from its answer.

    One GET per attempt, redirects never followed: the provider hands the
    verifier over in the Location of its redirect, which would be lost if
    the redirect were followed. No attempt is retried.

    Every attempt gets its own session from ``session_factory`` so no
    provider cookie outlives the attempt that received it.
    """

    def __init__(
        self,
        session_factory: Callable[[], requests.Session] = requests.Session,
        timeout: float = DEFAULT_TIMEOUT,
        oob_callback: bool = True,
        check_email_format: bool = True,
        body_preview_length: int = 200,
        on_event: Optional[EventHook] = None,
    ):
        self.session_factory = session_factory
        self.timeout = timeout
        self.oob_callback = oob_callback
        self.check_email_format = check_email_format
        self.body_preview_length = body_preview_length
        self.on_event = on_event or discard_event

    def _emit(self, name: str, request_id: str, **fields):
        self.on_event(name, {"request_id": request_id, **fields})

    def _failed(self, error, request_id: str):
        self._emit(
            "authorization.failed",
            request_id,
            error_kind=error.error_kind,
            message=error.message,
            provider_status=error.provider_status,
        )
        return error

    def authorize(self, request: AuthorizationRequest, request_id: Optional[str] = None) -> AuthorizationResult:
        """Run one authorization attempt, raising a BridgeError on failure"""
        request_id = request_id or str(uuid.uuid4())

        try:
            validate_request(request, self.check_email_format, request_id=request_id)
        except InvalidInput as e:
            raise self._failed(e, request_id)

        self._emit(
            "request.received",
            request_id,
            email=request.email,
            has_password=True,
            password_length=len(request.password),
            oauth_token=request.request_token,
        )

        authorize_url = build_authorize_url(
            request.email,
            request.password,
            request.request_token,
            oob_callback=self.oob_callback,
        )
        response = self._call_provider(authorize_url, request_id)
        return self.classify(response, authorize_url, request_id)

    def _call_provider(self, authorize_url: str, request_id: str) -> ProviderResponse:
        self._emit("provider.call", request_id, url=redact_url(authorize_url), method="GET", timeout=self.timeout)

        try:
            with self.session_factory() as session:
                raw = session.get(
                    authorize_url,
                    headers=dict(PROVIDER_HEADERS),
                    allow_redirects=False,
                    timeout=self.timeout,
                )
                body = raw.text
        except requests.RequestException as e:
            self._emit("provider.transport_error", request_id, error=type(e).__name__, detail=str(e))
            raise self._failed(TransportFailure("Failed to connect to provider", request_id=request_id), request_id) from e

        response = ProviderResponse(
            status_code=raw.status_code,
            headers=raw.headers,
            raw_body=body or "",
            reason=raw.reason or "",
        )

        self._emit(
            "provider.response",
            request_id,
            status=response.status_code,
            status_text=response.reason,
            location=response.location,
            content_type=response.headers.get("content-type"),
            body_length=len(response.raw_body),
            body_preview=response.raw_body[: self.body_preview_length],
        )
        return response

    def classify(self, response: ProviderResponse, authorize_url: str, request_id: str) -> AuthorizationResult:
        """Turn a captured provider response into a result or a typed failure"""
        extraction = extract(response, authorize_url)

        if extraction.found:
            self._emit(
                "authorization.succeeded",
                request_id,
                status=response.status_code,
                verifier_source=extraction.source,
                location=extraction.redirect_location,
            )
            return AuthorizationResult(
                status_code=response.status_code,
                verifier=extraction.verifier,
                request_id=request_id,
                redirect_location=extraction.redirect_location,
                headers=dict(response.headers),
            )

        diagnostics = dict(
            provider_status=response.status_code,
            provider_status_text=response.reason or None,
            provider_body=response.raw_body,
            redirect_location=response.location,
            request_id=request_id,
        )

        if response.status_code >= 400:
            raise self._failed(ProviderRejected("Authorization failed", **diagnostics), request_id)

        if looks_authorized(extraction.verifier, response.status_code, response.raw_body):
            message = "Provider indicated success but no verifier could be extracted"
            raise self._failed(AmbiguousResponse(message, looks_authorized=True, **diagnostics), request_id)

        message = "Could not extract OAuth verifier - invalid credentials or authorization failed"
        raise self._failed(AmbiguousResponse(message, **diagnostics), request_id)
