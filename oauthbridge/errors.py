#!/usr/bin/env python3

from typing import Any, Dict, List, Optional, Type


class BridgeError(Exception):
    """Base class for every failed authorization attempt"""

    error_kind = "BridgeError"
    http_status = 500

    def __init__(
        self,
        message: str,
        *,
        provider_status: Optional[int] = None,
        provider_status_text: Optional[str] = None,
        provider_body: Optional[str] = None,
        redirect_location: Optional[str] = None,
        missing: Optional[List[str]] = None,
        request_id: Optional[str] = None,
        http_status: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.provider_status = provider_status
        self.provider_status_text = provider_status_text
        self.provider_body = provider_body
        self.redirect_location = redirect_location
        self.missing = missing
        self.request_id = request_id
        if http_status is not None:
            self.http_status = http_status

    def to_dict(self) -> Dict[str, Any]:
        """Failure payload returned to the inbound caller"""
        payload: Dict[str, Any] = {
            "errorKind": self.error_kind,
            "message": self.message,
        }
        optional = {
            "missing": self.missing,
            "providerStatus": self.provider_status,
            "providerStatusText": self.provider_status_text,
            "providerBody": self.provider_body,
            "redirectLocation": self.redirect_location,
            "requestId": self.request_id,
        }
        payload.update({key: value for key, value in optional.items() if value is not None})
        return payload

    def __repr__(self) -> str:
        return f"<{self.error_kind}: {self.message}>"


class InvalidInput(BridgeError):
    """Missing or malformed email, password or token. Raised before any network call."""

    error_kind = "InvalidInput"
    http_status = 400


class TransportFailure(BridgeError):
    """DNS, TLS, connection or timeout failure while calling out"""

    error_kind = "TransportFailure"
    http_status = 502


class ProviderRejected(BridgeError):
    """Provider answered 4xx/5xx and no verifier could be extracted"""

    error_kind = "ProviderRejected"
    http_status = 401

    def __init__(self, message: str, **kwargs):
        super().__init__(message, **kwargs)
        # Surface the provider's own status unless the caller picked one
        if kwargs.get("http_status") is None and self.provider_status:
            self.http_status = self.provider_status


class AmbiguousResponse(BridgeError):
    """Non-error provider answer that carries no verifier"""

    error_kind = "AmbiguousResponse"
    http_status = 401

    def __init__(self, message: str, *, looks_authorized: bool = False, **kwargs):
        super().__init__(message, **kwargs)
        self.looks_authorized = looks_authorized

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["looksAuthorized"] = self.looks_authorized
        return payload


ERROR_KINDS: Dict[str, Type[BridgeError]] = {
    cls.error_kind: cls
    for cls in (InvalidInput, TransportFailure, ProviderRejected, AmbiguousResponse)
}


def error_for_kind(kind: Optional[str]) -> Type[BridgeError]:
    """Return the error class for a payload's errorKind, BridgeError when unknown"""
    return ERROR_KINDS.get(kind or "", BridgeError)
