#!/usr/bin/env python3

from typing import Any, Callable, Dict

EventHook = Callable[[str, Dict[str, Any]], None]

EVENT_LEVELS = {
    "request.received": "INFO",
    "provider.call": "DEBUG",
    "provider.response": "INFO",
    "provider.transport_error": "ERROR",
    "authorization.succeeded": "INFO",
    "authorization.failed": "WARN",
}

EVENT_MESSAGES = {
    "request.received": "Incoming authorization request",
    "provider.call": "Calling provider authorize endpoint",
    "provider.response": "Provider responded",
    "provider.transport_error": "Network error calling provider",
    "authorization.succeeded": "✓ Authorization successful",
    "authorization.failed": "✗ Authorization failed",
}

SENSITIVE_FIELDS = ("password",)


def mask_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of a mapping with sensitive values masked"""
    return {
        key: "***MASKED***" if key in SENSITIVE_FIELDS and value else value
        for key, value in data.items()
    }


def print_event(name: str, fields: Dict[str, Any]) -> None:
    """Default event sink: one printed log line per bridge event"""
    level = EVENT_LEVELS.get(name, "INFO")
    message = EVENT_MESSAGES.get(name, name)
    details = dict(fields)
    request_id = details.pop("request_id", "-")

    print(f"{level}: [{request_id}] {message}")
    for key, value in details.items():
        print(f"{level}: [{request_id}]   {key}: {value}")


def discard_event(name: str, fields: Dict[str, Any]) -> None:
    """Event sink used when logging is disabled"""


def default_event_hook(enabled: bool = True) -> EventHook:
    return print_event if enabled else discard_event
