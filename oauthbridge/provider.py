#!/usr/bin/env python3

from dataclasses import dataclass, field
from typing import Mapping, Optional
import urllib.parse

from requests.structures import CaseInsensitiveDict

PROVIDER_HOST = "https://api.inexogy.com"
AUTHORIZE_URL = f"{PROVIDER_HOST}/public/v1/oauth1/authorize"
REQUEST_TOKEN_URL = f"{PROVIDER_HOST}/public/v1/oauth1/request_token"

# The authorize endpoint rejects calls that do not look like a desktop browser
PROVIDER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/119 Safari/537.36"
    ),
}

VERIFIER_PARAM = "oauth_verifier"

# Characters encodeURIComponent leaves alone besides the RFC 3986 unreserved set
_COMPONENT_SAFE = "!~*'()"


def encode_component(value: str) -> str:
    """Percent-encode a single query value the way browsers encode URI components"""
    return urllib.parse.quote(value, safe=_COMPONENT_SAFE)


def encode_password(password: str) -> str:
    """Encode a password for the authorize URL.

    The provider requires ``*`` percent-encoded, which standard component
    encoding leaves literal, so every ``*`` is rewritten to ``%2A``.
    """
    return encode_component(password).replace("*", "%2A")


def build_authorize_url(
    email: str,
    password: str,
    request_token: str,
    oob_callback: bool = False,
) -> str:
    """Build the provider authorize URL carrying the user's credentials"""
    query = (
        f"oauth_token={encode_component(request_token)}"
        f"&email={encode_component(email)}"
        f"&password={encode_password(password)}"
    )
    if oob_callback:
        query += "&oauth_callback=oob"
    return f"{AUTHORIZE_URL}?{query}"


def redact_url(url: str) -> str:
    """Return the URL with the password query value masked"""
    parts = urllib.parse.urlsplit(url)
    if not parts.query:
        return url

    pairs = []
    for pair in parts.query.split("&"):
        key = pair.split("=", 1)[0]
        pairs.append(f"{key}=***" if key == "password" else pair)

    return urllib.parse.urlunsplit(parts._replace(query="&".join(pairs)))


@dataclass(frozen=True)
class ProviderResponse:
    """Raw answer of the authorize endpoint, captured once per attempt"""

    status_code: int
    headers: Mapping[str, str] = field(default_factory=CaseInsensitiveDict)
    raw_body: str = ""
    reason: str = ""

    def __post_init__(self):
        if not isinstance(self.headers, CaseInsensitiveDict):
            object.__setattr__(self, "headers", CaseInsensitiveDict(self.headers))

    @property
    def location(self) -> Optional[str]:
        return self.headers.get("location") or None

    @property
    def is_redirect(self) -> bool:
        return 300 <= self.status_code < 400


@dataclass(frozen=True)
class ExtractionResult:
    verifier: Optional[str] = None
    redirect_location: Optional[str] = None
    source: Optional[str] = None

    @property
    def found(self) -> bool:
        return bool(self.verifier)


def _first_value(query: str, key: str) -> Optional[str]:
    """First value of ``key`` in a form-encoded string, None when absent or empty"""
    if query.startswith("?"):
        query = query[1:]
    for name, value in urllib.parse.parse_qsl(query, keep_blank_values=True):
        if name == key:
            return value or None
    return None


def verifier_from_location(location: str, requested_url: str) -> Optional[str]:
    """Resolve a Location header against the requested URL and read its verifier"""
    redirected = urllib.parse.urljoin(requested_url, location)
    return _first_value(urllib.parse.urlsplit(redirected).query, VERIFIER_PARAM)


def verifier_from_body(raw_body: str) -> Optional[str]:
    """Read the verifier from a body parsed as form data, whatever its content type"""
    return _first_value(raw_body.strip(), VERIFIER_PARAM)


def extract(response: ProviderResponse, requested_url: str) -> ExtractionResult:
    """
    Recover the verifier from a provider response.
    The redirect Location wins over the body, since the redirect is the
    documented success path.
    """
    location = response.location

    if location:
        verifier = verifier_from_location(location, requested_url)
        if verifier:
            return ExtractionResult(verifier=verifier, redirect_location=location, source="location")

    verifier = verifier_from_body(response.raw_body)
    if verifier:
        return ExtractionResult(verifier=verifier, redirect_location=location, source="body")

    return ExtractionResult(redirect_location=location)


def extract_verifier(
    status_code: int,
    headers: Mapping[str, str],
    raw_body: str,
    requested_url: str,
) -> Optional[str]:
    """Return the oauth_verifier carried by the response, or None"""
    response = ProviderResponse(status_code=status_code, headers=headers, raw_body=raw_body)
    return extract(response, requested_url).verifier


def looks_authorized(verifier: Optional[str], status_code: int, raw_body: str) -> bool:
    """
    Loose success signal: a verifier, any 3xx status, or the bare
    ``oauth_verifier`` substring somewhere in the body.
    The substring check is imprecise and only picks the diagnostic for a
    response no verifier could be extracted from.
    """
    if verifier:
        return True
    if 300 <= status_code < 400:
        return True
    return VERIFIER_PARAM in (raw_body or "")
