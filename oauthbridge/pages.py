#!/usr/bin/env python3

from fastapi import APIRouter, Depends, Form, Query
from fastapi.responses import HTMLResponse, RedirectResponse
from html import escape
from typing import Optional
import urllib.parse

from .bridge import AuthorizationBridge, AuthorizationRequest
from .errors import BridgeError, InvalidInput
from .routes import get_bridge

router = APIRouter(tags=["Authorize Form"])

PAGE_STYLE = """
            body { font-family: Arial, sans-serif; max-width: 400px; margin: 100px auto;
                    padding: 20px; border: 1px solid #ddd; border-radius: 8px; background: #f9f9f9; }
            h2 { color: #333; }
            input, button { width: 100%; padding: 10px; margin: 10px 0; box-sizing: border-box; }
            button { background: #0066cc; color: white; border: none; border-radius: 4px;
                      cursor: pointer; font-size: 16px; }
            button:hover { background: #0052a3; }
            .error { background: #fdecea; color: #a30000; padding: 10px; border-radius: 4px; margin: 10px 0; }
            .info { background: #e7f3ff; padding: 10px; border-radius: 4px; margin: 10px 0; }
"""


def render_page(title: str, body: str) -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <title>{escape(title)}</title>
        <style>{PAGE_STYLE}</style>
    </head>
    <body>
        {body}
    </body>
    </html>
    """


def render_form(oauth_token: str, oauth_callback: str = "", email: str = "", error: Optional[str] = None) -> str:
    """Render the email/password form for a request token"""
    error_block = f'<div class="error">{escape(error)}</div>' if error else ""
    body = f"""
        <h2>🔐 Authorize Application</h2>
        <div class="info">
            <strong>Token:</strong> {escape(oauth_token[:20])}...
        </div>
        {error_block}
        <form method="post" action="/authorize">
            <input type="hidden" name="oauth_token" value="{escape(oauth_token)}">
            <input type="hidden" name="oauth_callback" value="{escape(oauth_callback)}">
            <label>Email:</label>
            <input type="email" name="email" value="{escape(email)}" required>
            <label>Password:</label>
            <input type="password" name="password" required>
            <button type="submit">Authorize</button>
        </form>
    """
    return render_page("Authorize Application", body)


def render_missing_token() -> str:
    body = """
        <h2>Missing Token</h2>
        <p>This page requires an oauth_token parameter.</p>
    """
    return render_page("Missing Token", body)


def render_verifier(verifier: str) -> str:
    """Out-of-band result page showing the verifier for manual entry"""
    body = f"""
        <h2>✅ Authorization Successful</h2>
        <p>Enter this verifier code in your application:</p>
        <h1 style="background: #e7f3ff; padding: 20px; border-radius: 8px; letter-spacing: 2px;">
            {escape(verifier)}</h1>
    """
    return render_page("Authorization Successful", body)


def is_out_of_band(oauth_callback: Optional[str]) -> bool:
    return not oauth_callback or oauth_callback == "oob"


def callback_redirect_url(oauth_callback: str, verifier: str, oauth_token: str) -> str:
    """Set oauth_verifier and oauth_token on the consumer's callback URL"""
    parts = urllib.parse.urlsplit(oauth_callback)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise InvalidInput("Invalid oauth_callback URL")

    params = [
        (key, value)
        for key, value in urllib.parse.parse_qsl(parts.query, keep_blank_values=True)
        if key not in ("oauth_verifier", "oauth_token")
    ]
    params += [("oauth_verifier", verifier), ("oauth_token", oauth_token)]

    return urllib.parse.urlunsplit(parts._replace(query=urllib.parse.urlencode(params)))


@router.get("/authorize", response_class=HTMLResponse)
def authorize_form(oauth_token: Optional[str] = Query(None), oauth_callback: Optional[str] = Query(None)):
    """Show the credentials form for a provider request token"""
    if not oauth_token:
        print("WARN: Authorize form requested without oauth_token")
        return HTMLResponse(content=render_missing_token(), status_code=400)

    print(f"INFO: Rendering authorize form for token: {oauth_token[:20]}...")
    return HTMLResponse(content=render_form(oauth_token, oauth_callback or ""))


@router.post("/authorize")
def authorize_submit(
    oauth_token: str = Form(""),
    oauth_callback: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    bridge: AuthorizationBridge = Depends(get_bridge),
):
    """Run the authorization for the submitted form"""
    auth_request = AuthorizationRequest(
        email=email,
        password=password,
        request_token=oauth_token,
        token_field="oauth_token",
    )

    try:
        if not is_out_of_band(oauth_callback):
            # Reject a bad callback before the credentials are sent anywhere
            callback_redirect_url(oauth_callback, "", oauth_token)
        result = bridge.authorize(auth_request)
    except BridgeError as e:
        print(f"WARN: Authorize form failed: {e.error_kind} - {e.message}")
        content = render_form(oauth_token, oauth_callback, email=email, error=e.message)
        return HTMLResponse(content=content, status_code=e.http_status)

    if is_out_of_band(oauth_callback):
        print("INFO: Out-of-band flow - returning verifier code to user")
        return HTMLResponse(content=render_verifier(result.verifier))

    redirect_url = callback_redirect_url(oauth_callback, result.verifier, oauth_token)
    print(f"INFO: Redirecting to callback URL: {oauth_callback}")
    return RedirectResponse(url=redirect_url, status_code=303)
