#!/usr/bin/env python3

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
import uvicorn
import json
import time
import urllib.parse
from oauthbridge.config import settings
from oauthbridge.errors import BridgeError
from oauthbridge.events import mask_fields
from oauthbridge.provider import AUTHORIZE_URL

# Create FastAPI app
app = FastAPI(title=settings.app_name, version="1.0.0")

# ============================================================================
# LOGGING MIDDLEWARE - Logs requests and responses, passwords masked
# ============================================================================


def describe_body(body: bytes, content_type: str) -> str:
    """Render a request body for the log with password fields masked"""
    text = body.decode("utf-8", errors="ignore")

    if content_type.startswith("application/json"):
        try:
            data = json.loads(text)
        except ValueError:
            return "(unparseable JSON)"
        if isinstance(data, dict):
            return json.dumps(mask_fields(data))
        return text

    if content_type.startswith("application/x-www-form-urlencoded"):
        data = dict(urllib.parse.parse_qsl(text, keep_blank_values=True))
        return urllib.parse.urlencode(mask_fields(data))

    return f"({len(body)} bytes of {content_type or 'unknown content'})"


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logging middleware for all HTTP requests and responses"""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        body = await request.body()

        print("\n" + "=" * 100)
        print(f"[REQUEST] {request.method} {request.url.path}")
        print("-" * 100)
        if request.query_params:
            print(f"Query Params: {mask_fields(dict(request.query_params))}")
        print(f"Client: {request.client.host}:{request.client.port}" if request.client else "Client: Unknown")

        if body:
            print(f"Body: {describe_body(body, request.headers.get('content-type', ''))}")

        response = await call_next(request)

        process_time = time.time() - start_time

        print(f"\n[RESPONSE] Status: {response.status_code} | Time: {process_time:.3f}s")
        print("=" * 100 + "\n")

        return response

if settings.logging_enabled:
    app.add_middleware(LoggingMiddleware)

# ============================================================================
# ERROR HANDLING - Every failed attempt becomes a JSON failure payload
# ============================================================================


@app.exception_handler(BridgeError)
async def bridge_error_handler(request: Request, exc: BridgeError):
    print(f"ERROR: {exc.error_kind} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(exc.to_dict(), status_code=exc.http_status)

# ============================================================================
# INCLUDE ROUTERS
# ============================================================================

if "api" in settings.enabled_flows:
    from oauthbridge.routes import router as api_router
    app.include_router(api_router)
    print("✅ JSON authorize API enabled")

if "form" in settings.enabled_flows:
    from oauthbridge.pages import router as form_router
    app.include_router(form_router)
    print("✅ Authorize form enabled")

# ============================================================================
# ROOT ENDPOINTS
# ============================================================================

@app.get("/")
def root():
    """Root endpoint with server information"""
    response = {
        "service": settings.app_name,
        "version": "1.0.0",
        "enabled_flows": settings.enabled_flows,
        "config_file": str(settings.config_path),
        "provider_authorize_url": AUTHORIZE_URL,
    }

    if "api" in settings.enabled_flows:
        response["api"] = {
            "endpoints": {
                "authorize": "POST /api/oauth1/authorize",
                "authorize_query": "GET /api/oauth",
            },
        }

    if "form" in settings.enabled_flows:
        response["form"] = {
            "endpoints": {
                "authorize": "/authorize?oauth_token=<token>&oauth_callback=<url>",
            },
        }

    response["docs"] = "/docs"

    return response

@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "enabled_flows": settings.enabled_flows,
        "config_file": str(settings.config_path),
    }

# ============================================================================
# MAIN
# ============================================================================

if __name__ == "__main__":
    print(f"🚀 Starting {settings.app_name}")
    print(f"📋 Configuration loaded from: {settings.config_path}")
    print(f"🔐 Enabled flows: {', '.join(settings.enabled_flows)}")
    print(f"📡 Server running at http://{settings.host}:{settings.port}")

    uvicorn.run(app, host=settings.host, port=settings.port)
