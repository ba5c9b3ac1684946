"""
Response hardening for the booking API.

Every JSON response gets a fixed header set: no framing outside the admin
portal, no MIME sniffing, no caching of booking or payment data. HSTS is only
sent when ENVIRONMENT=production.
"""

import logging
import os
from typing import Callable, Iterable, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from .config import FRONTEND_URL

logger = logging.getLogger(__name__)

IS_PRODUCTION = os.getenv("ENVIRONMENT", "development").lower() == "production"

HSTS_VALUE = "max-age=31536000; includeSubDomains"

# Browser features an API response never needs
DISABLED_FEATURES = ("accelerometer", "camera", "geolocation", "gyroscope", "microphone", "payment", "usb")


def build_security_headers(frontend_url: str = FRONTEND_URL, enforce_https: bool = IS_PRODUCTION) -> dict[str, str]:
    """Header name -> value applied to every non-excluded response"""
    csp = "; ".join(
        [
            "default-src 'none'",
            f"frame-ancestors 'self' {frontend_url}",
            "base-uri 'none'",
            "form-action 'self'",
        ]
    )
    headers = {
        "X-Frame-Options": "SAMEORIGIN",
        "X-Content-Type-Options": "nosniff",
        "Referrer-Policy": "strict-origin-when-cross-origin",
        "Content-Security-Policy": csp,
        "Permissions-Policy": ", ".join(f"{feature}=()" for feature in DISABLED_FEATURES),
        "X-Permitted-Cross-Domain-Policies": "none",
    }
    if enforce_https:
        headers["Strict-Transport-Security"] = HSTS_VALUE
    return headers


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds the security header set to responses, except under exclude_paths."""

    def __init__(self, app, exclude_paths: Optional[Iterable[str]] = None, headers: Optional[dict[str, str]] = None):
        super().__init__(app)
        self.exclude_paths = tuple(exclude_paths or ())
        self.headers = headers if headers is not None else build_security_headers()
        if not IS_PRODUCTION:
            logger.info("HSTS not sent outside production")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        if request.url.path.startswith(self.exclude_paths):
            return response

        response.headers.update(self.headers)
        response.headers.setdefault("Cache-Control", "no-store, no-cache, must-revalidate")
        return response
