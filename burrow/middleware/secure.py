"""WSGI middleware that adds security-related response headers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

HEADER_XSS_PROTECTION = "X-XSS-Protection"
HEADER_CONTENT_TYPE_OPTIONS = "X-Content-Type-Options"
HEADER_FRAME_OPTIONS = "X-Frame-Options"
HEADER_STRICT_TRANSPORT_SECURITY = "Strict-Transport-Security"
HEADER_CONTENT_SECURITY_POLICY = "Content-Security-Policy"
HEADER_CONTENT_SECURITY_POLICY_REPORT_ONLY = "Content-Security-Policy-Report-Only"
HEADER_REFERRER_POLICY = "Referrer-Policy"

Skipper = Callable[[dict], bool]


@dataclass
class SecureConfig:
    """Settings for the security headers; the defaults match the stock middleware.

    An empty string disables the corresponding header; ``hsts_max_age`` of 0
    disables Strict-Transport-Security.
    """

    skipper: Optional[Skipper] = None
    xss_protection: str = "1; mode=block"
    content_type_nosniff: str = "nosniff"
    x_frame_options: str = "SAMEORIGIN"
    hsts_max_age: int = 0
    hsts_exclude_subdomains: bool = False
    content_security_policy: str = ""
    csp_report_only: bool = False
    hsts_preload_enabled: bool = False
    referrer_policy: str = ""


def security_headers(
    config: SecureConfig, is_tls: bool = False, forwarded_proto: str = ""
) -> dict[str, str]:
    """Return the headers the configuration adds to a response."""
    headers: dict[str, str] = {}
    if config.xss_protection:
        headers[HEADER_XSS_PROTECTION] = config.xss_protection
    if config.content_type_nosniff:
        headers[HEADER_CONTENT_TYPE_OPTIONS] = config.content_type_nosniff
    if config.x_frame_options:
        headers[HEADER_FRAME_OPTIONS] = config.x_frame_options
    if (is_tls or forwarded_proto == "https") and config.hsts_max_age != 0:
        subdomains = "" if config.hsts_exclude_subdomains else "; includeSubdomains"
        if config.hsts_preload_enabled:
            subdomains += "; preload"
        headers[HEADER_STRICT_TRANSPORT_SECURITY] = f"max-age={config.hsts_max_age}{subdomains}"
    if config.content_security_policy:
        name = (
            HEADER_CONTENT_SECURITY_POLICY_REPORT_ONLY
            if config.csp_report_only
            else HEADER_CONTENT_SECURITY_POLICY
        )
        headers[name] = config.content_security_policy
    if config.referrer_policy:
        headers[HEADER_REFERRER_POLICY] = config.referrer_policy
    return headers


def secure(app: Callable[..., Iterable[bytes]], config: Optional[SecureConfig] = None):
    """Wrap a WSGI application so its responses carry the security headers.

    Headers the application sets itself take precedence over the added ones.
    """
    config = config or SecureConfig()

    def middleware(environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
        if config.skipper is not None and config.skipper(environ):
            return app(environ, start_response)

        extra = security_headers(
            config,
            is_tls=environ.get("wsgi.url_scheme") == "https",
            forwarded_proto=environ.get("HTTP_X_FORWARDED_PROTO", ""),
        )

        def wrapped_start_response(status, headers, exc_info=None):
            present = {name.lower() for name, _ in headers}
            merged = [
                (name, value) for name, value in extra.items() if name.lower() not in present
            ]
            merged.extend(headers)
            if exc_info is None:
                return start_response(status, merged)
            return start_response(status, merged, exc_info)

        return app(environ, wrapped_start_response)

    return middleware