"""WSGI middleware that adds or removes a trailing slash on the request path."""

from __future__ import annotations

from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, Callable, Iterable, Optional

HEADER_LOCATION = "Location"

Skipper = Callable[[dict], bool]
WSGIApp = Callable[[dict, Callable[..., Any]], Iterable[bytes]]


@dataclass
class TrailingSlashConfig:
    """Settings for the trailing-slash middleware.

    With a non-zero ``redirect_code`` the client is redirected to the adjusted
    URI; otherwise the request is rewritten and passed on.
    """

    skipper: Optional[Skipper] = None
    redirect_code: int = 0


def sanitize_uri(uri: str) -> str:
    """Collapse leading slashes and backslashes so the URI cannot point off-site."""
    if len(uri) > 1 and uri[0] in "\\/" and uri[1] in "\\/":
        uri = "/" + uri.lstrip("/\\")
    return uri


def _status_line(code: int) -> str:
    try:
        phrase = HTTPStatus(code).phrase
    except ValueError:
        phrase = "Redirect"
    return f"{code} {phrase}"


def _validated(config: Optional[TrailingSlashConfig]) -> TrailingSlashConfig:
    config = config or TrailingSlashConfig()
    code = config.redirect_code
    if code and not 300 <= code <= 308:
        raise ValueError(f"invalid redirect status code: {code}")
    return config


def _rewrite(
    app: WSGIApp, config: TrailingSlashConfig, adjust: Callable[[str], Optional[str]]
) -> WSGIApp:
    def middleware(environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
        if config.skipper is not None and config.skipper(environ):
            return app(environ, start_response)

        path = adjust(environ.get("PATH_INFO", ""))
        if path is not None:
            query = environ.get("QUERY_STRING", "")
            uri = f"{path}?{query}" if query else path
            if config.redirect_code:
                start_response(
                    _status_line(config.redirect_code),
                    [(HEADER_LOCATION, sanitize_uri(uri))],
                )
                return []
            environ["REQUEST_URI"] = uri
            environ["PATH_INFO"] = path
        return app(environ, start_response)

    return middleware


def add_trailing_slash(app: WSGIApp, config: Optional[TrailingSlashConfig] = None) -> WSGIApp:
    """Wrap a WSGI application so request paths always end with a slash."""
    config = _validated(config)

    def adjust(path: str) -> Optional[str]:
        return None if path.endswith("/") else path + "/"

    return _rewrite(app, config, adjust)


def remove_trailing_slash(
    app: WSGIApp, config: Optional[TrailingSlashConfig] = None
) -> WSGIApp:
    """Wrap a WSGI application so request paths other than ``/`` lose a trailing slash."""
    config = _validated(config)

    def adjust(path: str) -> Optional[str]:
        if len(path) > 1 and path.endswith("/"):
            return path[:-1]
        return None

    return _rewrite(app, config, adjust)