"""WSGI middleware that serves files from a directory."""

from __future__ import annotations

import html
import mimetypes
import os
import posixpath
import re
import stat
from dataclasses import dataclass, replace
from email.utils import formatdate, parsedate_to_datetime
from http import HTTPStatus
from typing import Any, Callable, Iterable, Optional
from urllib.parse import quote, unquote

Skipper = Callable[[dict], bool]
WSGIApp = Callable[[dict, Callable[..., Any]], Iterable[bytes]]

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_NOT_FOUND_ERRORS = (FileNotFoundError, NotADirectoryError)

_UNITS = (("EB", 1 << 60), ("PB", 1 << 50), ("TB", 1 << 40), ("GB", 1 << 30), ("MB", 1 << 20),
          ("KB", 1 << 10))

_PAGE_HEAD = """
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <meta http-equiv="X-UA-Compatible" content="ie=edge">
  <title>{name}</title>
  <style>
    body {{ font-family: Menlo, Consolas, monospace; padding: 48px; }}
    header {{ padding: 4px 16px; font-size: 24px; }}
    ul {{ list-style-type: none; margin: 0; padding: 20px 0 0 0; display: flex; flex-wrap: wrap; }}
    li {{ width: 300px; padding: 16px; }}
    li a {{ display: block; overflow: hidden; white-space: nowrap; text-overflow: ellipsis;
           text-decoration: none; transition: opacity 0.25s; }}
    li span {{ color: #707070; font-size: 12px; }}
    li a:hover {{ opacity: 0.50; }}
    .dir {{ color: #E91E63; }}
    .file {{ color: #673AB7; }}
  </style>
</head>
<body>
  <header>
    {name}
  </header>
  <ul>
"""

_PAGE_TAIL = """  </ul>
</body>
</html>
"""


@dataclass
class StaticConfig:
    """Settings for the static file middleware.

    ``filesystem`` is the directory files are read from; when it is not given,
    ``root`` becomes that directory.
    """

    root: str = "."
    skipper: Optional[Skipper] = None
    index: str = "index.html"
    html5: bool = False
    browse: bool = False
    ignore_base: bool = False
    filesystem: Optional[str] = None


def format_size(size: int) -> str:
    """Format a byte count with binary units, e.g. ``1.50KB``."""
    if size == 0:
        return "0"
    for unit, factor in _UNITS:
        if size >= factor:
            return f"{size / factor:.2f}{unit}"
    return f"{size}B"


def render_directory_listing(name: str, entries: Iterable[tuple[str, bool, int]]) -> str:
    """Render an HTML index page for entries of ``(name, is_dir, size)``."""
    escaped_name = html.escape(name)
    parts = [_PAGE_HEAD.format(name=escaped_name)]
    for entry_name, is_dir, size in entries:
        if is_dir:
            label = entry_name + "/"
            href = html.escape(quote(label, safe="/:@!$&'()*+,;=-._~"))
            parts.append(f'    <li>\n      <a class="dir" href="{href}">{html.escape(label)}</a>\n'
                         "    </li>\n")
        else:
            href = html.escape(quote(entry_name, safe="/:@!$&'()*+,;=-._~"))
            parts.append(
                f'    <li>\n      <a class="file" href="{href}">{html.escape(entry_name)}</a>\n'
                f"      <span>{html.escape(format_size(size))}</span>\n    </li>\n"
            )
    parts.append(_PAGE_TAIL)
    return "".join(parts)


def _go_base(path: str) -> str:
    if not path:
        return "."
    path = path.rstrip("/")
    if not path:
        return "/"
    return path.rsplit("/", 1)[-1]


def _clean(path: str) -> str:
    cleaned = posixpath.normpath(path)
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def _join(*parts: str) -> str:
    joined = posixpath.join(parts[0], *(p.lstrip("/") for p in parts[1:]))
    return posixpath.normpath(joined) if joined else ""


def _path_unescape(path: str) -> str:
    if _BAD_ESCAPE.search(path):
        raise ValueError(f"invalid escape in path: {path!r}")
    return unquote(path)


def _open(fs_root: str, name: str) -> tuple[str, os.stat_result]:
    relative = posixpath.normpath("/" + name).lstrip("/")
    if os.sep != "/" and os.sep in relative:
        raise FileNotFoundError(name)
    full = os.path.join(fs_root, *(p for p in relative.split("/") if p))
    return full, os.stat(full)


def _plain(start_response: Callable[..., Any], code: int) -> list[bytes]:
    body = HTTPStatus(code).phrase.encode()
    start_response(
        f"{code} {HTTPStatus(code).phrase}",
        [("Content-Type", "text/plain; charset=utf-8"), ("Content-Length", str(len(body)))],
    )
    return [body]


def _capture(app: WSGIApp, environ: dict) -> tuple[str, list, list[bytes]]:
    state: dict[str, Any] = {}
    chunks: list[bytes] = []

    def start_response(status, headers, exc_info=None):
        state["status"] = status
        state["headers"] = list(headers)
        return chunks.append

    result = app(environ, start_response)
    try:
        chunks.extend(result)
    finally:
        close = getattr(result, "close", None)
        if close is not None:
            close()
    return state["status"], state["headers"], chunks


def _content_type(path: str) -> str:
    guessed, _ = mimetypes.guess_type(path)
    if guessed is None:
        return "application/octet-stream"
    if guessed.startswith("text/"):
        return guessed + "; charset=utf-8"
    return guessed


def _serve_file(
    path: str, info: os.stat_result, environ: dict, start_response: Callable[..., Any]
) -> list[bytes]:
    mtime = int(info.st_mtime)
    last_modified = formatdate(mtime, usegmt=True)
    since = environ.get("HTTP_IF_MODIFIED_SINCE")
    if since and mtime > 0:
        try:
            since_ts = parsedate_to_datetime(since).timestamp()
        except (TypeError, ValueError):
            since_ts = None
        if since_ts is not None and mtime <= since_ts:
            start_response("304 Not Modified", [("Last-Modified", last_modified)])
            return []

    with open(path, "rb") as handle:
        data = handle.read()
    start_response(
        "200 OK",
        [
            ("Content-Type", _content_type(path)),
            ("Last-Modified", last_modified),
            ("Content-Length", str(len(data))),
        ],
    )
    if environ.get("REQUEST_METHOD") == "HEAD":
        return []
    return [data]


def _list_directory(
    name: str, path: str, start_response: Callable[..., Any]
) -> list[bytes]:
    with os.scandir(path) as scanned:
        entries = sorted(
            (entry.name, entry.is_dir(), entry.stat().st_size) for entry in scanned
        )
    body = render_directory_listing(name, entries).encode()
    start_response(
        "200 OK",
        [("Content-Type", "text/html; charset=UTF-8"), ("Content-Length", str(len(body)))],
    )
    return [body]


def static(app: WSGIApp, config: Optional[StaticConfig] = None) -> WSGIApp:
    """Wrap a WSGI application so existing files are served before it is called.

    Missing files fall through to the application. The path served is
    ``PATH_INFO``; ``SCRIPT_NAME`` is the mount point used by ``ignore_base``.
    """
    config = replace(config) if config is not None else StaticConfig()
    if not config.root:
        config.root = "."
    if not config.index:
        config.index = "index.html"
    if config.filesystem is None:
        fs_root, root = config.root, "."
    else:
        fs_root, root = config.filesystem, config.root

    def middleware(environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
        if config.skipper is not None and config.skipper(environ):
            return app(environ, start_response)

        try:
            request_path = _path_unescape(environ.get("PATH_INFO", ""))
        except ValueError:
            return _plain(start_response, HTTPStatus.BAD_REQUEST)
        name = _join(root, _clean("/" + request_path))

        if config.ignore_base:
            route_path = _go_base(environ.get("SCRIPT_NAME", "").rstrip("/*"))
            if _go_base(request_path) == route_path:
                i = name.rfind(route_path)
                if i != -1:
                    name = name[:i] + name[i:].replace(route_path, "", 1)

        try:
            path, info = _open(fs_root, name)
        except _NOT_FOUND_ERRORS:
            if not config.html5:
                return app(environ, start_response)
            status, headers, chunks = _capture(app, environ)
            if not status.startswith("404"):
                start_response(status, headers)
                return chunks
            try:
                path, info = _open(fs_root, _join(root, config.index))
            except OSError:
                return _plain(start_response, HTTPStatus.INTERNAL_SERVER_ERROR)
        except OSError:
            return _plain(start_response, HTTPStatus.INTERNAL_SERVER_ERROR)

        if stat.S_ISDIR(info.st_mode):
            try:
                index_path, index_info = _open(fs_root, posixpath.join(name, config.index))
            except OSError as exc:
                if config.browse:
                    return _list_directory(name, path, start_response)
                if isinstance(exc, _NOT_FOUND_ERRORS):
                    return app(environ, start_response)
                return _plain(start_response, HTTPStatus.INTERNAL_SERVER_ERROR)
            return _serve_file(index_path, index_info, environ, start_response)

        return _serve_file(path, info, environ, start_response)

    return middleware