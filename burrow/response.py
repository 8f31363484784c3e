"""HTTP response wrapper that tracks status, size and commit state."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any, Callable, MutableMapping, Optional, Protocol

log = logging.getLogger(__name__)

Hook = Callable[[], Any]


class _ResponseWriter(Protocol):
    headers: MutableMapping[str, str]

    def write_header(self, code: int) -> None: ...

    def write(self, data: bytes) -> Optional[int]: ...


class Response:
    """Wraps a response writer and runs hooks around writing the header and body.

    The writer must provide a ``headers`` mapping, ``write_header(code)`` and
    ``write(data)``; ``flush()`` is needed only if :meth:`flush` is called.
    """

    def __init__(self, writer: _ResponseWriter) -> None:
        self.writer = writer
        self.status = 0
        self.size = 0
        self.committed = False
        self._before: list[Hook] = []
        self._after: list[Hook] = []

    @property
    def headers(self) -> MutableMapping[str, str]:
        """Header mapping of the underlying writer."""
        return self.writer.headers

    def before(self, fn: Hook) -> None:
        """Register a function called just before the header is written."""
        self._before.append(fn)

    def after(self, fn: Hook) -> None:
        """Register a function called just after each body write."""
        self._after.append(fn)

    def write_header(self, code: int) -> None:
        """Send the status code; a second call only logs a warning."""
        if self.committed:
            log.warning("response already committed")
            return
        self.status = int(code)
        for fn in self._before:
            fn()
        self.writer.write_header(self.status)
        self.committed = True

    def write(self, data: bytes) -> int:
        """Write body data, sending a 200 header first if none was sent."""
        if not self.committed:
            if self.status == 0:
                self.status = HTTPStatus.OK
            self.write_header(self.status)
        written = self.writer.write(data)
        if written is None:
            written = len(data)
        self.size += written
        for fn in self._after:
            fn()
        return written

    def flush(self) -> None:
        """Flush buffered data of the underlying writer."""
        flush = getattr(self.writer, "flush", None)
        if flush is None:
            raise TypeError(f"{type(self.writer).__name__} does not support flushing")
        flush()

    def reset(self, writer: _ResponseWriter) -> None:
        """Prepare the response for reuse with a new writer."""
        self._before = []
        self._after = []
        self.writer = writer
        self.size = 0
        self.status = HTTPStatus.OK
        self.committed = False