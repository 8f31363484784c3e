"""Radix-tree HTTP request router with static, parameter and wildcard segments."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from http import HTTPStatus
from typing import Any, Callable, Optional

log = logging.getLogger(__name__)

Handler = Callable[[Any], Any]

PROPFIND = "PROPFIND"
REPORT = "REPORT"

#: Methods the router keeps handlers for, in the order they are checked.
METHODS = (
    "CONNECT",
    "DELETE",
    "GET",
    "HEAD",
    "OPTIONS",
    "PATCH",
    "POST",
    PROPFIND,
    "PUT",
    "TRACE",
    REPORT,
)

PARAM_LABEL = ":"
ANY_LABEL = "*"


class HTTPError(Exception):
    """An error that carries an HTTP status code."""

    def __init__(self, code: int, message: Optional[str] = None) -> None:
        self.code = int(code)
        self.message = HTTPStatus(self.code).phrase if message is None else message
        super().__init__(self.code, self.message)

    def __str__(self) -> str:
        return f"code={self.code}, message={self.message}"


def not_found_handler(context: Any) -> Any:
    """Handler used when no route matches the request path."""
    raise HTTPError(HTTPStatus.NOT_FOUND)


def method_not_allowed_handler(context: Any) -> Any:
    """Handler used when the path matches but not for the request method."""
    raise HTTPError(HTTPStatus.METHOD_NOT_ALLOWED)


class Kind(IntEnum):
    """Node kinds, in the order of matching priority."""

    STATIC = 0
    PARAM = 1
    ANY = 2


@dataclass
class RouteMatch:
    """Result of a route lookup: the handler, the route path and the path parameters."""

    handler: Handler
    path: str
    param_names: list[str] = field(default_factory=list)
    param_values: list[str] = field(default_factory=list)

    def param(self, name: str) -> str:
        """Return the value of the named path parameter, or an empty string."""
        for param_name, value in zip(self.param_names, self.param_values):
            if param_name == name:
                return value
        return ""


@dataclass(eq=False)
class _Node:
    kind: Kind
    prefix: str
    parent: Optional[_Node] = None
    static_children: list[_Node] = field(default_factory=list)
    handlers: dict[str, Handler] = field(default_factory=dict)
    ppath: str = ""
    pnames: list[str] = field(default_factory=list)
    param_child: Optional[_Node] = None
    any_child: Optional[_Node] = None
    is_leaf: bool = True
    is_handler: bool = False

    @property
    def label(self) -> str:
        return self.prefix[:1]

    def update_leaf(self) -> None:
        self.is_leaf = (
            not self.static_children and self.param_child is None and self.any_child is None
        )

    def find_static_child(self, label: str) -> Optional[_Node]:
        return next((c for c in self.static_children if c.label == label), None)

    def find_child_with_label(self, label: str) -> Optional[_Node]:
        child = self.find_static_child(label)
        if child is not None:
            return child
        if label == PARAM_LABEL:
            return self.param_child
        if label == ANY_LABEL:
            return self.any_child
        return None

    def add_handler(self, method: str, handler: Optional[Handler]) -> None:
        if method in METHODS:
            if handler is None:
                self.handlers.pop(method, None)
            else:
                self.handlers[method] = handler
        self.is_handler = handler is not None or bool(self.handlers)

    def find_handler(self, method: str) -> Optional[Handler]:
        return self.handlers.get(method)

    def check_method_not_allowed(self) -> Handler:
        if any(self.find_handler(m) is not None for m in METHODS):
            return method_not_allowed_handler
        return not_found_handler


def _common_prefix_len(a: str, b: str) -> int:
    length = 0
    for x, y in zip(a, b):
        if x != y:
            break
        length += 1
    return length


def _segment_end(search: str) -> int:
    end = search.find("/")
    return len(search) if end == -1 else end


class Router:
    """Registry of routes, matched by static, `:param` and `*` segments."""

    def __init__(self) -> None:
        self._tree = _Node(kind=Kind.STATIC, prefix="")
        self._max_param = 0

    def add(self, method: str, path: str, handler: Optional[Handler]) -> None:
        """Register a handler for a method and route path."""
        if not path:
            path = "/"
        if not path.startswith("/"):
            path = "/" + path
        pnames: list[str] = []
        ppath = path

        if handler is None:
            log.error("Adding route without handler function: %s:%s", method, path)

        i = 0
        end = len(path)
        while i < end:
            char = path[i]
            if char == PARAM_LABEL:
                start = i + 1
                self._insert(method, path[:i], None, Kind.STATIC, "", None)
                while i < end and path[i] != "/":
                    i += 1
                pnames.append(path[start:i])
                path = path[:start] + path[i:]
                i, end = start, len(path)
                if i == end:
                    self._insert(method, path[:i], handler, Kind.PARAM, ppath, pnames)
                else:
                    self._insert(method, path[:i], None, Kind.PARAM, "", None)
            elif char == ANY_LABEL:
                self._insert(method, path[:i], None, Kind.STATIC, "", None)
                pnames.append(ANY_LABEL)
                self._insert(method, path[: i + 1], handler, Kind.ANY, ppath, pnames)
            i += 1

        self._insert(method, path, handler, Kind.STATIC, ppath, pnames)

    def _insert(
        self,
        method: str,
        path: str,
        handler: Optional[Handler],
        kind: Kind,
        ppath: str,
        pnames: Optional[list[str]],
    ) -> None:
        pnames = list(pnames or ())
        self._max_param = max(self._max_param, len(pnames))

        node = self._tree
        search = path
        while True:
            prefix_len = len(node.prefix)
            lcp = _common_prefix_len(search, node.prefix)

            if lcp == 0:
                node.prefix = search
                if handler is not None:
                    node.kind = kind
                    node.add_handler(method, handler)
                    node.ppath = ppath
                    node.pnames = pnames
                node.update_leaf()
            elif lcp < prefix_len:
                moved = _Node(
                    kind=node.kind,
                    prefix=node.prefix[lcp:],
                    parent=node,
                    static_children=node.static_children,
                    handlers=node.handlers,
                    ppath=node.ppath,
                    pnames=node.pnames,
                    param_child=node.param_child,
                    any_child=node.any_child,
                )
                moved.update_leaf()
                moved.is_handler = bool(moved.handlers)
                for child in moved.static_children:
                    child.parent = moved
                if moved.param_child is not None:
                    moved.param_child.parent = moved
                if moved.any_child is not None:
                    moved.any_child.parent = moved

                node.kind = Kind.STATIC
                node.prefix = node.prefix[:lcp]
                node.static_children = [moved]
                node.handlers = {}
                node.ppath = ""
                node.pnames = []
                node.param_child = None
                node.any_child = None
                node.is_leaf = False
                node.is_handler = False

                if lcp == len(search):
                    node.kind = kind
                    node.add_handler(method, handler)
                    node.ppath = ppath
                    node.pnames = pnames
                else:
                    created = _Node(
                        kind=kind, prefix=search[lcp:], parent=node, ppath=ppath, pnames=pnames
                    )
                    created.add_handler(method, handler)
                    node.static_children.append(created)
                node.update_leaf()
            elif lcp < len(search):
                search = search[lcp:]
                child = node.find_child_with_label(search[0])
                if child is not None:
                    node = child
                    continue
                created = _Node(kind=kind, prefix=search, parent=node, ppath=ppath, pnames=pnames)
                created.add_handler(method, handler)
                if kind == Kind.STATIC:
                    node.static_children.append(created)
                elif kind == Kind.PARAM:
                    node.param_child = created
                else:
                    node.any_child = created
                node.update_leaf()
            elif handler is not None:
                node.add_handler(method, handler)
                node.ppath = ppath
                if not node.pnames:
                    node.pnames = pnames
            return

    @staticmethod
    def _not_found(path: str, values: list[str]) -> RouteMatch:
        return RouteMatch(not_found_handler, path, [], values)

    def find(self, method: str, path: str) -> RouteMatch:
        """Look up the handler for a method and request path, collecting path parameters.

        Matching priority is static > param > any, backtracking up the tree when a
        branch leads nowhere.
        """
        node: Optional[_Node] = self._tree
        best: Optional[_Node] = None
        matched: Optional[Handler] = None
        search = path
        search_index = 0
        param_index = 0
        values = [""] * self._max_param

        def backtrack(from_kind: Kind) -> tuple[Kind, bool]:
            nonlocal node, search, search_index, param_index
            previous = node
            node = previous.parent
            if previous.kind == Kind.ANY:
                next_kind = Kind.STATIC
            else:
                next_kind = Kind(previous.kind + 1)
            if from_kind != Kind.STATIC:
                if previous.kind == Kind.STATIC:
                    search_index -= len(previous.prefix)
                else:
                    param_index -= 1
                    search_index -= len(values[param_index])
                    values[param_index] = ""
                search = path[search_index:]
            return next_kind, node is not None

        stage = Kind.STATIC
        while True:
            if stage == Kind.STATIC:
                prefix_len = lcp = 0
                if node.kind == Kind.STATIC:
                    prefix_len = len(node.prefix)
                    lcp = _common_prefix_len(search, node.prefix)

                if lcp != prefix_len:
                    next_kind, ok = backtrack(Kind.STATIC)
                    if not ok:
                        return self._not_found(path, values)
                    if next_kind == Kind.PARAM:
                        stage = Kind.PARAM
                        continue
                    break

                search = search[lcp:]
                search_index += lcp

                if not search and node.is_handler:
                    if best is None:
                        best = node
                    handler = node.find_handler(method)
                    if handler is not None:
                        matched = handler
                        break

                if search:
                    child = node.find_static_child(search[0])
                    if child is not None:
                        node = child
                        continue
                stage = Kind.PARAM

            if stage == Kind.PARAM:
                child = node.param_child
                if search and child is not None:
                    node = child
                    end = len(search) if child.is_leaf else _segment_end(search)
                    values[param_index] = search[:end]
                    param_index += 1
                    search = search[end:]
                    search_index += end
                    stage = Kind.STATIC
                    continue
                stage = Kind.ANY

            child = node.any_child
            if child is not None:
                node = child
                values[len(node.pnames) - 1] = search
                param_index += 1
                search_index += len(search)
                search = ""
                if best is None:
                    best = node
                handler = node.find_handler(method)
                if handler is not None:
                    matched = handler
                    break

            next_kind, ok = backtrack(Kind.ANY)
            if not ok:
                break
            if next_kind == Kind.PARAM:
                stage = Kind.PARAM
                continue
            if next_kind == Kind.ANY:
                stage = Kind.ANY
                continue
            break

        if matched is not None:
            return RouteMatch(matched, node.ppath, list(node.pnames), values)
        if best is None:
            return self._not_found(path, values)
        return RouteMatch(best.check_method_not_allowed(), best.ppath, list(best.pnames), values)