"""Route index — raw request paths to registered patterns, and operations to nodes."""

import logging
import re
import threading
from typing import NamedTuple

from auto_openapi.config import Config
from auto_openapi.routing.tree import RouteNode, build_path

logger = logging.getLogger(__name__)


class PatternMatcher(NamedTuple):
    pattern: str
    regex: re.Pattern


class OperationKey(NamedTuple):
    method: str
    pattern: str


class Operation(NamedTuple):
    method: str
    pattern: str
    node: RouteNode


def compile_pattern(pattern: str) -> re.Pattern:
    """Anchored regex for a route pattern; first match wins at lookup time."""
    parts = []
    for seg in pattern.split("/"):
        if seg == "{**}":
            parts.append(".*")
        elif seg.startswith("{") and seg.endswith("}"):
            parts.append("[^/]+")
        else:
            parts.append(re.escape(seg))
    return re.compile("^" + "/".join(parts) + "$")


def is_docs_path(pattern: str, cfg: Config) -> bool:
    ui = cfg.swagger_ui_path.rstrip("/")
    return (
        pattern == cfg.openapi_path
        or pattern == cfg.swagger_ui_path
        or pattern.startswith(ui + "/")
    )


class RouteIndex:
    """Lazily indexes a route tree; built once, then read-only.

    The tree is assumed to be static once the first lookup happens.
    """

    def __init__(self, tree: RouteNode | None, cfg: Config):
        self.tree = tree
        self.cfg = cfg
        self._built = False
        self._lock = threading.Lock()
        self._matchers: list[PatternMatcher] = []
        self._routes: dict[OperationKey, RouteNode] = {}
        self._operations: list[Operation] = []

    def match_pattern(self, raw_path: str) -> str | None:
        self._ensure_built()
        for matcher in self._matchers:
            if matcher.regex.fullmatch(raw_path):
                return matcher.pattern
        return None

    def route_for(self, method: str, pattern: str) -> RouteNode | None:
        self._ensure_built()
        return self._routes.get(OperationKey(method.upper(), pattern))

    def operations(self) -> list[Operation]:
        """Every documented (method, pattern, node) in registration order."""
        self._ensure_built()
        return list(self._operations)

    def _ensure_built(self) -> None:
        if self._built:
            return
        with self._lock:
            if self._built:
                return
            matchers: dict[str, PatternMatcher] = {}
            routes: dict[OperationKey, RouteNode] = {}
            operations: list[Operation] = []
            nodes = list(self.tree.walk()) if self.tree is not None else []
            for node in nodes:
                pattern = build_path(node)
                if is_docs_path(pattern, self.cfg):
                    continue
                if pattern not in matchers:
                    matchers[pattern] = PatternMatcher(pattern, compile_pattern(pattern))
                method = node.method
                if method is not None:
                    key = OperationKey(method, pattern)
                    if key in routes:
                        logger.debug("Duplicate operation %s %s; later registration wins", method, pattern)
                        operations = [op for op in operations if (op.method, op.pattern) != key]
                    routes[key] = node
                    operations.append(Operation(method, pattern, node))
            self._matchers = list(matchers.values())
            self._routes = routes
            self._operations = operations
            self._built = True
            logger.debug("Indexed %d patterns, %d operations", len(self._matchers), len(operations))
