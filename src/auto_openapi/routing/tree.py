"""Route tree model consumed by the documentation engine.

A host server registers its routes as a tree of selector nodes. Path
segments, HTTP method bindings, required query parameters and required
headers are all nodes; an operation is a ``method`` node and its pattern is
derived by walking parent links back to the root.
"""

from enum import Enum
from typing import Callable, Iterator

from pydantic import BaseModel, ConfigDict


class SelectorKind(str, Enum):
    ROOT = "root"
    CONSTANT = "constant"
    PARAMETER = "parameter"
    OPTIONAL_PARAMETER = "optional_parameter"
    WILDCARD = "wildcard"
    TAILCARD = "tailcard"
    METHOD = "method"
    QUERY_PARAMETER = "query_parameter"
    HEADER = "header"


class Selector(BaseModel):
    """What a single route node matches on."""

    model_config = ConfigDict(frozen=True)

    kind: SelectorKind
    value: str = ""  # literal text, parameter/header name, or HTTP method

    @classmethod
    def parse(cls, segment: str) -> "Selector":
        """Parse one path segment such as ``users``, ``{id}`` or ``{**}``."""
        if segment in ("*", "{*}"):
            return cls(kind=SelectorKind.WILDCARD)
        if segment in ("{**}", "{...}"):
            return cls(kind=SelectorKind.TAILCARD)
        if segment.startswith("{") and segment.endswith("}"):
            name = segment[1:-1]
            if name.endswith("..."):
                return cls(kind=SelectorKind.TAILCARD, value=name[:-3])
            if name.endswith("?"):
                return cls(kind=SelectorKind.OPTIONAL_PARAMETER, value=name[:-1])
            return cls(kind=SelectorKind.PARAMETER, value=name)
        return cls(kind=SelectorKind.CONSTANT, value=segment)

    def path_segment(self) -> str | None:
        """Segment this selector contributes to a route pattern, if any."""
        if self.kind == SelectorKind.CONSTANT:
            return self.value
        if self.kind in (SelectorKind.PARAMETER, SelectorKind.OPTIONAL_PARAMETER):
            return "{" + self.value + "}"
        if self.kind == SelectorKind.WILDCARD:
            return "{*}"
        if self.kind == SelectorKind.TAILCARD:
            return "{**}"
        return None


class RouteNode:
    """A node in the route tree."""

    def __init__(self, selector: Selector, parent: "RouteNode | None" = None):
        self.selector = selector
        self.parent = parent
        self.children: list[RouteNode] = []
        self.handler: Callable | None = None

    def __repr__(self) -> str:
        method = self.method
        where = build_path(self)
        return f"RouteNode({method} {where})" if method else f"RouteNode({where})"

    @property
    def method(self) -> str | None:
        if self.selector.kind == SelectorKind.METHOD:
            return self.selector.value
        return None

    def create_child(self, selector: Selector) -> "RouteNode":
        for child in self.children:
            if child.selector == selector:
                return child
        child = RouteNode(selector, parent=self)
        self.children.append(child)
        return child

    def route(self, path: str) -> "RouteNode":
        """Return the node for ``path`` below this one, creating it as needed."""
        node = self
        for segment in path.split("/"):
            if segment:
                node = node.create_child(Selector.parse(segment))
        return node

    def handle(self, method: str, path: str = "", handler: Callable | None = None) -> "RouteNode":
        """Bind an HTTP method under ``path`` and return the method node."""
        node = self.route(path).create_child(
            Selector(kind=SelectorKind.METHOD, value=method.upper())
        )
        if handler is not None:
            node.handler = handler
        return node

    def get(self, path: str = "", handler: Callable | None = None) -> "RouteNode":
        return self.handle("GET", path, handler)

    def post(self, path: str = "", handler: Callable | None = None) -> "RouteNode":
        return self.handle("POST", path, handler)

    def put(self, path: str = "", handler: Callable | None = None) -> "RouteNode":
        return self.handle("PUT", path, handler)

    def patch(self, path: str = "", handler: Callable | None = None) -> "RouteNode":
        return self.handle("PATCH", path, handler)

    def delete(self, path: str = "", handler: Callable | None = None) -> "RouteNode":
        return self.handle("DELETE", path, handler)

    def head(self, path: str = "", handler: Callable | None = None) -> "RouteNode":
        return self.handle("HEAD", path, handler)

    def options(self, path: str = "", handler: Callable | None = None) -> "RouteNode":
        return self.handle("OPTIONS", path, handler)

    def param(self, name: str) -> "RouteNode":
        """Child that only matches when query parameter ``name`` is present."""
        return self.create_child(Selector(kind=SelectorKind.QUERY_PARAMETER, value=name))

    def header(self, name: str) -> "RouteNode":
        """Child that only matches when header ``name`` is present."""
        return self.create_child(Selector(kind=SelectorKind.HEADER, value=name))

    def walk(self) -> Iterator["RouteNode"]:
        """Yield this node and every descendant, depth-first in registration order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def ancestors(self) -> Iterator["RouteNode"]:
        """Yield this node, then its parent, up to the root."""
        node: RouteNode | None = self
        while node is not None:
            yield node
            node = node.parent


class RouteTree(RouteNode):
    """Root of a route tree."""

    def __init__(self):
        super().__init__(Selector(kind=SelectorKind.ROOT))


# -- pattern helpers ----------------------------------------------------------


def build_path(node: RouteNode) -> str:
    """Canonical pattern of ``node``: leading ``/``, no trailing slash."""
    parts = [n.selector.path_segment() for n in node.ancestors()]
    joined = "/".join(p for p in reversed(parts) if p)
    return "/" + joined


def path_parameters(node: RouteNode) -> list[str]:
    """Named path parameters of ``node`` in root-to-leaf order."""
    names: list[str] = []
    for n in node.ancestors():
        if n.selector.kind in (SelectorKind.PARAMETER, SelectorKind.OPTIONAL_PARAMETER):
            if n.selector.value not in names:
                names.append(n.selector.value)
    return list(reversed(names))


def required_query_parameters(node: RouteNode) -> list[str]:
    return _selector_values(node, SelectorKind.QUERY_PARAMETER)


def required_headers(node: RouteNode) -> list[str]:
    return _selector_values(node, SelectorKind.HEADER)


def has_required_query_or_header(node: RouteNode) -> bool:
    return any(
        n.selector.kind in (SelectorKind.QUERY_PARAMETER, SelectorKind.HEADER)
        for n in node.ancestors()
    )


def _selector_values(node: RouteNode, kind: SelectorKind) -> list[str]:
    values = [n.selector.value for n in node.ancestors() if n.selector.kind == kind]
    return list(reversed(values))
