"""Side tables attaching documentation and module names to route nodes."""

import threading
from contextlib import contextmanager
from typing import Iterator

from auto_openapi.docs.model import OperationDoc, OperationDocBuilder, combine_docs
from auto_openapi.routing.tree import RouteNode


class DocRegistry:
    """Maps route nodes to their declared ``OperationDoc`` and module name."""

    def __init__(self):
        self._docs: dict[RouteNode, OperationDoc] = {}
        self._modules: dict[RouteNode, str] = {}
        self._lock = threading.Lock()

    @contextmanager
    def doc(self, node: RouteNode, **fields) -> Iterator[OperationDocBuilder]:
        """Collect a doc fragment for ``node`` and attach it on exit.

        Usage::

            with docs.doc(node, summary="Fetch one user") as d:
                d.json_response(200, "The user", User)
                d.response(404, "No such user")
        """
        builder = OperationDocBuilder(**fields)
        yield builder
        self.attach(node, builder.build())

    def attach(self, node: RouteNode, doc: OperationDoc) -> OperationDoc:
        """Combine ``doc`` onto whatever ``node`` already carries."""
        with self._lock:
            existing = self._docs.get(node)
            merged = combine_docs(existing, doc) if existing is not None else doc
            self._docs[node] = merged
            return merged

    def get(self, node: RouteNode) -> OperationDoc | None:
        return self._docs.get(node)

    def resolve(self, node: RouteNode) -> OperationDoc | None:
        """Docs of every ancestor layered root-first, ending with ``node``'s own."""
        layered: OperationDoc | None = None
        for n in reversed(list(node.ancestors())):
            doc = self._docs.get(n)
            if doc is not None:
                layered = combine_docs(layered, doc) if layered is not None else doc
        return layered

    def set_module(self, node: RouteNode, name: str) -> RouteNode:
        """Name the module that owns ``node`` and everything below it."""
        with self._lock:
            self._modules[node] = name
        return node

    def module_for(self, node: RouteNode) -> str | None:
        for n in node.ancestors():
            name = self._modules.get(n)
            if name is not None:
                return name
        return None
