"""AutoDoc — wires a route tree to document generation and live observation."""

from typing import Callable

from auto_openapi.config import Config
from auto_openapi.docs.registry import DocRegistry
from auto_openapi.generator.openapi import OpenApiGenerator
from auto_openapi.observe.codes import EffectiveCodesResolver
from auto_openapi.observe.store import ObservationStore
from auto_openapi.routing.index import RouteIndex
from auto_openapi.routing.tree import RouteNode
from auto_openapi.server.wsgi import DocsApp, ObservationMiddleware


class AutoDoc:
    """Shared state for one application.

    The route index and observation store are created once here and handed
    by reference to the WSGI observer and to every generation call.
    """

    def __init__(
        self,
        tree: RouteNode | None,
        config: Config | None = None,
        docs: DocRegistry | None = None,
        store: ObservationStore | None = None,
    ):
        self.config = config if config is not None else Config()
        self.tree = tree
        self.docs = docs if docs is not None else DocRegistry()
        self.store = store if store is not None else ObservationStore()
        self.index = RouteIndex(tree, self.config)
        self.codes = EffectiveCodesResolver(self.config, self.store, self.docs)

    @property
    def openapi_path(self) -> str:
        return self.config.openapi_path

    def generator(self) -> OpenApiGenerator:
        """A generator with its own, empty schema registry."""
        return OpenApiGenerator(self.index, self.config, self.docs, self.store)

    def generate(self) -> dict:
        return self.generator().generate()

    def to_json(self, indent: int | None = 2) -> str:
        return self.generator().to_json(indent=indent)

    def to_yaml(self) -> str:
        return self.generator().to_yaml()

    def pattern_for(self, raw_path: str) -> str:
        return self.index.match_pattern(raw_path) or raw_path

    def record(self, method: str, raw_path: str, status: int) -> str:
        """Record a finished request; returns the pattern it was filed under.

        A path no route matches is filed under the raw path itself, so every
        distinct unmatched URL adds a key that stays for the process lifetime.
        """
        pattern = self.pattern_for(raw_path)
        self.store.record(method.upper(), pattern, status)
        return pattern

    def effective_codes(self, method: str, pattern: str) -> set[int]:
        method = method.upper()
        return self.codes.resolve(method, pattern, self.index.route_for(method, pattern))

    def wsgi(self, app: Callable | None = None) -> Callable:
        """Wrap ``app`` with the docs endpoints and, if enabled, response observation."""
        if app is not None and self.config.observe_responses:
            app = ObservationMiddleware(app, self)
        return DocsApp(self, app)
