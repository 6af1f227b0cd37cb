"""Effective response codes: which status codes get published for an operation."""

from auto_openapi.config import Config
from auto_openapi.docs.registry import DocRegistry
from auto_openapi.observe.store import ObservationStore
from auto_openapi.routing.tree import RouteNode, has_required_query_or_header, path_parameters


def success_code(method: str) -> int:
    method = method.upper()
    if method == "POST":
        return 201
    if method == "DELETE":
        return 204
    return 200


def default_codes(method: str, requires_input: bool) -> set[int]:
    codes = {success_code(method), 500}
    if requires_input:
        codes.add(400)
    return codes


def effective_codes(
    method: str,
    *,
    preset: set[int] | frozenset[int] = frozenset(),
    observed: set[int] | frozenset[int] = frozenset(),
    declared: set[int] | frozenset[int] = frozenset(),
    requires_input: bool = False,
    include_500: bool = False,
) -> set[int]:
    """First non-empty source wins: preset, observed, declared, inferred default.

    Tiers are never merged; observed codes replace declared ones unless a
    preset pins the answer.
    """
    if preset:
        return set(preset) | ({500} if include_500 else set())
    if observed:
        return set(observed) | ({500} if include_500 else set())
    if declared:
        return set(declared)
    return default_codes(method, requires_input)


def requires_input(node: RouteNode | None, pattern: str) -> bool:
    """Whether the route needs a path parameter, query parameter or header."""
    if node is None:
        return "{" in pattern
    return bool(path_parameters(node)) or has_required_query_or_header(node)


class EffectiveCodesResolver:
    def __init__(self, cfg: Config, store: ObservationStore, docs: DocRegistry):
        self.cfg = cfg
        self.store = store
        self.docs = docs

    def resolve(self, method: str, pattern: str, node: RouteNode | None) -> set[int]:
        declared: set[int] = set()
        if node is not None:
            doc = self.docs.resolve(node)
            if doc is not None:
                declared = doc.response_codes()
        observed = self.store.get(method, pattern) if self.cfg.observe_responses else frozenset()
        return effective_codes(
            method,
            preset=self.cfg.preset_for(method, pattern),
            observed=observed,
            declared=declared,
            requires_input=requires_input(node, pattern),
            include_500=self.cfg.include_500_when_observed,
        )
