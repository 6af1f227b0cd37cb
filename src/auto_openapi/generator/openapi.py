"""OpenAPI document generator.

Every call builds a fresh document from the current route index, declared
docs and observed response codes. The schema component registry lives for a
single call only.
"""

import copy
import json
import logging

import yaml

from auto_openapi.config import Config
from auto_openapi.docs.model import (
    JSON,
    MediaTypeDoc,
    OperationDoc,
    RequestBodyDoc,
    ResponseDoc,
    SchemaRef,
    combine_docs,
)
from auto_openapi.docs.registry import DocRegistry
from auto_openapi.generator.naming import infer_summary, operation_id, status_text
from auto_openapi.generator.tags import build_tags_and_groups, tag_for
from auto_openapi.observe.codes import EffectiveCodesResolver, requires_input, success_code
from auto_openapi.observe.store import ObservationStore
from auto_openapi.routing.index import Operation, RouteIndex
from auto_openapi.routing.tree import (
    RouteNode,
    path_parameters,
    required_headers,
    required_query_parameters,
)
from auto_openapi.schema.infer import OSchema, resolve

logger = logging.getLogger(__name__)

OPENAPI_VERSION = "3.0.3"
BODY_METHODS = ("POST", "PUT", "PATCH")
SHARED_ERROR_RESPONSES = (400, 401, 403, 404, 409, 422, 500)
GENERATION_ERROR = {"responses": {"500": {"description": "Generation error"}}}

ERROR_SCHEMA = OSchema(
    type="object",
    properties={
        "message": OSchema(type="string"),
        "code": OSchema(type="string"),
        "details": OSchema(type="object", additional_properties=OSchema(type="string")),
    },
    required=["message"],
)


class OpenApiGenerator:
    """Builds one OpenAPI document per ``generate()`` call."""

    def __init__(
        self,
        index: RouteIndex,
        cfg: Config,
        docs: DocRegistry | None = None,
        store: ObservationStore | None = None,
    ):
        self.index = index
        self.cfg = cfg
        self.docs = docs if docs is not None else DocRegistry()
        self.store = store if store is not None else ObservationStore()
        self.codes = EffectiveCodesResolver(cfg, self.store, self.docs)
        self.components: dict[str, OSchema] = {}

    def generate(self) -> dict:
        self.components = {}
        if self.index.tree is None:
            return self._document(paths={}, tags=set())

        grouped: dict[str, list[Operation]] = {}
        for op in self.index.operations():
            grouped.setdefault(op.pattern, []).append(op)

        tags: set[str] = set()
        paths: dict[str, dict] = {}
        for pattern, ops in grouped.items():
            item: dict[str, dict] = {}
            for op in ops:
                tag = tag_for(op.node, pattern, self.cfg, self.docs)
                tags.add(tag)
                known = dict(self.components)
                try:
                    item[op.method.lower()] = self._operation(op.method, pattern, op.node, tag)
                except Exception:
                    logger.exception("Could not document %s %s", op.method, pattern)
                    self.components = known
                    item[op.method.lower()] = copy.deepcopy(GENERATION_ERROR)
            paths[pattern] = item

        return self._document(paths=paths, tags=tags)

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.generate(), indent=indent)

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.generate(), sort_keys=False, allow_unicode=True)

    # -- document sections ----------------------------------------------------

    def _document(self, paths: dict, tags: set[str]) -> dict:
        doc: dict = {"openapi": OPENAPI_VERSION, "info": self._info()}
        if self.cfg.servers:
            doc["servers"] = [{"url": url} for url in self.cfg.servers]

        tag_list, tag_groups = build_tags_and_groups(tags, self.cfg)
        if tag_list is not None:
            doc["tags"] = tag_list
        if tag_groups is not None:
            doc["x-tagGroups"] = tag_groups

        # A user record named "Error" keeps its own shape.
        self.components.setdefault("Error", ERROR_SCHEMA)
        components: dict = {}
        security_schemes = self._security_schemes()
        if security_schemes:
            components["securitySchemes"] = security_schemes
        components["schemas"] = {name: s.to_dict() for name, s in self.components.items()}
        components["responses"] = self._shared_responses()
        components["parameters"] = self._shared_parameters()
        doc["components"] = components

        doc["paths"] = paths
        return doc

    def _info(self) -> dict:
        cfg = self.cfg
        info: dict = {"title": cfg.title, "version": cfg.version}
        if cfg.description is not None:
            info["description"] = cfg.description
        if cfg.terms_of_service is not None:
            info["termsOfService"] = cfg.terms_of_service
        contact = {
            key: value
            for key, value in (("name", cfg.contact_name), ("url", cfg.contact_url), ("email", cfg.contact_email))
            if value is not None
        }
        if contact:
            info["contact"] = contact
        if cfg.license_name is not None:
            info["license"] = {"name": cfg.license_name}
            if cfg.license_url is not None:
                info["license"]["url"] = cfg.license_url
        return info

    def _security_schemes(self) -> dict:
        schemes = {}
        if self.cfg.bearer_auth:
            schemes["bearerAuth"] = {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}
        if self.cfg.api_key_header_name:
            schemes["apiKeyAuth"] = {"type": "apiKey", "in": "header", "name": self.cfg.api_key_header_name}
        return schemes

    def _default_security(self) -> list[dict] | None:
        entries = [{name: []} for name in self._security_schemes()]
        return entries or None

    def _shared_responses(self) -> dict:
        error_body = {JSON: {"schema": {"$ref": "#/components/schemas/Error"}}}
        return {
            str(code): {"description": status_text(code), "content": error_body}
            for code in SHARED_ERROR_RESPONSES
        }

    def _shared_parameters(self) -> dict:
        return {
            "Page": {
                "name": "page",
                "in": "query",
                "required": False,
                "schema": {"type": "integer", "minimum": 1},
                "description": "Page number (1-based)",
            },
            "Size": {
                "name": "size",
                "in": "query",
                "required": False,
                "schema": {"type": "integer", "minimum": 1, "maximum": 200},
                "description": "Page size",
            },
        }

    # -- operations -----------------------------------------------------------

    def infer_defaults(self, method: str, pattern: str, node: RouteNode) -> OperationDoc:
        """Documentation derived from the route shape alone."""
        success = success_code(method)
        responses = [ResponseDoc(status=success, description=status_text(success))]
        if requires_input(node, pattern):
            responses.append(ResponseDoc(status=400, description=status_text(400)))
        responses.append(ResponseDoc(status=500, description=status_text(500)))

        body = None
        if method in BODY_METHODS:
            body = RequestBodyDoc(required=True, content={JSON: MediaTypeDoc()})

        summary = infer_summary(method, pattern)
        return OperationDoc(
            summary=summary,
            description=f"{summary} endpoint.",
            request_body=body,
            responses=tuple(responses),
        )

    def _operation(self, method: str, pattern: str, node: RouteNode, tag: str) -> dict:
        method = method.upper()
        declared = self.docs.resolve(node) or OperationDoc()
        doc = combine_docs(self.infer_defaults(method, pattern, node), declared)
        doc = doc.model_copy(update={"tags": frozenset({tag})})

        op: dict = {"operationId": operation_id(method, pattern)}
        if doc.summary is not None:
            op["summary"] = doc.summary
        if doc.description is not None:
            op["description"] = doc.description
        op["tags"] = sorted(doc.tags)

        params = self._parameters(node)
        if params:
            op["parameters"] = params
        if doc.request_body is not None:
            op["requestBody"] = {
                "required": doc.request_body.required,
                "content": self._content(doc.request_body.content),
            }
        security = self._default_security()
        if security:
            op["security"] = security
        op["responses"] = self._responses(method, pattern, node, doc)
        return op

    def _parameters(self, node: RouteNode) -> list[dict]:
        params = [
            {"name": name, "in": "path", "required": True, "schema": {"type": "string"}}
            for name in path_parameters(node)
        ]
        params += [
            {"name": name, "in": "query", "required": True, "schema": {"type": "string"}}
            for name in required_query_parameters(node)
        ]
        params += [
            {"name": name, "in": "header", "required": True, "schema": {"type": "string"}}
            for name in required_headers(node)
        ]
        return params

    def _responses(self, method: str, pattern: str, node: RouteNode, doc: OperationDoc) -> dict:
        responses = {}
        for code in sorted(self.codes.resolve(method, pattern, node)):
            declared = doc.response_for(code)
            if declared is None:
                responses[str(code)] = {"description": status_text(code)}
                continue
            entry: dict = {"description": declared.description}
            if declared.content:
                entry["content"] = self._content(declared.content)
            responses[str(code)] = entry
        return responses

    def _content(self, content: dict[str, MediaTypeDoc]) -> dict:
        return {ct: {"schema": self.schema_json(mt.schema_ref)} for ct, mt in content.items()}

    def schema_json(self, ref: SchemaRef) -> dict:
        if ref.inline_schema is not None:
            return ref.inline_schema.to_dict()
        if ref.type_ref is not None:
            return resolve(ref.type_ref, self.components).to_dict()
        return {"type": "object"}
