import json
from dataclasses import dataclass
from typing import Optional

import yaml

from auto_openapi.config import Config
from auto_openapi.plugin import AutoDoc
from auto_openapi.routing.tree import RouteTree


@dataclass
class User:
    id: int
    name: str
    email: Optional[str]


@dataclass
class CreateUser:
    name: str


@dataclass
class Error:
    reason: str
    retry_after: int


class Broken:
    @classmethod
    def __openapi_fields__(cls):
        raise RuntimeError("cannot describe")


def get_user():
    pass


def _users_app(**cfg) -> AutoDoc:
    tree = RouteTree()
    tree.get("/users/{id}", get_user)
    return AutoDoc(tree, Config(**cfg))


class TestInferredOperation:
    def test_get_by_id_defaults(self):
        doc = _users_app().generate()
        op = doc["paths"]["/users/{id}"]["get"]

        assert op["operationId"] == "getUsersById"
        assert op["summary"] == "Get users by id"
        assert op["description"] == "Get users by id endpoint."
        assert op["tags"] == ["users"]
        assert set(op["responses"]) == {"200", "400", "500"}
        assert op["responses"]["400"] == {"description": "Bad Request"}
        assert op["parameters"] == [
            {"name": "id", "in": "path", "required": True, "schema": {"type": "string"}},
        ]
        assert "requestBody" not in op

    def test_post_gets_generic_body(self):
        tree = RouteTree()
        tree.post("/users")
        op = AutoDoc(tree).generate()["paths"]["/users"]["post"]

        assert op["requestBody"] == {
            "required": True,
            "content": {"application/json": {"schema": {"type": "object"}}},
        }
        assert set(op["responses"]) == {"201", "500"}

    def test_required_query_and_header_parameters(self):
        tree = RouteTree()
        tree.route("/search").param("q").header("X-Tenant").get()
        op = AutoDoc(tree).generate()["paths"]["/search"]["get"]

        assert {p["in"]: p["name"] for p in op["parameters"]} == {"query": "q", "header": "X-Tenant"}
        assert "400" in op["responses"]


class TestObservedResponses:
    def test_observation_supersedes_inferred_codes(self):
        autodoc = _users_app(include_500_when_observed=True)
        autodoc.generate()

        pattern = autodoc.record("GET", "/users/42", 404)
        assert pattern == "/users/{id}"

        op = autodoc.generate()["paths"]["/users/{id}"]["get"]
        assert set(op["responses"]) == {"404", "500"}
        assert op["responses"]["404"] == {"description": "Not Found"}

    def test_preset_pins_codes(self):
        autodoc = _users_app()
        autodoc.config.preset("GET", "/users/{id}", 200, 404)
        autodoc.record("GET", "/users/1", 503)

        op = autodoc.generate()["paths"]["/users/{id}"]["get"]
        assert set(op["responses"]) == {"200", "404"}


class TestDeclaredDocs:
    def test_declared_schemas_become_components(self):
        tree = RouteTree()
        node = tree.post("/users")
        autodoc = AutoDoc(tree)
        with autodoc.docs.doc(node, summary="Register a user") as d:
            d.request_body_json(CreateUser)
            d.json_response(201, "The new user", User)

        doc = autodoc.generate()
        op = doc["paths"]["/users"]["post"]

        assert op["summary"] == "Register a user"
        assert op["description"] == "Create users endpoint."
        assert op["requestBody"]["content"]["application/json"]["schema"] == {
            "$ref": "#/components/schemas/CreateUser"
        }
        assert op["responses"] == {
            "201": {
                "description": "The new user",
                "content": {"application/json": {"schema": {"$ref": "#/components/schemas/User"}}},
            }
        }
        schemas = doc["components"]["schemas"]
        assert set(schemas) == {"Error", "CreateUser", "User"}
        assert schemas["User"]["required"] == ["id", "name"]

    def test_user_error_type_replaces_builtin_error_schema(self):
        tree = RouteTree()
        node = tree.post("/orders")
        autodoc = AutoDoc(tree)
        with autodoc.docs.doc(node) as d:
            d.json_response(409, "Conflict", Error)

        error = autodoc.generate()["components"]["schemas"]["Error"]
        assert set(error["properties"]) == {"reason", "retry_after"}
        assert error["required"] == ["reason", "retry_after"]

    def test_doc_tags_are_replaced_by_hierarchy_tag(self):
        tree = RouteTree()
        node = tree.get("/users")
        autodoc = AutoDoc(tree)
        with autodoc.docs.doc(node, tags={"people", "accounts"}):
            pass
        op = autodoc.generate()["paths"]["/users"]["get"]
        assert op["tags"] == ["users"]

    def test_failing_operation_does_not_break_document(self):
        tree = RouteTree()
        bad = tree.get("/broken")
        tree.get("/fine")
        autodoc = AutoDoc(tree)
        with autodoc.docs.doc(bad) as d:
            d.json_response(200, "Never", Broken)

        paths = autodoc.generate()["paths"]
        assert paths["/broken"]["get"] == {"responses": {"500": {"description": "Generation error"}}}
        assert paths["/fine"]["get"]["operationId"] == "getFine"

    def test_registry_is_fresh_per_generation(self):
        tree = RouteTree()
        node = tree.get("/users")
        autodoc = AutoDoc(tree)
        with autodoc.docs.doc(node) as d:
            d.json_response(200, "Users", list[User])

        first = autodoc.generate()
        second = autodoc.generate()
        assert first == second
        assert first["paths"]["/users"]["get"]["responses"]["200"]["content"] == {
            "application/json": {
                "schema": {"type": "array", "items": {"$ref": "#/components/schemas/User"}}
            }
        }


class TestDocumentShape:
    def test_empty_document_without_routes(self):
        doc = AutoDoc(None, Config(title="Empty", version="0.1")).generate()

        assert doc["openapi"] == "3.0.3"
        assert doc["info"] == {"title": "Empty", "version": "0.1"}
        assert doc["paths"] == {}
        assert "tags" not in doc
        assert set(doc["components"]) == {"schemas", "responses", "parameters"}
        assert doc["components"]["schemas"]["Error"]["required"] == ["message"]

    def test_rich_info_and_servers(self):
        cfg = Config(
            title="Shop",
            description="Shop API",
            terms_of_service="https://example.com/tos",
            contact_name="Ops",
            contact_email="ops@example.com",
            license_name="MIT",
            servers=["https://api.example.com"],
        )
        doc = AutoDoc(RouteTree(), cfg).generate()

        assert doc["info"]["contact"] == {"name": "Ops", "email": "ops@example.com"}
        assert doc["info"]["license"] == {"name": "MIT"}
        assert doc["info"]["termsOfService"] == "https://example.com/tos"
        assert doc["servers"] == [{"url": "https://api.example.com"}]

    def test_security_schemes(self):
        doc = _users_app(bearer_auth=True, api_key_header_name="X-Api-Key").generate()

        assert doc["components"]["securitySchemes"] == {
            "bearerAuth": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"},
            "apiKeyAuth": {"type": "apiKey", "in": "header", "name": "X-Api-Key"},
        }
        assert doc["paths"]["/users/{id}"]["get"]["security"] == [{"bearerAuth": []}, {"apiKeyAuth": []}]

    def test_tags_and_groups(self):
        tree = RouteTree()
        tree.get("/api/users")
        tree.get("/api/orders/{id}")
        tree.get("/health")
        doc = AutoDoc(tree).generate()

        assert [t["name"] for t in doc["tags"]] == ["api/orders", "api/users", "health"]
        assert doc["x-tagGroups"][0] == {"name": "api", "tags": ["api/orders", "api/users"]}

    def test_docs_endpoints_are_not_documented(self):
        tree = RouteTree()
        tree.get("/openapi.json")
        tree.get("/swagger/ui.js")
        tree.get("/users")
        assert list(AutoDoc(tree).generate()["paths"]) == ["/users"]

    def test_json_and_yaml_serialisation(self):
        autodoc = _users_app()
        expected = autodoc.generate()
        assert json.loads(autodoc.to_json()) == expected
        assert yaml.safe_load(autodoc.to_yaml()) == expected

    def test_failed_operation_leaves_no_partial_components(self):
        tree = RouteTree()
        bad = tree.get("/broken")
        autodoc = AutoDoc(tree)
        with autodoc.docs.doc(bad) as d:
            d.json_response(200, "Never", Broken)

        assert set(autodoc.generate()["components"]["schemas"]) == {"Error"}
