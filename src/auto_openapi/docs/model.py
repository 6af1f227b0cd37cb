"""Operation documentation model.

An ``OperationDoc`` describes one operation. Docs are combined field by
field: the override wins where it says something, the base fills the gaps.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict

from auto_openapi.schema.infer import OSchema

JSON = "application/json"


class SchemaRef(BaseModel):
    """No schema, an inline schema, or a type resolved when the document is built."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    inline_schema: OSchema | None = None
    type_ref: Any = None

    @classmethod
    def none(cls) -> "SchemaRef":
        return cls()

    @classmethod
    def inline(cls, schema: OSchema) -> "SchemaRef":
        return cls(inline_schema=schema)

    @classmethod
    def of(cls, tp: Any) -> "SchemaRef":
        return cls(type_ref=tp)


class MediaTypeDoc(BaseModel):
    schema_ref: SchemaRef = SchemaRef()


class RequestBodyDoc(BaseModel):
    required: bool = True
    content: dict[str, MediaTypeDoc]


class ResponseDoc(BaseModel):
    status: int
    description: str
    content: dict[str, MediaTypeDoc] | None = None


class OperationDoc(BaseModel):
    summary: str | None = None
    description: str | None = None
    tags: frozenset[str] = frozenset()
    request_body: RequestBodyDoc | None = None
    responses: tuple[ResponseDoc, ...] = ()

    def response_codes(self) -> set[int]:
        return {r.status for r in self.responses}

    def response_for(self, status: int) -> ResponseDoc | None:
        for r in self.responses:
            if r.status == status:
                return r
        return None


def combine_docs(base: OperationDoc, override: OperationDoc) -> OperationDoc:
    """Merge ``override`` onto ``base``.

    Scalars take the override when set; tags and responses are replaced
    whole when the override has any, never concatenated.
    """
    return OperationDoc(
        summary=override.summary if override.summary is not None else base.summary,
        description=override.description if override.description is not None else base.description,
        tags=override.tags if override.tags else base.tags,
        request_body=override.request_body if override.request_body is not None else base.request_body,
        responses=override.responses if override.responses else base.responses,
    )


class OperationDocBuilder:
    """Incrementally collects one documentation fragment."""

    def __init__(
        self,
        summary: str | None = None,
        description: str | None = None,
        tags: set[str] | None = None,
    ):
        self.summary = summary
        self.description = description
        self.tags: set[str] = set(tags or ())
        self._request_body: RequestBodyDoc | None = None
        self._responses: list[ResponseDoc] = []

    def request_body(
        self,
        content_type: str = JSON,
        required: bool = True,
        schema: SchemaRef | None = None,
    ) -> "OperationDocBuilder":
        self._request_body = RequestBodyDoc(
            required=required,
            content={content_type: MediaTypeDoc(schema_ref=schema or SchemaRef.none())},
        )
        return self

    def request_body_json(self, tp: Any, required: bool = True) -> "OperationDocBuilder":
        return self.request_body(JSON, required, SchemaRef.of(tp))

    def response(
        self,
        status: int,
        description: str,
        content_type: str | None = None,
        schema: SchemaRef | None = None,
    ) -> "OperationDocBuilder":
        content = None
        if content_type is not None:
            content = {content_type: MediaTypeDoc(schema_ref=schema or SchemaRef.none())}
        self._responses.append(ResponseDoc(status=status, description=description, content=content))
        return self

    def json_response(self, status: int, description: str, tp: Any) -> "OperationDocBuilder":
        return self.response(status, description, JSON, SchemaRef.of(tp))

    def build(self) -> OperationDoc:
        return OperationDoc(
            summary=self.summary,
            description=self.description,
            tags=frozenset(self.tags),
            request_body=self._request_body,
            responses=tuple(self._responses),
        )
