"""Schema inference — maps Python types to OpenAPI schema nodes.

Named record types are registered once in a component registry keyed by
their short type name; later encounters get a ``$ref`` to that entry.
"""

import collections.abc
import dataclasses
import datetime
import decimal
import enum
import types
import typing
import uuid
from typing import Any, NewType, Union, get_args, get_origin, get_type_hints

from pydantic import BaseModel, ConfigDict, Field

Int32 = NewType("Int32", int)
Int64 = NewType("Int64", int)
Float32 = NewType("Float32", float)

PRIMITIVES: dict[Any, tuple[str, str | None]] = {
    str: ("string", None),
    int: ("integer", "int64"),
    Int32: ("integer", "int32"),
    Int64: ("integer", "int64"),
    float: ("number", "double"),
    Float32: ("number", "float"),
    decimal.Decimal: ("number", None),
    bool: ("boolean", None),
    datetime.date: ("string", "date"),
    datetime.datetime: ("string", "date-time"),
    uuid.UUID: ("string", "uuid"),
    bytes: ("string", "byte"),
}

SEQUENCE_ORIGINS = (
    list, set, frozenset, tuple,
    collections.abc.Sequence, collections.abc.Set, collections.abc.Iterable,
)
MAPPING_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)

COMPONENT_REF_PREFIX = "#/components/schemas/"


class OSchema(BaseModel):
    """One OpenAPI schema node."""

    model_config = ConfigDict(populate_by_name=True)

    type: str | None = None
    format: str | None = None
    nullable: bool | None = None
    properties: dict[str, "OSchema"] | None = None
    required: list[str] | None = None
    items: "OSchema | None" = None
    additional_properties: "OSchema | None" = Field(default=None, alias="additionalProperties")
    enum: list[str] | None = None
    ref: str | None = Field(default=None, alias="$ref")

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


def resolve(tp: Any, registry: dict[str, OSchema]) -> OSchema:
    """Return the schema for ``tp``, registering named records in ``registry``."""
    tp, nullable = _unwrap_optional(tp)
    flag = True if nullable else None

    if get_origin(tp) is typing.Annotated:
        return _with_nullable(resolve(get_args(tp)[0], registry), nullable)

    if tp in PRIMITIVES:
        type_name, fmt = PRIMITIVES[tp]
        return OSchema(type=type_name, format=fmt, nullable=flag)

    if tp is Any or tp is object:
        return OSchema(type="object", nullable=flag)

    if isinstance(tp, type) and issubclass(tp, enum.Enum):
        return OSchema(type="string", enum=[member.name for member in tp], nullable=flag)

    origin = get_origin(tp) or tp
    args = get_args(tp)

    if origin in SEQUENCE_ORIGINS:
        element = args[0] if args else str
        return OSchema(type="array", items=resolve(element, registry), nullable=flag)

    if origin in MAPPING_ORIGINS:
        value = args[1] if len(args) > 1 else str
        return OSchema(type="object", additional_properties=resolve(value, registry), nullable=flag)

    name = getattr(origin, "__name__", None) or "AnonymousType"
    if name not in registry:
        # Placeholder first so self-referential records resolve to a $ref.
        registry[name] = OSchema(type="object")
        properties: dict[str, OSchema] = {}
        required: list[str] = []
        for field_name, field_type in describe_fields(origin).items():
            properties[field_name] = resolve(field_type, registry)
            if not is_nullable(field_type):
                required.append(field_name)
        registry[name] = OSchema(type="object", properties=properties, required=required or None)
    return OSchema(ref=COMPONENT_REF_PREFIX + name, nullable=flag)


def describe_fields(tp: Any) -> dict[str, Any]:
    """Field name -> declared type for a record type.

    A type may describe itself with an ``__openapi_fields__`` classmethod;
    otherwise pydantic models, dataclasses and annotated classes are read
    through their declared fields.
    """
    describer = getattr(tp, "__openapi_fields__", None)
    if describer is not None:
        return dict(describer())

    if isinstance(tp, type) and issubclass(tp, BaseModel):
        return {name: info.annotation for name, info in tp.model_fields.items()}

    if not isinstance(tp, type):
        return {}

    hints = get_type_hints(tp)
    if dataclasses.is_dataclass(tp):
        return {f.name: hints.get(f.name, f.type) for f in dataclasses.fields(tp)}

    return {
        name: hint
        for name, hint in hints.items()
        if not name.startswith("_") and get_origin(hint) is not typing.ClassVar
    }


def is_nullable(tp: Any) -> bool:
    return _unwrap_optional(tp)[1]


def _unwrap_optional(tp: Any) -> tuple[Any, bool]:
    if get_origin(tp) in (Union, types.UnionType):
        args = get_args(tp)
        non_none = [a for a in args if a is not type(None)]
        nullable = len(non_none) < len(args)
        if len(non_none) == 1:
            return non_none[0], nullable
        return Any, nullable
    return tp, False


def _with_nullable(schema: OSchema, nullable: bool) -> OSchema:
    if nullable:
        return schema.model_copy(update={"nullable": True})
    return schema
