import datetime
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from auto_openapi.schema.infer import Int32, OSchema, describe_fields, resolve


class Color(Enum):
    RED = "r"
    GREEN = "g"


@dataclass
class Sample:
    f1: str
    f2: Optional[int]


@dataclass
class TreeNode:
    name: str
    children: list["TreeNode"]


class Account(BaseModel):
    email: str
    nickname: str | None = None
    tags: list[str] = []


class Described:
    @classmethod
    def __openapi_fields__(cls):
        return {"id": Int32, "created": datetime.datetime}


class TestPrimitives:
    def test_primitive_map(self):
        registry = {}
        assert resolve(str, registry).to_dict() == {"type": "string"}
        assert resolve(int, registry).to_dict() == {"type": "integer", "format": "int64"}
        assert resolve(Int32, registry).to_dict() == {"type": "integer", "format": "int32"}
        assert resolve(float, registry).to_dict() == {"type": "number", "format": "double"}
        assert resolve(bool, registry).to_dict() == {"type": "boolean"}
        assert resolve(datetime.date, registry).to_dict() == {"type": "string", "format": "date"}
        assert resolve(datetime.datetime, registry).to_dict() == {"type": "string", "format": "date-time"}
        assert registry == {}

    def test_optional_sets_nullable_flag(self):
        schema = resolve(Optional[str], {})
        assert schema.to_dict() == {"type": "string", "nullable": True}


class TestContainers:
    def test_enum(self):
        assert resolve(Color, {}).to_dict() == {"type": "string", "enum": ["RED", "GREEN"]}

    def test_nullable_enum(self):
        assert resolve(Color | None, {}).nullable is True

    def test_list(self):
        assert resolve(list[int], {}).to_dict() == {
            "type": "array",
            "items": {"type": "integer", "format": "int64"},
        }

    def test_bare_list_defaults_to_strings(self):
        assert resolve(list, {}).to_dict() == {"type": "array", "items": {"type": "string"}}

    def test_mapping(self):
        assert resolve(dict[str, bool], {}).to_dict() == {
            "type": "object",
            "additionalProperties": {"type": "boolean"},
        }


class TestRecords:
    def test_record_with_nullable_field(self):
        registry: dict[str, OSchema] = {}
        ref = resolve(Sample, registry)

        assert ref.to_dict() == {"$ref": "#/components/schemas/Sample"}
        assert registry["Sample"].to_dict() == {
            "type": "object",
            "properties": {
                "f1": {"type": "string"},
                "f2": {"type": "integer", "format": "int64", "nullable": True},
            },
            "required": ["f1"],
        }

    def test_second_resolution_reuses_component(self):
        registry: dict[str, OSchema] = {}
        first = resolve(Sample, registry)
        registry["Sample"] = registry["Sample"].model_copy(update={"format": "marker"})
        second = resolve(Sample, registry)

        assert first == second
        assert list(registry) == ["Sample"]
        assert registry["Sample"].format == "marker"

    def test_self_referential_record(self):
        registry: dict[str, OSchema] = {}
        resolve(TreeNode, registry)
        children = registry["TreeNode"].to_dict()["properties"]["children"]
        assert children == {"type": "array", "items": {"$ref": "#/components/schemas/TreeNode"}}

    def test_pydantic_model(self):
        registry: dict[str, OSchema] = {}
        resolve(Account, registry)
        schema = registry["Account"].to_dict()
        assert schema["required"] == ["email", "tags"]
        assert schema["properties"]["nickname"] == {"type": "string", "nullable": True}

    def test_self_described_type(self):
        registry: dict[str, OSchema] = {}
        resolve(Described, registry)
        assert registry["Described"].to_dict()["properties"] == {
            "id": {"type": "integer", "format": "int32"},
            "created": {"type": "string", "format": "date-time"},
        }

    def test_short_name_collision_keeps_first(self):
        first = type("Item", (), {"__annotations__": {"a": str}})
        second = type("Item", (), {"__annotations__": {"b": int}})
        registry: dict[str, OSchema] = {}
        resolve(first, registry)
        resolve(second, registry)
        assert list(registry["Item"].properties) == ["a"]

    def test_nested_record_registered_once(self):
        @dataclass
        class Pair:
            left: Sample
            right: Sample

        registry: dict[str, OSchema] = {}
        resolve(Pair, registry)
        assert set(registry) == {"Pair", "Sample"}


class TestDescribeFields:
    def test_dataclass_fields(self):
        assert describe_fields(Sample) == {"f1": str, "f2": Optional[int]}

    def test_non_type_has_no_fields(self):
        assert describe_fields(42) == {}
