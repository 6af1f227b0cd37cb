"""Configuration for document generation, observation and the docs endpoints."""

import re
from enum import Enum
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, field_validator


class HierarchyMode(str, Enum):
    PATH_PREFIX = "path_prefix"
    MODULE_FILE = "module_file"
    NONE = "none"


HIERARCHY_ALIASES = {
    "module": HierarchyMode.MODULE_FILE,
    "file": HierarchyMode.MODULE_FILE,
    "routefile": HierarchyMode.MODULE_FILE,
    "module_file": HierarchyMode.MODULE_FILE,
    "none": HierarchyMode.NONE,
    "normal": HierarchyMode.NONE,
    "flat": HierarchyMode.NONE,
    "simple": HierarchyMode.NONE,
    "path": HierarchyMode.PATH_PREFIX,
    "prefix": HierarchyMode.PATH_PREFIX,
    "path_prefix": HierarchyMode.PATH_PREFIX,
}


KEY_ALIASES = {
    "open_api_path": "openapi_path",
    "assets_resource_folder": "assets_dir",
}


def ensure_slash(path: str) -> str:
    return path if path.startswith("/") else "/" + path


def preset_key(method: str, pattern: str) -> str:
    return f"{method.upper()} {ensure_slash(pattern)}"


class Config(BaseModel):
    """Everything the generator and the docs endpoints can be told."""

    model_config = ConfigDict(extra="forbid")

    openapi_path: str = "/openapi.json"
    swagger_ui_path: str = "/swagger"
    title: str = "API"
    version: str = "1.0.0"
    description: str | None = None

    assets_dir: Path | None = None  # defaults to the bundled assets

    # Security
    bearer_auth: bool = False
    api_key_header_name: str | None = None

    # Observation
    observe_responses: bool = True
    include_500_when_observed: bool = False

    hierarchy_mode: HierarchyMode = HierarchyMode.PATH_PREFIX

    # Rich info
    terms_of_service: str | None = None
    contact_name: str | None = None
    contact_url: str | None = None
    contact_email: str | None = None
    license_name: str | None = None
    license_url: str | None = None
    servers: list[str] = []

    tag_descriptions: dict[str, str] = {}
    preset_responses: dict[str, set[int]] = {}  # "METHOD /pattern" -> codes

    @field_validator("openapi_path", "swagger_ui_path")
    @classmethod
    def _leading_slash(cls, v: str) -> str:
        return ensure_slash(v)

    @field_validator("hierarchy_mode", mode="before")
    @classmethod
    def _hierarchy_alias(cls, v):
        if isinstance(v, str):
            return HIERARCHY_ALIASES.get(v.strip().lower(), HierarchyMode.PATH_PREFIX)
        return v

    def tag(self, name: str, description: str) -> None:
        self.tag_descriptions[name] = description

    def preset(self, method: str, pattern: str, *codes: int) -> None:
        self.preset_responses[preset_key(method, pattern)] = set(codes)

    def preset_for(self, method: str, pattern: str) -> set[int]:
        return self.preset_responses.get(preset_key(method, pattern), set())

    @classmethod
    def from_mapping(cls, data: dict) -> "Config":
        """Build a config from snake_case or camelCase keys.

        ``presets`` maps ``"METHOD /pattern"`` to a list of codes and ``tags``
        maps tag names to descriptions.
        """
        fields = {}
        for key, value in data.items():
            fields[_snake(key)] = value

        presets = fields.pop("presets", None) or {}
        tags = fields.pop("tags", None) or {}

        cfg = cls(**fields)
        for key, codes in presets.items():
            method, _, pattern = key.strip().partition(" ")
            cfg.preset(method, pattern.strip(), *[int(c) for c in codes])
        for name, description in tags.items():
            cfg.tag(name, description)
        return cfg

    @classmethod
    def from_yaml(cls, file_path: Path, section: str = "openapi") -> "Config":
        """Load a config from a YAML file, using ``section`` when present."""
        data = yaml.safe_load(file_path.read_text(encoding="utf-8")) or {}
        if isinstance(data.get(section), dict):
            data = data[section]
        return cls.from_mapping(data)


def _snake(key: str) -> str:
    key = re.sub(r"([a-z])([0-9])", r"\1_\2", key)
    key = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", key).lower()
    return KEY_ALIASES.get(key, key)
