# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Typed model of the capability configuration document.

The document is the wire contract between the control plane and the server::

    {
      "tools": [
        {"name": "echo", "description": "...", "inputSchema": {...},
         "handler": "https://handlers.example.com/echo"}
      ],
      "resources": [
        {"uri": "docs://readme", "name": "readme", "mimeType": "text/markdown",
         "handler": "https://handlers.example.com/readme"}
      ],
      "prompts": [
        {"name": "greet", "description": "...",
         "arguments": [{"name": "who", "required": true}],
         "handler": "https://handlers.example.com/greet"}
      ]
    }

The schema is additive-only: unknown fields are ignored. Every section is
optional. A handler is either an absolute http(s) URL or, for configurations
built in Python, a callable invoked in-process.

Configs are immutable values. Two configs are equal when their fields are
deeply equal, including the order of every sequence.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Union

from pydantic import AnyUrl, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator, model_validator

from .exceptions import ConfigUnavailableError

HandlerRef = Union[str, Callable[..., Any]]
"""Remote endpoint URL or in-process function."""

_URI_ADAPTER = TypeAdapter(AnyUrl)


class _Descriptor(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class _HandledDescriptor(_Descriptor):
    handler: HandlerRef

    @field_validator("handler")
    @classmethod
    def _check_handler(cls, v: HandlerRef) -> HandlerRef:
        if isinstance(v, str) and not v.startswith(("http://", "https://")):
            raise ValueError("handler must be an absolute http(s) URL")
        return v


class ToolDescriptor(_HandledDescriptor):
    """A tool and the handler that executes it."""

    name: str = Field(..., min_length=1)
    description: str = ""
    input_schema: dict[str, Any] = Field(default_factory=lambda: {"type": "object"}, alias="inputSchema")

    @field_validator("description", mode="before")
    @classmethod
    def _null_description(cls, v: Any) -> Any:
        return "" if v is None else v


class ResourceDescriptor(_HandledDescriptor):
    """A readable resource. Its handler takes no arguments."""

    uri: str = Field(..., min_length=1)
    name: str
    description: str | None = None
    mime_type: str | None = Field(default=None, alias="mimeType")

    @field_validator("uri")
    @classmethod
    def _check_uri(cls, v: str) -> str:
        try:
            _URI_ADAPTER.validate_python(v)
        except ValidationError:
            raise ValueError(f"uri {v!r} is not an absolute URI") from None
        return v


class PromptArgumentDescriptor(_Descriptor):
    name: str = Field(..., min_length=1)
    description: str | None = None
    required: bool | None = None


class PromptDescriptor(_HandledDescriptor):
    """A prompt template rendered by its handler."""

    name: str = Field(..., min_length=1)
    description: str = ""
    arguments: list[PromptArgumentDescriptor] | None = None

    @field_validator("description", mode="before")
    @classmethod
    def _null_description(cls, v: Any) -> Any:
        return "" if v is None else v


def _first_duplicate(keys: list[str]) -> str | None:
    seen: set[str] = set()
    for key in keys:
        if key in seen:
            return key
        seen.add(key)
    return None


class CapabilityConfig(_Descriptor):
    """The set of tools, resources and prompts served at one point in time."""

    tools: list[ToolDescriptor] = Field(default_factory=list)
    resources: list[ResourceDescriptor] = Field(default_factory=list)
    prompts: list[PromptDescriptor] = Field(default_factory=list)

    @field_validator("tools", "resources", "prompts", mode="before")
    @classmethod
    def _null_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @model_validator(mode="after")
    def _reject_duplicates(self) -> CapabilityConfig:
        for section, keys in (
            ("tools", [t.name for t in self.tools]),
            ("resources", [r.uri for r in self.resources]),
            ("prompts", [p.name for p in self.prompts]),
        ):
            duplicate = _first_duplicate(keys)
            if duplicate is not None:
                raise ValueError(f"duplicate entry {duplicate!r} in {section}")
        return self

    @classmethod
    def from_document(cls, document: Any) -> CapabilityConfig:
        """Validate a parsed document, raising ConfigUnavailableError if malformed."""
        if isinstance(document, CapabilityConfig):
            return document
        if not isinstance(document, Mapping):
            raise ConfigUnavailableError(
                f"Control plane error: expected a JSON object, got {type(document).__name__}"
            )
        try:
            return cls.model_validate(dict(document))
        except ValidationError as exc:
            raise ConfigUnavailableError(f"Control plane error: invalid configuration: {_describe(exc)}") from exc

    def tool(self, name: str) -> ToolDescriptor | None:
        return next((t for t in self.tools if t.name == name), None)

    def resource(self, uri: str) -> ResourceDescriptor | None:
        match = next((r for r in self.resources if r.uri == uri), None)
        if match is not None:
            return match
        # Clients echo the uri back through AnyUrl, which may normalize it.
        wanted = _normalize_uri(uri)
        return next((r for r in self.resources if _normalize_uri(r.uri) == wanted), None)

    def prompt(self, name: str) -> PromptDescriptor | None:
        return next((p for p in self.prompts if p.name == name), None)


def _describe(exc: ValidationError) -> str:
    # str(exc) truncates long input values; the messages themselves are kept whole.
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        parts.append(f"{location}: {error['msg']}" if location else error["msg"])
    return "; ".join(parts)


def _normalize_uri(uri: str) -> str:
    try:
        return str(_URI_ADAPTER.validate_python(uri))
    except ValidationError:
        return uri


def changed_sections(old: CapabilityConfig | None, new: CapabilityConfig) -> set[str]:
    """Return the section names (``tools``/``resources``/``prompts``) that differ."""
    if old is None:
        return {"tools", "resources", "prompts"}
    return {
        section
        for section in ("tools", "resources", "prompts")
        if getattr(old, section) != getattr(new, section)
    }


__all__ = [
    "CapabilityConfig",
    "HandlerRef",
    "PromptArgumentDescriptor",
    "PromptDescriptor",
    "ResourceDescriptor",
    "ToolDescriptor",
    "changed_sections",
]
