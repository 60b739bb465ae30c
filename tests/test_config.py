# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Capability configuration document parsing and equality."""

from __future__ import annotations

import pytest

from remote_mcp.config import CapabilityConfig, ToolDescriptor, changed_sections
from remote_mcp.exceptions import ConfigUnavailableError


DOCUMENT = {
    "tools": [
        {
            "name": "echo",
            "description": "Echo a message",
            "inputSchema": {"type": "object", "properties": {"msg": {"type": "string"}}},
            "handler": "https://handlers.example.com/echo",
        }
    ],
    "resources": [
        {
            "uri": "docs://readme",
            "name": "readme",
            "mimeType": "text/markdown",
            "handler": "https://handlers.example.com/readme",
        }
    ],
    "prompts": [
        {
            "name": "greet",
            "description": "Greet someone",
            "arguments": [{"name": "who", "required": True}],
            "handler": "https://handlers.example.com/greet",
        }
    ],
}


class TestParsing:
    def test_full_document(self):
        config = CapabilityConfig.from_document(DOCUMENT)

        assert [t.name for t in config.tools] == ["echo"]
        assert config.tools[0].input_schema["properties"]["msg"] == {"type": "string"}
        assert config.resources[0].mime_type == "text/markdown"
        assert config.prompts[0].arguments[0].required is True

    def test_sections_are_optional(self):
        config = CapabilityConfig.from_document({})
        assert config.tools == []
        assert config.resources == []
        assert config.prompts == []

    def test_null_sections_are_empty(self):
        config = CapabilityConfig.from_document({"tools": None, "prompts": None})
        assert config.tools == []
        assert config.prompts == []

    def test_unknown_fields_are_ignored(self):
        document = {
            "version": 3,
            "tools": [{"name": "a", "handler": "https://h.example.com/a", "annotations": {"x": 1}}],
        }
        config = CapabilityConfig.from_document(document)
        assert config.tools[0].name == "a"
        assert config == CapabilityConfig.from_document({"tools": [{"name": "a", "handler": "https://h.example.com/a"}]})

    def test_null_descriptions_are_empty(self):
        config = CapabilityConfig.from_document(
            {
                "tools": [{"name": "t", "description": None, "handler": "https://h.example.com/t"}],
                "prompts": [{"name": "p", "description": None, "handler": "https://h.example.com/p"}],
            }
        )
        assert config.tools[0].description == ""
        assert config.prompts[0].description == ""

    def test_validation_message_keeps_location(self):
        with pytest.raises(ConfigUnavailableError) as exc:
            CapabilityConfig.from_document({"tools": [{"name": "t"}]})
        assert "tools.0.handler: Field required" in str(exc.value)

    def test_input_schema_defaults_to_object(self):
        config = CapabilityConfig.from_document({"tools": [{"name": "a", "handler": "https://h.example.com/a"}]})
        assert config.tools[0].input_schema == {"type": "object"}

    def test_snake_case_names_accepted(self):
        tool = ToolDescriptor(name="a", input_schema={"type": "object"}, handler="https://h.example.com/a")
        assert tool.input_schema == {"type": "object"}

    def test_callable_handler_accepted(self):
        def handler(args: dict) -> str:
            return "ok"

        config = CapabilityConfig.from_document({"tools": [{"name": "a", "handler": handler}]})
        assert config.tools[0].handler is handler

    def test_relative_handler_rejected(self):
        with pytest.raises(ConfigUnavailableError) as exc:
            CapabilityConfig.from_document({"tools": [{"name": "a", "handler": "/echo"}]})
        assert "handler" in str(exc.value)

    def test_missing_handler_rejected(self):
        with pytest.raises(ConfigUnavailableError):
            CapabilityConfig.from_document({"tools": [{"name": "a"}]})

    def test_resource_uri_must_be_absolute(self):
        with pytest.raises(ConfigUnavailableError):
            CapabilityConfig.from_document(
                {"resources": [{"uri": "readme", "name": "r", "handler": "https://h.example.com/r"}]}
            )

    def test_non_object_document_rejected(self):
        with pytest.raises(ConfigUnavailableError) as exc:
            CapabilityConfig.from_document(["not", "an", "object"])
        assert "expected a JSON object" in str(exc.value)

    @pytest.mark.parametrize(
        ("section", "entry", "key"),
        [
            ("tools", {"name": "dup", "handler": "https://h.example.com/x"}, "dup"),
            ("resources", {"uri": "docs://dup", "name": "dup", "handler": "https://h.example.com/x"}, "docs://dup"),
            ("prompts", {"name": "dup", "handler": "https://h.example.com/x"}, "dup"),
        ],
    )
    def test_duplicates_rejected(self, section, entry, key):
        with pytest.raises(ConfigUnavailableError) as exc:
            CapabilityConfig.from_document({section: [entry, entry]})
        assert f"duplicate entry {key!r} in {section}" in str(exc.value)


class TestLookup:
    def test_lookup_by_key(self):
        config = CapabilityConfig.from_document(DOCUMENT)
        assert config.tool("echo").name == "echo"
        assert config.resource("docs://readme").name == "readme"
        assert config.prompt("greet").name == "greet"

    def test_lookup_missing_returns_none(self):
        config = CapabilityConfig.from_document(DOCUMENT)
        assert config.tool("nope") is None
        assert config.resource("docs://nope") is None
        assert config.prompt("nope") is None

    def test_resource_lookup_tolerates_url_normalization(self):
        config = CapabilityConfig.from_document(
            {"resources": [{"uri": "https://example.com", "name": "home", "handler": "https://h.example.com/r"}]}
        )
        assert config.resource("https://example.com/").name == "home"


class TestEquality:
    def test_distinct_instances_are_equal(self):
        assert CapabilityConfig.from_document(DOCUMENT) == CapabilityConfig.from_document(DOCUMENT)

    def test_reordering_is_a_change(self):
        a = {"name": "a", "handler": "https://h.example.com/a"}
        b = {"name": "b", "handler": "https://h.example.com/b"}
        first = CapabilityConfig.from_document({"tools": [a, b]})
        second = CapabilityConfig.from_document({"tools": [b, a]})
        assert first != second

    def test_nested_edit_is_a_change(self):
        edited = {**DOCUMENT, "tools": [{**DOCUMENT["tools"][0], "description": "Echo it back"}]}
        assert CapabilityConfig.from_document(DOCUMENT) != CapabilityConfig.from_document(edited)

    def test_changed_sections(self):
        old = CapabilityConfig.from_document(DOCUMENT)
        new = CapabilityConfig.from_document({**DOCUMENT, "prompts": []})
        assert changed_sections(old, new) == {"prompts"}
        assert changed_sections(old, old) == set()
        assert changed_sections(None, new) == {"tools", "resources", "prompts"}
