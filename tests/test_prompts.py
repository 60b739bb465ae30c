# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""prompts/list and prompts/get result normalization."""

from __future__ import annotations

import pytest
from mcp import types
from mcp.shared.exceptions import McpError

from remote_mcp.adapter import to_prompt_messages
from remote_mcp.exceptions import PromptExecutionError

from tests.helpers import RecordingTransport, json_response, make_server

GREET = "https://handlers.example.com/greet"

DOCUMENT = {
    "prompts": [
        {
            "name": "greet",
            "description": "Generate a greeting",
            "arguments": [{"name": "who", "description": "Person to greet", "required": True}],
            "handler": GREET,
        },
        {"name": "plain", "description": "No arguments", "handler": "https://handlers.example.com/plain"},
    ]
}


@pytest.mark.anyio
async def test_list_prompts():
    server = await make_server(DOCUMENT)
    handler = server.request_handlers[types.ListPromptsRequest]

    result = await handler(types.ListPromptsRequest(method="prompts/list"))

    prompts = result.root.prompts
    assert [p.name for p in prompts] == ["greet", "plain"]
    assert prompts[0].arguments[0].name == "who"
    assert prompts[0].arguments[0].required is True
    assert prompts[1].arguments is None


@pytest.mark.anyio
async def test_string_result_becomes_user_message():
    transport = RecordingTransport({GREET: lambda args: json_response(f"Say hello to {args['who']}")})
    server = await make_server(DOCUMENT, transport)

    result = await server.invoke_prompt("greet", arguments={"who": "Ada"})

    assert result.description == "Generate a greeting"
    assert len(result.messages) == 1
    message = result.messages[0]
    assert message.role == "user"
    assert message.content.type == "text"
    assert message.content.text == "Say hello to Ada"
    assert transport.calls == [(GREET, {"who": "Ada"})]


@pytest.mark.anyio
async def test_message_list_used_as_is():
    messages = [
        {"role": "assistant", "content": {"type": "text", "text": "You are helpful."}},
        {"role": "user", "content": {"type": "text", "text": "Hello"}},
    ]
    server = await make_server(DOCUMENT, RecordingTransport({GREET: json_response(messages)}))

    result = await server.invoke_prompt("greet", arguments={"who": "Ada"})

    assert [m.role for m in result.messages] == ["assistant", "user"]
    assert result.messages[1].content.text == "Hello"


@pytest.mark.anyio
async def test_single_message_is_wrapped():
    message = {"role": "assistant", "content": {"type": "text", "text": "Hi there"}}
    server = await make_server(DOCUMENT, RecordingTransport({GREET: json_response(message)}))

    result = await server.invoke_prompt("greet")

    assert len(result.messages) == 1
    assert result.messages[0].role == "assistant"


@pytest.mark.anyio
async def test_get_prompt_via_request_handler():
    server = await make_server(DOCUMENT, RecordingTransport({GREET: json_response("hello")}))
    handler = server.request_handlers[types.GetPromptRequest]

    request = types.GetPromptRequest(
        method="prompts/get",
        params=types.GetPromptRequestParams(name="greet", arguments={"who": "Bo"}),
    )
    result = await handler(request)

    assert result.root.messages[0].content.text == "hello"


@pytest.mark.anyio
async def test_unknown_prompt_is_invalid_params():
    transport = RecordingTransport()
    server = await make_server(DOCUMENT, transport)

    with pytest.raises(McpError) as exc:
        await server.invoke_prompt("missing")

    assert exc.value.error.code == types.INVALID_PARAMS
    assert exc.value.error.message == "Prompt not found: missing"
    assert transport.calls == []


@pytest.mark.anyio
async def test_unusable_result_is_prompt_execution_error():
    server = await make_server(DOCUMENT, RecordingTransport({GREET: json_response(42)}))

    with pytest.raises(PromptExecutionError):
        await server.adapter.get_prompt("greet", {})

    with pytest.raises(McpError) as exc:
        await server.invoke_prompt("greet")
    assert exc.value.error.code == types.INTERNAL_ERROR


@pytest.mark.anyio
async def test_handler_failure_is_prompt_execution_error():
    server = await make_server(DOCUMENT, RecordingTransport({GREET: json_response({}, status=404, reason="Not Found")}))

    with pytest.raises(PromptExecutionError) as exc:
        await server.adapter.get_prompt("greet", {"who": "x"})

    assert "Handler failed: Not Found" in str(exc.value)


class TestToPromptMessages:
    def test_string_content_shorthand(self):
        messages = to_prompt_messages([{"role": "user", "content": "short"}])
        assert messages[0].content.text == "short"

    def test_messages_envelope(self):
        messages = to_prompt_messages({"messages": [{"role": "user", "content": "a"}]})
        assert len(messages) == 1

    def test_message_missing_role(self):
        with pytest.raises(TypeError):
            to_prompt_messages([{"content": "no role"}])

    def test_invalid_role(self):
        with pytest.raises(ValueError):
            to_prompt_messages([{"role": "system", "content": "nope"}])
