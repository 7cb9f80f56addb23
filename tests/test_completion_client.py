"""
Completion client against a mocked HTTP boundary.
"""

import json

import httpx
import pytest

from prompttester.core.clients.completion.client import CompletionClient
from prompttester.domain.config.model_config import ModelSelection
from prompttester.domain.exceptions.exceptions import (
    CompletionError,
    ConfigurationError,
    EmptyResponseError,
    HttpError,
    InvalidContentFormatError,
    MissingChoicesError,
    MissingMessageError,
    MissingTextError,
)
from tests.factories import AssistantTurnFactory, UserTurnFactory
from tests.fakes import ENDPOINT, json_transport, reply_body


def make_client(selection, transport) -> CompletionClient:
    return CompletionClient(selection, endpoint=ENDPOINT, timeout=5.0, transport=transport)


@pytest.mark.asyncio
async def test_plain_string_content_is_returned(selection):
    client = make_client(selection, json_transport(json=reply_body("hello")))

    assert await client.complete("system", "hi") == "hello"


@pytest.mark.asyncio
async def test_request_shape(selection):
    requests: list[httpx.Request] = []
    client = make_client(selection, json_transport(json=reply_body("ok"), requests=requests))
    history = [UserTurnFactory(content="first"), AssistantTurnFactory(content="reply")]

    await client.complete("Be terse.", "second", history)

    request = requests[0]
    assert request.method == "POST"
    assert str(request.url) == ENDPOINT
    assert request.headers["Authorization"] == "Bearer sk-test"
    body = json.loads(request.content)
    assert body["model"] == "test-model"
    assert [m["role"] for m in body["messages"]] == ["system", "user", "assistant", "user"]
    assert body["messages"][0]["content"] == [{"type": "text", "text": "Be terse."}]
    assert body["messages"][2]["content"] == [{"type": "text", "text": "reply"}]
    assert body["messages"][-1]["content"] == [{"type": "text", "text": "second"}]


@pytest.mark.asyncio
async def test_single_block_content(selection):
    body = {"choices": [{"message": {"content": {"type": "text", "text": "from block"}}}]}
    client = make_client(selection, json_transport(json=body))

    assert await client.complete("s", "u") == "from block"


@pytest.mark.asyncio
async def test_block_list_content_uses_first_block(selection):
    body = {
        "choices": [
            {
                "message": {
                    "content": [
                        {"type": "text", "text": "first"},
                        {"type": "text", "text": "second"},
                    ]
                }
            }
        ]
    }
    client = make_client(selection, json_transport(json=body))

    assert await client.complete("s", "u") == "first"


@pytest.mark.asyncio
async def test_legacy_string_list_content(selection):
    body = {"choices": [{"message": {"content": ["legacy text"]}}]}
    client = make_client(selection, json_transport(json=body))

    assert await client.complete("s", "u") == "legacy text"


@pytest.mark.asyncio
async def test_http_error_uses_server_message(selection):
    client = make_client(selection, json_transport(400, json={"message": "bad token"}))

    with pytest.raises(CompletionError) as excinfo:
        await client.complete("s", "u")

    assert str(excinfo.value) == "API Error: bad token"
    assert isinstance(excinfo.value.__cause__, HttpError)
    assert excinfo.value.__cause__.status_code == 400


@pytest.mark.asyncio
async def test_http_error_reads_nested_error_message(selection):
    body = {"error": {"message": "model not found", "type": "invalid_request_error"}}
    client = make_client(selection, json_transport(404, json=body))

    with pytest.raises(CompletionError, match="model not found"):
        await client.complete("s", "u")


@pytest.mark.asyncio
async def test_http_error_without_message_falls_back_to_status(selection):
    client = make_client(selection, json_transport(500, content=b"upstream exploded"))

    with pytest.raises(CompletionError) as excinfo:
        await client.complete("s", "u")

    assert str(excinfo.value) == "API Error: API Error: 500 - Internal Server Error"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "transport, cause",
    [
        (json_transport(content=b""), EmptyResponseError),
        (json_transport(json={}), MissingChoicesError),
        (json_transport(json={"choices": []}), MissingChoicesError),
        (json_transport(json={"choices": [{}]}), MissingMessageError),
        (json_transport(json={"choices": [{"message": {"content": None}}]}), InvalidContentFormatError),
        (json_transport(json={"choices": [{"message": {"content": 42}}]}), InvalidContentFormatError),
        (json_transport(json={"choices": [{"message": {"content": []}}]}), MissingTextError),
        (
            json_transport(json={"choices": [{"message": {"content": [{"type": "image_url"}]}}]}),
            MissingTextError,
        ),
    ],
)
async def test_malformed_responses_raise_distinct_causes(selection, transport, cause):
    client = make_client(selection, transport)

    with pytest.raises(CompletionError) as excinfo:
        await client.complete("s", "u")

    assert str(excinfo.value).startswith("API Error: ")
    assert isinstance(excinfo.value.__cause__, cause)


@pytest.mark.asyncio
async def test_non_json_success_body_is_wrapped(selection):
    client = make_client(selection, json_transport(200, content=b"<html>oops</html>"))

    with pytest.raises(CompletionError, match="not valid JSON"):
        await client.complete("s", "u")


@pytest.mark.asyncio
async def test_transport_failure_is_wrapped(selection):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(selection, httpx.MockTransport(handler))

    with pytest.raises(CompletionError, match="connection refused"):
        await client.complete("s", "u")


@pytest.mark.asyncio
async def test_missing_selection_raises_configuration_error_unwrapped():
    requests: list[httpx.Request] = []
    client = make_client(None, json_transport(json=reply_body("x"), requests=requests))

    with pytest.raises(ConfigurationError) as excinfo:
        await client.complete("s", "u")

    assert not str(excinfo.value).startswith("API Error")
    assert requests == []


@pytest.mark.asyncio
async def test_missing_token_raises_configuration_error():
    selection = ModelSelection(model_id="test-model", api_token="")
    client = make_client(selection, json_transport(json=reply_body("x")))

    with pytest.raises(ConfigurationError):
        await client.complete("s", "u")


@pytest.mark.asyncio
async def test_non_ascii_token_is_wrapped():
    selection = ModelSelection(model_id="test-model", api_token="sk-тест")
    client = make_client(selection, json_transport(json=reply_body("x")))

    with pytest.raises(CompletionError) as excinfo:
        await client.complete("s", "u")

    assert str(excinfo.value).startswith("API Error: ")
    assert isinstance(excinfo.value.__cause__, UnicodeError)
