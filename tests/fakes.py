import httpx

from prompttester.domain.config.model_config import ModelSelection

ENDPOINT = "https://completions.test/v1/chat/completions"


class FakeCompletionClient:
    """
    Stands in for CompletionClient: records every call, returns `reply` or raises `error`.
    Doubles as its own factory so it can be handed to anything taking a client_factory.
    """

    def __init__(self, reply: str = "Sure thing.", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.calls: list[dict] = []
        self.selections: list[ModelSelection | None] = []

    def __call__(self, selection: ModelSelection | None) -> "FakeCompletionClient":
        self.selections.append(selection)
        return self

    async def complete(self, system_prompt, user_prompt, history=()):
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "history": list(history),
            }
        )
        if self.error is not None:
            raise self.error
        return self.reply


def json_transport(
    status_code: int = 200,
    json: object = None,
    content: bytes | None = None,
    requests: list[httpx.Request] | None = None,
) -> httpx.MockTransport:
    """
    MockTransport answering every request with the same response.
    Requests are appended to `requests` when given.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        if content is not None:
            return httpx.Response(status_code, content=content)
        if json is None:
            return httpx.Response(status_code)
        return httpx.Response(status_code, json=json)

    return httpx.MockTransport(handler)


def reply_body(text: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": text}}]}
