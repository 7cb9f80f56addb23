"""
Decoding of chat-completion responses.

Providers disagree on the shape of `choices[0].message.content`:
- a plain string
- a single content block: {"type": "text", "text": "..."}
- a list of content blocks (legacy servers put bare strings in the list)

Each shape decodes into its own variant; anything else fails closed with a named error.
"""

from __future__ import annotations
from prompttester.domain.exceptions.exceptions import (
    EmptyResponseError,
    MissingChoicesError,
    MissingMessageError,
    InvalidContentFormatError,
    MissingTextError,
)
from pydantic import BaseModel
from typing import Any, Literal


class StringContent(BaseModel):
    kind: Literal["string"] = "string"
    text: str

    def blocks(self) -> list[Any]:
        return [{"type": "text", "text": self.text}]


class BlockContent(BaseModel):
    kind: Literal["block"] = "block"
    block: dict[str, Any]

    def blocks(self) -> list[Any]:
        return [self.block]


class BlockListContent(BaseModel):
    kind: Literal["blocks"] = "blocks"
    items: list[Any]

    def blocks(self) -> list[Any]:
        return list(self.items)


ContentShape = StringContent | BlockContent | BlockListContent


def decode_content(raw: Any) -> ContentShape:
    match raw:
        case str():
            return StringContent(text=raw)
        case dict():
            return BlockContent(block=raw)
        case list():
            return BlockListContent(items=raw)
        case _:
            raise InvalidContentFormatError(
                "API response has invalid message content format"
            )


def first_text(shape: ContentShape) -> str:
    blocks = shape.blocks()
    first = blocks[0] if blocks else None
    if isinstance(first, dict) and isinstance(first.get("text"), str):
        return first["text"]
    if isinstance(first, str):
        return first
    raise MissingTextError("API response content missing text or text is not a string")


def extract_text(body: Any) -> str:
    """
    Validate a decoded JSON body in order and return the reply text.
    """
    if body is None or (not body and not isinstance(body, (dict, list))):
        raise EmptyResponseError("API returned empty response")

    choices = body.get("choices") if isinstance(body, dict) else None
    if not isinstance(choices, list) or len(choices) == 0:
        raise MissingChoicesError("API response missing choices array or empty choices")

    first_choice = choices[0]
    message = first_choice.get("message") if isinstance(first_choice, dict) else None
    if not message:
        raise MissingMessageError("API response missing message in first choice")

    content = message.get("content") if isinstance(message, dict) else None
    return first_text(decode_content(content))
