from __future__ import annotations
from prompttester.domain.conversation.turn import ConversationTurn
from pydantic import BaseModel
from collections.abc import Sequence
from typing import Literal


class TextBlock(BaseModel):
    type: Literal["text"] = "text"
    text: str


class PayloadMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: list[TextBlock]

    @classmethod
    def text(cls, role: str, text: str) -> PayloadMessage:
        return cls(role=role, content=[TextBlock(text=text)])


class CompletionPayload(BaseModel):
    """
    Chat-completions request body.
    """

    model: str
    messages: list[PayloadMessage]

    @classmethod
    def build(
        cls,
        model: str,
        system_prompt: str,
        user_prompt: str,
        history: Sequence[ConversationTurn] = (),
    ) -> CompletionPayload:
        messages = [PayloadMessage.text("system", system_prompt)]
        messages.extend(
            PayloadMessage.text(turn.role.value, turn.content) for turn in history
        )
        messages.append(PayloadMessage.text("user", user_prompt))
        return cls(model=model, messages=messages)
