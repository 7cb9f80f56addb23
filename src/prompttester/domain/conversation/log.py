"""
A ConversationLog is the transcript for the active session.
It always ends with a user turn: the pending input slot.
"""

from __future__ import annotations
from prompttester.domain.conversation.turn import ConversationTurn, Role
from prompttester.domain.exceptions.exceptions import ConversationError
from pydantic import BaseModel, Field, model_validator
from collections.abc import Sequence
from typing_extensions import override
import logging

logger = logging.getLogger(__name__)


def _fresh_turns() -> list[ConversationTurn]:
    return [ConversationTurn.empty_user()]


class ConversationLog(BaseModel):
    session_id: str | None = None
    turns: list[ConversationTurn] = Field(default_factory=_fresh_turns)
    error: str | None = None
    # Bumped on every reset; lets in-flight submits detect that the log moved on
    generation: int = 0

    @model_validator(mode="after")
    def validate_turns(self):
        if not self.turns:
            raise ConversationError("A conversation log is never empty.")
        if self.turns[-1].role != Role.USER:
            raise ConversationError("The last turn must be a user turn.")
        return self

    def __len__(self) -> int:
        return len(self.turns)

    def __getitem__(self, index: int) -> ConversationTurn:
        return self.turns[index]

    @property
    def last(self) -> ConversationTurn:
        return self.turns[-1]

    @property
    def roles(self) -> str:
        return "".join(turn.role.value[0].upper() for turn in self.turns)

    def reset(self, session_id: str | None = None) -> None:
        """
        Back to a single empty user turn, scoped to `session_id`.
        """
        self.session_id = session_id
        self.turns = _fresh_turns()
        self.error = None
        self.generation += 1

    def clear(self) -> None:
        self.reset(self.session_id)

    def edit(self, index: int, content: str) -> None:
        """
        Replace the content of one turn in place. Never truncates.
        """
        turn = self.turns[index]
        self.turns[index] = turn.model_copy(update={"content": content})

    def history_before(self, index: int) -> list[ConversationTurn]:
        return list(self.turns[:index])

    def replace(self, turns: Sequence[ConversationTurn], error: str | None = None) -> None:
        """
        Swap in a new transcript; it must keep the trailing user turn.
        """
        turns = list(turns)
        if not turns or turns[-1].role != Role.USER:
            raise ConversationError("The last turn must be a user turn.")
        self.turns = turns
        self.error = error

    @override
    def __str__(self) -> str:
        output = ""
        for turn in self.turns:
            output += f"{turn.role.value.upper()}: {turn.content}\n"
        return output.strip()
