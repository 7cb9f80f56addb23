from enum import Enum
from pydantic import BaseModel


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ConversationTurn(BaseModel):
    role: Role
    content: str = ""

    @classmethod
    def empty_user(cls) -> "ConversationTurn":
        return cls(role=Role.USER, content="")

    @property
    def is_blank(self) -> bool:
        return not self.content.strip()
