from pydantic import BaseModel, ConfigDict, Field
import time
import uuid


class VersionSnapshot(BaseModel):
    """
    An immutable captured content state.
    Timestamps are epoch milliseconds.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    content: str
    timestamp: int = Field(default_factory=lambda: int(time.time() * 1000))
    description: str | None = None
