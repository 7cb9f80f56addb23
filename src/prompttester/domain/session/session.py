from pydantic import BaseModel, Field
from prompttester.domain.session.version import VersionSnapshot
import uuid


class Session(BaseModel):
    """
    An independently editable prompt with its own version ledger.
    Versions are newest-first and only ever replaced wholesale by the ledger.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    content: str = ""
    versions: list[VersionSnapshot] = Field(default_factory=list)
    is_active: bool = False

    @property
    def latest_version(self) -> VersionSnapshot | None:
        return self.versions[0] if self.versions else None

    def find_version(self, snapshot_id: str) -> VersionSnapshot | None:
        for snapshot in self.versions:
            if snapshot.id == snapshot_id:
                return snapshot
        return None
