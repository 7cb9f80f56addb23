from __future__ import annotations
from prompttester.config import settings
from prompttester.core.summarize.diff_summarizer import DiffSummarizer
from prompttester.domain.session.version import VersionSnapshot
from prompttester.domain.exceptions.exceptions import SessionError
from typing import TYPE_CHECKING
import logging
import time
import uuid

if TYPE_CHECKING:
    from collections.abc import Callable
    from prompttester.domain.config.model_config import ModelSelection
    from prompttester.domain.session.session import Session

logger = logging.getLogger(__name__)


class VersionLedger:
    """
    Bounded, newest-first history of content snapshots for a session.

    The ledger never writes to the session's `versions` itself: callers take the
    returned list and store it (see SessionStore.set_versions).
    """

    def __init__(
        self,
        summarizer: DiffSummarizer | None = None,
        max_versions: int = settings.max_versions,
        clock: Callable[[], int] = lambda: int(time.time() * 1000),
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        self.summarizer: DiffSummarizer = summarizer or DiffSummarizer()
        self.max_versions: int = max_versions
        self.clock = clock
        self.id_factory = id_factory

    async def append_if_changed(
        self, session: Session, selection: ModelSelection | None = None
    ) -> list[VersionSnapshot]:
        """
        Capture `session.content` unless it equals the newest snapshot.
        The description lookup can fail; the snapshot is created regardless.
        """
        latest = session.latest_version
        if latest is not None and latest.content == session.content:
            logger.debug(f"Session {session.id}: content unchanged, ledger untouched.")
            return list(session.versions)

        description = await self.summarizer.summarize(
            selection,
            latest.content if latest is not None else None,
            session.content,
        )
        snapshot = self._snapshot(session.content, description)
        versions = [snapshot, *session.versions][: self.max_versions]
        logger.debug(
            f"Session {session.id}: captured version {snapshot.id} ({len(versions)} kept)."
        )
        return versions

    def restore(self, session: Session, snapshot_id: str) -> Session:
        """
        Point the session's content at an older snapshot.
        No snapshot is inserted and the ledger order is left as is.
        """
        snapshot = session.find_version(snapshot_id)
        if snapshot is None:
            raise SessionError(
                f"Version '{snapshot_id}' not found in session '{session.id}'."
            )
        session.content = snapshot.content
        return session

    def _snapshot(self, content: str, description: str | None) -> VersionSnapshot:
        return VersionSnapshot(
            id=self.id_factory(),
            content=content,
            timestamp=self.clock(),
            description=description,
        )
