"""
Workspace wires the stores, the ledger and the orchestrator together from Settings.
It is the single entry point the CLI (or any other front end) talks to.
"""

from __future__ import annotations
from prompttester.config import Settings, settings as default_settings
from prompttester.core.clients.completion.client import CompletionClient
from prompttester.core.ledger.version_ledger import VersionLedger
from prompttester.core.orchestrator.orchestrator import CompletionOrchestrator
from prompttester.core.summarize.diff_summarizer import DiffSummarizer
from prompttester.storage.model_config_store import ModelConfigStore
from prompttester.storage.session_store import SessionStore
from functools import partial
from typing import TYPE_CHECKING
import logging

if TYPE_CHECKING:
    import httpx
    from prompttester.domain.session.session import Session
    from prompttester.storage.kv.protocol import KeyValueStore

logger = logging.getLogger(__name__)


class Workspace:
    def __init__(
        self,
        sessions: SessionStore,
        models: ModelConfigStore,
        ledger: VersionLedger,
        orchestrator: CompletionOrchestrator,
    ):
        self.sessions: SessionStore = sessions
        self.models: ModelConfigStore = models
        self.ledger: VersionLedger = ledger
        self.orchestrator: CompletionOrchestrator = orchestrator

    @classmethod
    def open(
        cls,
        settings: Settings = default_settings,
        store: KeyValueStore | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> Workspace:
        if store is None:
            from prompttester.storage.kv.tinydb_store import TinyDBStore

            store = TinyDBStore(settings.store_path)

        client_factory = partial(
            CompletionClient,
            endpoint=settings.endpoint,
            timeout=settings.request_timeout,
            transport=transport,
        )
        sessions = SessionStore(store, default_content=settings.default_content).load()
        models = ModelConfigStore(store).load()
        ledger = VersionLedger(
            summarizer=DiffSummarizer(client_factory=client_factory),
            max_versions=settings.max_versions,
        )
        orchestrator = CompletionOrchestrator(
            sessions, ledger, client_factory=client_factory
        )
        logger.debug(f"Workspace opened with {len(sessions)} sessions.")
        return cls(sessions, models, ledger, orchestrator)

    @property
    def active(self) -> Session:
        return self.sessions.active

    async def submit(self, index: int) -> bool:
        # Selection is read fresh so configuration changes apply to the next call
        return await self.orchestrator.submit(index, self.models.selection())

    async def say(self, text: str) -> bool:
        """Write `text` into the trailing user turn and submit it."""
        index = len(self.sessions.conversation) - 1
        self.orchestrator.edit(index, text)
        return await self.submit(index)

    async def capture_version(self) -> Session:
        session = self.active
        versions = await self.ledger.append_if_changed(session, self.models.selection())
        return self.sessions.set_versions(session.id, versions)

    def restore(self, snapshot_id: str) -> Session:
        session = self.active
        self.ledger.restore(session, snapshot_id)
        return self.sessions.set_content(session.id, session.content)
