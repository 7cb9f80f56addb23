import sys
from pathlib import Path
from collections.abc import Callable

import httpx
import pytest

# Add project root to the path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from prompttester.core.clients.completion.client import CompletionClient
from prompttester.core.ledger.version_ledger import VersionLedger
from prompttester.core.orchestrator.orchestrator import CompletionOrchestrator
from prompttester.core.summarize.diff_summarizer import DiffSummarizer
from prompttester.domain.config.model_config import ModelSelection
from prompttester.storage.kv.memory_store import MemoryStore
from prompttester.storage.session_store import SessionStore
from tests.fakes import ENDPOINT, FakeCompletionClient


@pytest.fixture
def selection() -> ModelSelection:
    return ModelSelection(model_id="test-model", model_name="Test Model", api_token="sk-test")


@pytest.fixture
def client_factory() -> Callable[..., Callable[[ModelSelection | None], CompletionClient]]:
    """
    Builds CompletionClient factories bound to a MockTransport.
    """

    def make(transport: httpx.MockTransport):
        def factory(selection: ModelSelection | None) -> CompletionClient:
            return CompletionClient(selection, endpoint=ENDPOINT, timeout=5.0, transport=transport)

        return factory

    return make


@pytest.fixture
def kv() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def store(kv) -> SessionStore:
    return SessionStore(kv).load()


@pytest.fixture
def summary_client() -> FakeCompletionClient:
    return FakeCompletionClient(reply="Reworded the system prompt.")


@pytest.fixture
def ledger(summary_client) -> VersionLedger:
    return VersionLedger(summarizer=DiffSummarizer(client_factory=summary_client))


@pytest.fixture
def completion_client() -> FakeCompletionClient:
    return FakeCompletionClient(reply="Hello from the model.")


@pytest.fixture
def orchestrator(store, ledger, completion_client) -> CompletionOrchestrator:
    return CompletionOrchestrator(store, ledger, client_factory=completion_client)
