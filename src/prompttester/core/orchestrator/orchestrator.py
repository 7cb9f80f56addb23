"""
The submit state machine: Idle -> Submitting -> {Idle, Error}.

A submit captures a version of the active session's content, asks the completion
endpoint for a reply to one user turn, and rewrites the conversation log:

    success:  turns[:index] + [user, assistant, empty user]
    failure:  turns[:index] + [user, empty user]   (error recorded on the log)

Turns after `index` are always discarded. Nothing is retried.
"""

from __future__ import annotations
from prompttester.core.clients.completion.client import CompletionClient
from prompttester.domain.conversation.turn import ConversationTurn, Role
from prompttester.domain.exceptions.exceptions import (
    PromptTesterError,
    SubmissionInProgressError,
)
from collections import defaultdict
from enum import Enum
from typing import TYPE_CHECKING
import asyncio
import logging

if TYPE_CHECKING:
    from collections.abc import Callable
    from prompttester.core.ledger.version_ledger import VersionLedger
    from prompttester.domain.config.model_config import ModelSelection
    from prompttester.storage.session_store import SessionStore

logger = logging.getLogger(__name__)


class OrchestratorState(Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    ERROR = "error"


class CompletionOrchestrator:
    def __init__(
        self,
        store: SessionStore,
        ledger: VersionLedger,
        client_factory: Callable[[ModelSelection | None], CompletionClient] = CompletionClient,
    ):
        self.store: SessionStore = store
        self.ledger: VersionLedger = ledger
        self.client_factory = client_factory
        # One lock per session id; a second submit while one is in flight is refused
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    @property
    def state(self) -> OrchestratorState:
        """State as seen from the active session."""
        session_id = self.store.conversation.session_id
        if session_id is not None and self.is_submitting(session_id):
            return OrchestratorState.SUBMITTING
        if self.store.conversation.error:
            return OrchestratorState.ERROR
        return OrchestratorState.IDLE

    @property
    def error(self) -> str | None:
        return self.store.conversation.error

    def is_submitting(self, session_id: str) -> bool:
        lock = self._locks.get(session_id)
        return lock is not None and lock.locked()

    def edit(self, index: int, content: str) -> None:
        self.store.edit_turn(index, content)

    def clear(self) -> None:
        self.store.clear_conversation()

    async def submit(self, index: int, selection: ModelSelection | None = None) -> bool:
        """
        Submit the user turn at `index`. Returns False when there was nothing to submit.
        """
        log = self.store.conversation
        if not 0 <= index < len(log):
            logger.debug(f"Submit ignored: index {index} out of range.")
            return False
        turn = log[index]
        if turn.role != Role.USER or turn.is_blank:
            logger.debug(f"Submit ignored: turn {index} is not a pending user message.")
            return False

        session = self.store.active
        session_id = session.id
        lock = self._locks[session_id]
        if lock.locked():
            raise SubmissionInProgressError(
                f"A submission is already in progress for session '{session.name}'."
            )

        try:
            async with lock:
                logger.debug(f"Session {session_id}: IDLE -> SUBMITTING (turn {index})")
                self.store.set_error(None)
                generation = log.generation

                relevant_history = log.history_before(index)
                updated_history = [*relevant_history, turn]
                # Captured up front; later edits don't leak into this request
                snapshot = session.model_copy(deep=True)

                versions = await self.ledger.append_if_changed(snapshot, selection)
                if self.store.find(session_id) is not None:
                    self.store.set_versions(session_id, versions)
                else:
                    logger.info(f"Session {session_id} removed before its version was saved.")

                try:
                    client = self.client_factory(selection)
                    reply = await client.complete(
                        snapshot.content, turn.content, relevant_history
                    )
                except PromptTesterError as e:
                    logger.error(f"Failed to get response: {e}")
                    self._apply(
                        session_id,
                        generation,
                        [*updated_history, ConversationTurn.empty_user()],
                        error=str(e),
                    )
                    return True

                self._apply(
                    session_id,
                    generation,
                    [
                        *updated_history,
                        ConversationTurn(role=Role.ASSISTANT, content=reply),
                        ConversationTurn.empty_user(),
                    ],
                )
                return True
        finally:
            # Locks live only while a submit is in flight
            if not lock.locked():
                self._locks.pop(session_id, None)

    def _apply(
        self,
        session_id: str,
        generation: int,
        turns: list[ConversationTurn],
        error: str | None = None,
    ) -> None:
        """
        Write the result back only if the log still belongs to the submitting session
        and has not been reset since; otherwise drop it.
        """
        log = self.store.conversation
        if self.store.find(session_id) is None:
            logger.info(f"Discarding completion for removed session {session_id}.")
            return
        if log.session_id != session_id or log.generation != generation:
            logger.info(
                f"Discarding completion for session {session_id}: conversation was reset."
            )
            return
        self.store.set_conversation(turns, error)
        next_state = OrchestratorState.ERROR if error else OrchestratorState.IDLE
        logger.debug(f"Session {session_id}: SUBMITTING -> {next_state.name}")
