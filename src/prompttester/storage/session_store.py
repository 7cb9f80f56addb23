"""
SessionStore owns the ordered session collection, the active-session pointer and the
materialized conversation log of the active session.

Every mutation writes the full state back to the key/value store before returning.
"""

from __future__ import annotations
from prompttester.config import settings
from prompttester.domain.conversation.log import ConversationLog
from prompttester.domain.conversation.turn import ConversationTurn
from prompttester.domain.exceptions.exceptions import (
    MinimumSessionError,
    SessionError,
    SessionNotFoundError,
)
from prompttester.domain.session.session import Session
from prompttester.domain.session.version import VersionSnapshot
from pydantic import ValidationError
from typing import TYPE_CHECKING
import logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from prompttester.storage.kv.protocol import KeyValueStore

logger = logging.getLogger(__name__)

SESSIONS_KEY = "sessions"
ACTIVE_SESSION_KEY = "active_session_id"
CONVERSATION_KEY = "conversation"


class SessionStore:
    def __init__(
        self,
        kv: KeyValueStore,
        default_content: str = settings.default_content,
    ):
        self.kv: KeyValueStore = kv
        self.default_content: str = default_content
        self._sessions: list[Session] = []
        self.conversation: ConversationLog = ConversationLog()

    # Loading
    def load(self) -> SessionStore:
        """
        Read sessions, active id and conversation once at startup.
        An empty store gets a single default session.
        """
        raw_sessions = self.kv.get(SESSIONS_KEY) or []
        sessions = [Session.model_validate(raw) for raw in raw_sessions]
        if not sessions:
            logger.info("No stored sessions, creating the default session.")
            self._sessions = []
            self.create()
            return self

        active_id = self.kv.get(ACTIVE_SESSION_KEY)
        if not any(session.id == active_id for session in sessions):
            active_id = sessions[0].id
        for session in sessions:
            session.is_active = session.id == active_id
        self._sessions = sessions

        raw_conversation = self.kv.get(CONVERSATION_KEY)
        try:
            conversation = (
                ConversationLog.model_validate(raw_conversation)
                if raw_conversation
                else None
            )
        except ValidationError as e:
            logger.warning(f"Discarding invalid stored conversation: {e}")
            conversation = None
        if conversation is None or conversation.session_id not in (None, active_id):
            conversation = ConversationLog(session_id=active_id)
        conversation.session_id = active_id
        self.conversation = conversation
        logger.debug(f"Loaded {len(sessions)} sessions, active={active_id}")
        return self

    # Queries
    @property
    def sessions(self) -> list[Session]:
        return list(self._sessions)

    def __len__(self) -> int:
        return len(self._sessions)

    @property
    def active(self) -> Session:
        for session in self._sessions:
            if session.is_active:
                return session
        raise SessionError("No active session.")

    def find(self, session_id: str) -> Session | None:
        for session in self._sessions:
            if session.id == session_id:
                return session
        return None

    def get(self, session_id: str) -> Session:
        session = self.find(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session '{session_id}' not found.")
        return session

    def index_of(self, session_id: str) -> int:
        for index, session in enumerate(self._sessions):
            if session.id == session_id:
                return index
        raise SessionNotFoundError(f"Session '{session_id}' not found.")

    # Session mutations
    def create(self) -> Session:
        content = self.default_content
        session = Session(
            name=f"prompt{len(self._sessions) + 1}.txt",
            content=content,
            versions=[VersionSnapshot(content=content)],
            is_active=True,
        )
        for existing in self._sessions:
            existing.is_active = False
        self._sessions.append(session)
        self.conversation.reset(session.id)
        logger.info(f"Created session {session.id} ({session.name})")
        self.save()
        return session

    def remove(self, session_id: str) -> Session:
        if len(self._sessions) == 1:
            raise MinimumSessionError("Cannot remove the last remaining session.")
        index = self.index_of(session_id)
        removed = self._sessions.pop(index)
        if removed.is_active:
            new_index = 0 if index == 0 else index - 1
            self._sessions[new_index].is_active = True
            self.conversation.reset(self._sessions[new_index].id)
        logger.info(f"Removed session {removed.id} ({removed.name})")
        self.save()
        return removed

    def rename(self, session_id: str, name: str) -> Session:
        name = name.strip()
        if not name:
            raise SessionError("Session name cannot be empty.")
        session = self.get(session_id)
        session.name = name
        self.save(conversation=False)
        return session

    def select(self, session_id: str) -> Session:
        target = self.get(session_id)
        for session in self._sessions:
            session.is_active = session is target
        # Re-selecting the active session still starts a fresh conversation
        self.conversation.reset(target.id)
        self.save()
        return target

    def reorder(self, ordered_ids: Sequence[str]) -> None:
        ordered_ids = list(ordered_ids)
        if sorted(ordered_ids) != sorted(s.id for s in self._sessions):
            raise SessionError("Reorder must list every session id exactly once.")
        by_id = {session.id: session for session in self._sessions}
        self._sessions = [by_id[session_id] for session_id in ordered_ids]
        self.save(conversation=False)

    def set_content(self, session_id: str, content: str) -> Session:
        session = self.get(session_id)
        session.content = content
        self.save(conversation=False)
        return session

    def set_versions(self, session_id: str, versions: Sequence[VersionSnapshot]) -> Session:
        session = self.get(session_id)
        session.versions = list(versions)
        self.save(conversation=False)
        return session

    # Conversation mutations
    def edit_turn(self, index: int, content: str) -> None:
        self.conversation.edit(index, content)
        self.save_conversation()

    def clear_conversation(self) -> None:
        self.conversation.clear()
        self.save_conversation()

    def set_conversation(
        self, turns: Sequence[ConversationTurn], error: str | None = None
    ) -> None:
        self.conversation.replace(turns, error)
        self.save_conversation()

    def set_error(self, error: str | None) -> None:
        self.conversation.error = error
        self.save_conversation()

    # Persistence
    def save(self, conversation: bool = True) -> None:
        """
        Full-state write: sessions and active id, plus the conversation unless told otherwise.
        """
        self.kv.set(
            SESSIONS_KEY,
            [session.model_dump(mode="json") for session in self._sessions],
        )
        active = next((s for s in self._sessions if s.is_active), None)
        if active is not None:
            self.kv.set(ACTIVE_SESSION_KEY, active.id)
        if conversation:
            self.save_conversation()
        logger.debug(f"Persisted {len(self._sessions)} sessions.")

    def save_conversation(self) -> None:
        self.kv.set(CONVERSATION_KEY, self.conversation.model_dump(mode="json"))
