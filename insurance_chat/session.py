"""
Chat Session - transcript state for one conversation.

Holds the ordered messages, loading/error flags, current suggestions,
the model override and the running context. The transcript is loaded from
and written back to a local store; store failures are logged, never raised.
"""
from __future__ import annotations

import json
import logging
from typing import Callable, Optional

from insurance_chat.chat_service import InsuranceChatService
from insurance_chat.config import HISTORY_STORAGE_KEY
from insurance_chat.schemas import (
    ExtractedContext,
    KnowledgeEntry,
    Message,
    Role,
    SessionState,
    TurnResult,
    TurnStage,
)
from insurance_chat.storage import LocalStore, MemoryStore

logger = logging.getLogger(__name__)

Listener = Callable[[SessionState], None]

STORE_ERRORS = (OSError, ValueError, KeyError, TypeError)


class ChatSession:
    """
    Single-owner conversation state.

    Callers are expected not to send while a turn is loading; overlapping
    sends are not rejected here.
    """

    def __init__(
        self,
        service: InsuranceChatService,
        store: Optional[LocalStore] = None,
        persist_messages: bool = True,
        initial_messages: Optional[list[Message]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        session_id: Optional[str] = None,
        storage_key: str = HISTORY_STORAGE_KEY,
    ):
        self.service = service
        self.store = store or MemoryStore()
        self.persist_messages = persist_messages
        self.initial_messages = list(initial_messages or [])
        self.on_error = on_error
        self.session_id = session_id
        self.storage_key = storage_key

        self.is_loading = False
        self.error: Optional[Exception] = None
        self.suggestions: list[str] = []
        self.model_override: Optional[str] = None
        self.stage = TurnStage.IDLE
        self.context = ExtractedContext()
        self._listeners: list[Listener] = []

        loaded = self._load_messages() if persist_messages else None
        self.messages: list[Message] = loaded if loaded else list(self.initial_messages)

    # =============================================================
    # STATE
    # =============================================================

    @property
    def state(self) -> SessionState:
        return SessionState(
            messages=tuple(self.messages),
            is_loading=self.is_loading,
            error=self.error,
            suggestions=tuple(self.suggestions),
            model_override=self.model_override,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener for state snapshots.

        Returns:
            A callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.state
        for listener in list(self._listeners):
            listener(snapshot)

    def _set_messages(self, messages: list[Message]) -> None:
        self.messages = messages
        self._persist()
        self._notify()

    # =============================================================
    # PERSISTENCE
    # =============================================================

    def _load_messages(self) -> Optional[list[Message]]:
        try:
            raw = self.store.get(self.storage_key)
            if not raw:
                return None
            data = json.loads(raw)
            if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
                raise ValueError("Stored chat history is not a list of messages")
            return [Message.from_dict(item) for item in data]
        except STORE_ERRORS as e:
            logger.error(f"Failed to load chat history: {e}")
            return None

    def _persist(self) -> None:
        if not self.persist_messages:
            return
        try:
            payload = json.dumps([message.to_dict() for message in self.messages])
            self.store.set(self.storage_key, payload)
        except STORE_ERRORS as e:
            logger.error(f"Failed to save chat history: {e}")

    # =============================================================
    # ACTIONS
    # =============================================================

    def send(self, text: str) -> TurnResult:
        """
        Run one turn for a user message.

        Args:
            text: The user's message. Blank text is ignored.

        Returns:
            TurnResult with the messages this turn appended. On failure the
            user message stays in the transcript, no reply is appended, and
            the error is set and passed to on_error.
        """
        if not text or not text.strip():
            return TurnResult(ok=False)

        history = [message.content for message in self.messages]
        user_message = Message(role=Role.USER, content=text)

        self.is_loading = True
        self.error = None
        self._set_messages(self.messages + [user_message])

        try:
            reply = self.service.respond(
                text,
                context=self.context,
                model_override=self.model_override,
                history=history,
                on_stage=self._on_stage,
                session_id=self.session_id,
            )
        except Exception as e:
            logger.error(f"Error in chat: {e}")
            self.stage = TurnStage.FAILED
            self.error = e
            self.is_loading = False
            self._notify()
            if self.on_error:
                self.on_error(e)
            return TurnResult(ok=False, messages=[user_message], error=e)

        self.context = reply.context
        assistant_message = Message(
            role=Role.ASSISTANT,
            content=reply.content,
            category=reply.category,
            suggestions=tuple(reply.suggestions),
        )

        self.suggestions = list(reply.suggestions)
        self.is_loading = False
        self._set_messages(self.messages + [assistant_message])

        return TurnResult(ok=True, messages=[user_message, assistant_message])

    def _on_stage(self, stage: TurnStage) -> None:
        self.stage = stage
        logger.debug(f"Turn stage: {stage.value}")

    def retry_last(self) -> TurnResult:
        """
        Re-send the most recent user message in the transcript.

        The transcript is cut back to just before that message, so the
        retried turn replaces it instead of duplicating it. Works on a
        transcript restored from the store as well.
        """
        for index in range(len(self.messages) - 1, -1, -1):
            if self.messages[index].role == Role.USER:
                text = self.messages[index].content
                self._set_messages(self.messages[:index])
                return self.send(text)

        return TurnResult(ok=False)

    def reset(self) -> None:
        """Clear the conversation and forget the persisted transcript."""
        self.messages = list(self.initial_messages)
        self.error = None
        self.suggestions = []
        self.model_override = None
        self.context = ExtractedContext()
        self.stage = TurnStage.IDLE

        try:
            self.store.remove(self.storage_key)
        except STORE_ERRORS as e:
            logger.error(f"Failed to clear chat history: {e}")

        self._notify()

    def search_knowledge_base(self, query: str) -> list[KnowledgeEntry]:
        return self.service.search_knowledge_base(query)

    def set_model_override(self, model: Optional[str]) -> None:
        self.model_override = model or None
        self._notify()
