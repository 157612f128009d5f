# modules/assistant/conversation_store.py

import asyncio
import logging
from collections import OrderedDict
from contextlib import asynccontextmanager

from .config import HISTORY_MAX_TURNS, MAX_CONVERSATIONS

logger = logging.getLogger(__name__)


def truncate_history(turns: list[dict], max_turns: int = HISTORY_MAX_TURNS) -> list[dict]:
    """
    Keep the most recent `max_turns` turns. Tool results cut off from the
    assistant turn that requested them are dropped from the head, since the
    chat API rejects orphan tool messages.
    """
    window = list(turns[-max_turns:]) if max_turns else []
    while window and window[0].get("role") == "tool":
        window.pop(0)
    return window


class ConversationStore:
    """
    In-memory conversation history keyed by (user phone, chat id), bounded
    by conversation count with least-recently-used eviction. Evicted
    conversations are rebuilt from the database on their next message.

    Also hands out one asyncio.Lock per key so overlapping webhooks of the
    same chat are processed one turn at a time.
    """

    def __init__(self, max_conversations: int = MAX_CONVERSATIONS,
                 max_turns: int = HISTORY_MAX_TURNS):
        self._max_conversations = max_conversations
        self._max_turns = max_turns
        self._store: OrderedDict[tuple[str, str], list[dict]] = OrderedDict()
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}
        self._lock_users: dict[tuple[str, str], int] = {}

    def get(self, key: tuple[str, str]) -> list[dict] | None:
        """Return a copy of the history (promoting it to MRU) or None."""
        if key not in self._store:
            return None
        self._store.move_to_end(key)
        return list(self._store[key])

    def put(self, key: tuple[str, str], turns: list[dict]):
        self._store[key] = truncate_history(turns, self._max_turns)
        self._store.move_to_end(key)

        while len(self._store) > self._max_conversations:
            evicted_key, _ = self._store.popitem(last=False)
            logger.debug(f"Conversation history evicted: {evicted_key}")

    def clear(self, key: tuple[str, str]) -> bool:
        """Forget one conversation. Returns True if it was cached."""
        return self._store.pop(key, None) is not None

    def lock_for(self, key: tuple[str, str]) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def locked(self, key: tuple[str, str]):
        """
        Hold the key's lock for one turn. The lock entry is dropped once no
        turn holds or waits for it, whether or not history was stored.
        """
        lock = self.lock_for(key)
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                self._locks.pop(key, None)

    def __contains__(self, key) -> bool:
        return key in self._store

    def __len__(self) -> int:
        return len(self._store)
