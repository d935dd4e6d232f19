"""
Conversation history store

Capped per-session message log. Messages are kept in a Redis list per
session when Redis is reachable, otherwise in an in-process deque. A Redis
failure never fails a request: the store logs it and degrades to memory.

Usage:
    client = await connect_redis("redis://localhost:6379")
    history = ConversationHistory(max_messages=50, redis_client=client)
    await history.append(session_id, Message(role="user", content="hi"))
    first = await history.is_first_message(session_id)
"""

import asyncio
import json
import logging
from collections import OrderedDict, deque
from typing import Deque, List, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from .models import Message

logger = logging.getLogger(__name__)

KEY_PREFIX = "campus:history:"

# Errors that mean Redis is unusable for this call
_REDIS_ERRORS = (RedisError, OSError, asyncio.TimeoutError)


async def connect_redis(url: str, timeout: float = 2.0) -> Optional[redis.Redis]:
    """
    Create an async Redis client and verify it with PING.

    Args:
        url: Redis connection URL
        timeout: Seconds to wait for the PING

    Returns:
        Connected client, or None when Redis is unreachable
    """
    client = redis.Redis.from_url(
        url,
        decode_responses=True,
        socket_timeout=timeout,
        socket_connect_timeout=timeout,
    )
    try:
        await asyncio.wait_for(client.ping(), timeout=timeout)
        logger.info(f"✅ Redis connected for conversation history: {url}")
        return client
    except _REDIS_ERRORS as e:
        logger.warning(f"⚠️ Redis unavailable ({e}), conversation history will be kept in memory")
        await client.aclose()
        return None


class ConversationHistory:
    """
    Capped, append-only message log per session.

    Attributes:
        max_messages: Messages kept per session (oldest dropped first)
        ttl_seconds: Redis expiry for an idle session
        max_sessions: Sessions kept by the in-memory backend (least recently
            used dropped first)
    """

    def __init__(
        self,
        max_messages: int = 50,
        redis_client: Optional[redis.Redis] = None,
        ttl_seconds: int = 86400,
        max_sessions: int = 10000,
    ):
        if max_messages <= 0:
            raise ValueError(f"max_messages must be positive, got {max_messages}")
        if max_sessions <= 0:
            raise ValueError(f"max_sessions must be positive, got {max_sessions}")
        self.max_messages = max_messages
        self.ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions
        self._redis = redis_client
        self._memory: "OrderedDict[str, Deque[Message]]" = OrderedDict()

    @property
    def backend(self) -> str:
        return "redis" if self._redis is not None else "memory"

    @staticmethod
    def _key(session_id: str) -> str:
        return f"{KEY_PREFIX}{session_id}"

    def _degrade(self, operation: str, error: Exception) -> None:
        logger.warning(f"⚠️ Redis history {operation} failed ({error}), falling back to in-memory history")
        self._redis = None

    def _memory_log(self, session_id: str) -> Deque[Message]:
        log = self._memory.get(session_id)
        if log is not None:
            self._memory.move_to_end(session_id)
            return log

        log = deque(maxlen=self.max_messages)
        self._memory[session_id] = log
        while len(self._memory) > self.max_sessions:
            evicted, _ = self._memory.popitem(last=False)
            logger.debug(f"Evicted in-memory history for session {evicted}")
        return log

    async def append(self, session_id: str, message: Message) -> None:
        """Append a message, dropping the oldest beyond max_messages."""
        if self._redis is not None:
            key = self._key(session_id)
            try:
                async with self._redis.pipeline(transaction=True) as pipe:
                    pipe.rpush(key, json.dumps(message.to_dict(), ensure_ascii=False))
                    pipe.ltrim(key, -self.max_messages, -1)
                    pipe.expire(key, self.ttl_seconds)
                    await pipe.execute()
                return
            except _REDIS_ERRORS as e:
                self._degrade("append", e)

        self._memory_log(session_id).append(message)

    async def recent(self, session_id: str, limit: Optional[int] = None) -> List[Message]:
        """
        Most recent messages of a session, oldest first.

        Args:
            session_id: Session identifier
            limit: Maximum number of messages (default: all kept)
        """
        count = self.max_messages if limit is None else max(0, min(limit, self.max_messages))
        if count == 0:
            return []

        if self._redis is not None:
            try:
                raw = await self._redis.lrange(self._key(session_id), -count, -1)
                messages = []
                for item in raw:
                    try:
                        messages.append(Message.from_dict(json.loads(item)))
                    except (ValueError, KeyError, TypeError) as e:
                        logger.warning(f"⚠️ Skipping unreadable history entry for {session_id}: {e}")
                return messages
            except _REDIS_ERRORS as e:
                self._degrade("read", e)

        log = self._memory.get(session_id)
        if not log:
            return []
        return list(log)[-count:]

    async def is_first_message(self, session_id: str) -> bool:
        """True when the session has no stored messages yet."""
        if self._redis is not None:
            try:
                return await self._redis.llen(self._key(session_id)) == 0
            except _REDIS_ERRORS as e:
                self._degrade("length check", e)
        return not self._memory.get(session_id)

    async def clear(self, session_id: str) -> None:
        if self._redis is not None:
            try:
                await self._redis.delete(self._key(session_id))
            except _REDIS_ERRORS as e:
                self._degrade("clear", e)
        self._memory.pop(session_id, None)

    async def close(self) -> None:
        if self._redis is not None:
            try:
                await self._redis.aclose()
            except _REDIS_ERRORS as e:
                logger.warning(f"⚠️ Error closing Redis client: {e}")
            self._redis = None
