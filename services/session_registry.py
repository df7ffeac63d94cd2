from __future__ import annotations

import asyncio
import logging
import secrets
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

OUTBOUND_QUEUE_SIZE = 64
NORMAL_CLOSE_CODE = 1000
GOING_AWAY_CLOSE_CODE = 1001
SUPERSEDED_CLOSE_CODE = 4409


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    AUTHENTICATED = "authenticated"
    ACTIVE = "active"
    DISCONNECTED = "disconnected"


class Connection:
    """
    Server-side handle for one realtime client.

    Outbound events go through a bounded asyncio.Queue drained by the socket
    route, so send() never blocks the caller. When the queue is full the
    oldest pending event is dropped. close() queues a None marker so the
    reader wakes up and can shut the socket with `close_code`.
    """

    def __init__(self, connection_id: str | None = None, *, queue_size: int = OUTBOUND_QUEUE_SIZE) -> None:
        self.id = connection_id or secrets.token_hex(8)
        self.user_id: str | None = None
        self.state = ConnectionState.CONNECTING
        self.close_code = NORMAL_CLOSE_CODE
        self._queue: asyncio.Queue[dict[str, Any] | None] = asyncio.Queue(maxsize=queue_size)

    def __repr__(self) -> str:
        return f"Connection(id={self.id!r}, user_id={self.user_id!r}, state={self.state.value})"

    def authenticate(self, user_id: str) -> None:
        if self.state is not ConnectionState.CONNECTING:
            raise RuntimeError(f"cannot authenticate a connection in state {self.state.value}")
        self.user_id = user_id
        self.state = ConnectionState.AUTHENTICATED

    def activate(self) -> None:
        if self.state is not ConnectionState.AUTHENTICATED:
            raise RuntimeError(f"cannot activate a connection in state {self.state.value}")
        self.state = ConnectionState.ACTIVE

    def close(self, code: int = NORMAL_CLOSE_CODE) -> None:
        if self.state is ConnectionState.DISCONNECTED:
            return
        self.state = ConnectionState.DISCONNECTED
        self.close_code = code
        self._enqueue(None)

    @property
    def is_active(self) -> bool:
        return self.state is ConnectionState.ACTIVE

    def send(self, event: str, data: dict[str, Any]) -> bool:
        """Queue an event for delivery. Returns False if the connection is closed."""
        if self.state is ConnectionState.DISCONNECTED:
            return False
        return self._enqueue({"event": event, "data": data})

    def _enqueue(self, message: dict[str, Any] | None) -> bool:
        if self._queue.full():
            try:
                _ = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                pass
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            # Raced between full-check and put; drop.
            return False
        return True

    async def next_message(self) -> dict[str, Any] | None:
        """Next outbound event, or None once the connection has been closed."""
        return await self._queue.get()

    def drain(self) -> list[dict[str, Any]]:
        """Pop every queued event without waiting."""
        messages: list[dict[str, Any]] = []
        while True:
            try:
                message = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return messages
            if message is not None:
                messages.append(message)


class SessionRegistry:
    """
    Process-local map of user id to their live connection (last connect wins).

    Only touched from the event loop thread, so no locking. Create one per
    app in the lifespan handler and share it through app.state.
    """

    def __init__(self) -> None:
        self._by_user: dict[str, Connection] = {}

    def __len__(self) -> int:
        return len(self._by_user)

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._by_user

    def register(self, user_id: str, connection: Connection) -> Connection | None:
        """Record connection for user_id and return the entry it replaced, if any."""
        previous = self._by_user.get(user_id)
        self._by_user[user_id] = connection
        if previous is not None and previous is not connection:
            logger.info(
                "[registry] user=%s replaced connection %s with %s", user_id, previous.id, connection.id
            )
        else:
            logger.info("[registry] user=%s registered connection %s", user_id, connection.id)
        return previous if previous is not connection else None

    def unregister(self, user_id: str, connection: Connection) -> bool:
        """Remove the entry only if it still points at this connection."""
        current = self._by_user.get(user_id)
        if current is not connection:
            logger.info(
                "[registry] user=%s stale disconnect of %s ignored (current=%s)",
                user_id,
                connection.id,
                current.id if current else None,
            )
            return False
        del self._by_user[user_id]
        logger.info("[registry] user=%s unregistered connection %s", user_id, connection.id)
        return True

    def get(self, user_id: str) -> Connection | None:
        return self._by_user.get(user_id)

    def online_user_ids(self) -> list[str]:
        return sorted(self._by_user)

    def connections(self) -> list[Connection]:
        return list(self._by_user.values())

    def close_all(self) -> None:
        for connection in self._by_user.values():
            connection.close(code=GOING_AWAY_CLOSE_CODE)
        self._by_user.clear()
