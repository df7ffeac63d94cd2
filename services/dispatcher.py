from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from models.video import Video
from services.session_registry import SUPERSEDED_CLOSE_CODE, Connection, SessionRegistry

logger = logging.getLogger(__name__)

MODERATION_RESULT = "moderation-result"
USER_ONLINE = "user-online"
USER_OFFLINE = "user-offline"
ONLINE_USERS = "online-users"
ERROR_MESSAGE = "error-message"

# client event -> event delivered to the recipient
RELAY_EVENTS = {
    "send-message": "receive-message",
    "typing": "typing",
    "stop-typing": "stop-typing",
    "seen": "message-seen",
    "webrtc-offer": "webrtc-offer",
    "webrtc-answer": "webrtc-answer",
    "webrtc-ice-candidate": "webrtc-ice-candidate",
}

# only these report "recipient offline" back to the sender
OFFLINE_ERROR_EVENTS = frozenset({"send-message"})


class NotificationDispatcher:
    """Push events to live users and relay direct user-to-user events."""

    def __init__(self, registry: SessionRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    def notify(self, user_id: str, event: str, payload: dict[str, Any]) -> bool:
        """
        Fire-and-forget delivery to one user.

        Returns False when the user has no live connection; the event is
        dropped, there is no queue or redelivery on reconnect.
        """
        connection = self._registry.get(user_id)
        if connection is None:
            logger.info("[dispatcher] user=%s offline; dropping %s", user_id, event)
            return False
        return connection.send(event, payload)

    def broadcast(self, event: str, payload: dict[str, Any], *, exclude_user_id: str | None = None) -> int:
        sent = 0
        for connection in self._registry.connections():
            if connection.user_id == exclude_user_id:
                continue
            if connection.send(event, payload):
                sent += 1
        return sent

    def connect(self, connection: Connection) -> None:
        """Activate an authenticated connection, register it and announce it."""
        user_id = connection.user_id
        if user_id is None:
            raise RuntimeError("connection must be authenticated before it is registered")
        connection.activate()
        previous = self._registry.register(user_id, connection)
        if previous is not None:
            previous.close(code=SUPERSEDED_CLOSE_CODE)
        self.broadcast(USER_ONLINE, {"userId": user_id}, exclude_user_id=user_id)
        connection.send(ONLINE_USERS, {"userIds": self._registry.online_user_ids()})

    def disconnect(self, connection: Connection) -> bool:
        user_id = connection.user_id
        connection.close()
        if user_id is None:
            return False
        removed = self._registry.unregister(user_id, connection)
        if removed:
            self.broadcast(USER_OFFLINE, {"userId": user_id})
        return removed

    def relay(self, sender: Connection, event: str, data: Any) -> bool:
        """Forward a client event to its `to` user, tagged with the sender's id."""
        if event not in RELAY_EVENTS:
            sender.send(ERROR_MESSAGE, {"message": "Unsupported event", "event": event})
            return False
        if not isinstance(data, dict) or not data.get("to"):
            sender.send(ERROR_MESSAGE, {"message": "Missing recipient", "event": event})
            return False

        target_id = str(data["to"])
        forwarded = {**data, "from": sender.user_id}
        if self.notify(target_id, RELAY_EVENTS[event], forwarded):
            return True
        if event in OFFLINE_ERROR_EVENTS:
            sender.send(ERROR_MESSAGE, {"message": "Recipient is offline", "to": target_id})
        return False

    def notify_moderation_result(self, video: Video, *, now: datetime | None = None) -> bool:
        payload = {
            "videoId": video.id,
            "status": video.moderation_status.value,
            "videoTitle": video.title or "",
            "timestamp": (now or datetime.now(timezone.utc)).isoformat(),
        }
        delivered = self.notify(video.user_id, MODERATION_RESULT, payload)
        logger.info(
            "[dispatcher] moderation-result video=%s user=%s status=%s delivered=%s",
            video.id,
            video.user_id,
            payload["status"],
            delivered,
        )
        return delivered
