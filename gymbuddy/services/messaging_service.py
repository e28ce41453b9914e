"""
GymBuddy — Messaging between matched users.

Only the two participants of an ``accepted`` match may post to it.  Live
delivery rides on the store's change feed: every inserted message is
published and :meth:`MessagingService.subscribe` filters by ``match_id``.
"""

from __future__ import annotations

import uuid

import structlog

from gymbuddy.services.store import RowStore, Subscription

logger = structlog.get_logger("gymbuddy.messaging_service")


class MessagingError(ValueError):
    """The message cannot be sent or read in the current match state."""


class MessagingService:
    def __init__(self, store: RowStore) -> None:
        self.store = store

    async def send_message(
        self, match_id: uuid.UUID, sender_id: uuid.UUID, text: str
    ) -> dict:
        log = logger.bind(match_id=str(match_id), sender_id=str(sender_id))

        body = (text or "").strip()
        if not body:
            raise MessagingError("Message cannot be empty.")

        await self._require_participant(match_id, sender_id, require_accepted=True)

        message = await self.store.insert("messages", {
            "id": uuid.uuid4(),
            "match_id": match_id,
            "sender_id": sender_id,
            "message": body,
            "read": False,
        })
        log.info("message_sent", message_id=str(message["id"]), length=len(body))
        return message

    async def list_messages(self, match_id: uuid.UUID, user_id: uuid.UUID) -> list[dict]:
        """Return the match's messages, oldest first."""
        await self._require_participant(match_id, user_id)
        messages = await self.store.list("messages", {"match_id": match_id})
        messages.sort(key=lambda m: m["created_at"])
        return messages

    async def mark_read(self, match_id: uuid.UUID, reader_id: uuid.UUID) -> int:
        """Mark every unread message from the other participant as read.

        Returns the number of messages updated.
        """
        await self._require_participant(match_id, reader_id)

        marked = 0
        for message in await self.store.list("messages", {"match_id": match_id, "read": False}):
            if str(message["sender_id"]) == str(reader_id):
                continue
            await self.store.update("messages", message["id"], {"read": True})
            marked += 1

        logger.info(
            "messages_marked_read",
            match_id=str(match_id),
            reader_id=str(reader_id),
            marked=marked,
        )
        return marked

    def subscribe(self, match_id: uuid.UUID) -> Subscription:
        """Subscribe to messages inserted into ``match_id`` from now on."""
        return self.store.feed.subscribe("messages", {"match_id": match_id})

    async def require_participant(self, match_id: uuid.UUID, user_id: uuid.UUID) -> dict:
        return await self._require_participant(match_id, user_id)

    async def _require_participant(
        self,
        match_id: uuid.UUID,
        user_id: uuid.UUID,
        require_accepted: bool = False,
    ) -> dict:
        match = await self.store.get_by_id("matches", match_id)
        if match is None:
            raise MessagingError(f"Match {match_id} not found.")

        if str(user_id) not in (str(match["user1_id"]), str(match["user2_id"])):
            logger.warning(
                "messaging_not_participant",
                match_id=str(match_id),
                user_id=str(user_id),
            )
            raise MessagingError("You are not part of this match.")

        if require_accepted and match["status"] != "accepted":
            raise MessagingError("Messages can only be sent once the match is accepted.")

        return match
