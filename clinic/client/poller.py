"""
Polling refresh loop for the messaging portals.

There is no push channel: the conversation list and the open thread are
re-fetched on fixed intervals (10 s and 3 s by default) from a single
thread.  Each successful poll replaces the previous snapshot, so data can
be up to one interval stale.  A failed poll is logged and the last good
snapshot is kept until the next attempt.
"""
from __future__ import annotations

import time
from typing import Callable, Optional

import requests
from loguru import logger

from .api import MessagingClient, MessagingClientError

CONVERSATIONS_INTERVAL = 10.0
MESSAGES_INTERVAL = 3.0


class ConversationPoller:
    def __init__(
        self,
        client: MessagingClient,
        *,
        conversations_interval: float = CONVERSATIONS_INTERVAL,
        messages_interval: float = MESSAGES_INTERVAL,
        on_conversations: Optional[Callable[[list], None]] = None,
        on_messages: Optional[Callable[[str, list], None]] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.conversations_interval = conversations_interval
        self.messages_interval = messages_interval
        self.on_conversations = on_conversations
        self.on_messages = on_messages
        self._clock = clock
        self._sleep = sleep

        self.conversations: list[dict] = []
        self.messages: list[dict] = []
        self.active_conversation_id: Optional[str] = None
        self._conversations_due = clock()
        self._messages_due: Optional[float] = None

    def select(self, conversation_id: Optional[str]) -> None:
        """Open a thread; its messages become due on the next tick."""
        self.active_conversation_id = conversation_id
        self.messages = []
        self._messages_due = self._clock() if conversation_id else None

    def refresh_conversations(self) -> bool:
        try:
            data = self.client.list_conversations()
        except (MessagingClientError, requests.RequestException) as e:
            logger.warning("conversation poll failed: {}", e)
            return False
        self.conversations = data
        if self.on_conversations:
            self.on_conversations(data)
        return True

    def refresh_messages(self) -> bool:
        conversation_id = self.active_conversation_id
        if not conversation_id:
            return False
        try:
            data = self.client.list_messages(conversation_id)
        except (MessagingClientError, requests.RequestException) as e:
            logger.warning("message poll for {} failed: {}", conversation_id, e)
            return False
        self.messages = data
        if self.on_messages:
            self.on_messages(conversation_id, data)
        return True

    def send(self, content: str) -> dict:
        """Send to the open thread and re-fetch it right away."""
        if not self.active_conversation_id:
            raise RuntimeError('no conversation selected')
        message = self.client.send_message(self.active_conversation_id, content)
        self.refresh_messages()
        self._messages_due = self._clock() + self.messages_interval
        return message

    def tick(self) -> float:
        """Run every refresh that is due; return seconds until the next one."""
        now = self._clock()
        if now >= self._conversations_due:
            self.refresh_conversations()
            self._conversations_due = now + self.conversations_interval
        if self._messages_due is not None and now >= self._messages_due:
            self.refresh_messages()
            self._messages_due = now + self.messages_interval

        deadlines = [self._conversations_due]
        if self._messages_due is not None:
            deadlines.append(self._messages_due)
        return max(0.0, min(deadlines) - self._clock())

    def run(self, iterations: Optional[int] = None) -> None:
        """Tick until ``iterations`` ticks have run (forever when ``None``)."""
        count = 0
        while iterations is None or count < iterations:
            delay = self.tick()
            count += 1
            if iterations is not None and count >= iterations:
                break
            self._sleep(delay)
