"""Notifier fanning events out to chat and email channels."""

import asyncio
import logging
from typing import List, Optional

from ...domain.ports.notifier import NotificationEvent, NotificationType, Notifier

logger = logging.getLogger(__name__)


class CompositeNotifier(Notifier):
    """Sends every event to chat and claim events to email as well."""

    def __init__(self, chat: Optional[Notifier] = None, email: Optional[Notifier] = None):
        self._chat = chat
        self._email = email

    def _targets(self, event: NotificationEvent) -> List[Notifier]:
        targets = []
        if self._chat is not None:
            targets.append(self._chat)
        if self._email is not None and event.type == NotificationType.CLAIM:
            targets.append(self._email)
        return targets

    async def notify(self, event: NotificationEvent) -> bool:
        """Deliver to every channel, True when at least one accepted it."""
        targets = self._targets(event)
        if not targets:
            return False

        results = await asyncio.gather(
            *(target.notify(event) for target in targets),
            return_exceptions=True,
        )
        delivered = False
        for target, result in zip(targets, results):
            if isinstance(result, Exception):
                logger.warning(f"⚠️ {target.provider_name} notifier raised: {result}")
            elif result:
                delivered = True
        return delivered

    async def shutdown(self) -> None:
        for notifier in (self._chat, self._email):
            if notifier is not None:
                await notifier.shutdown()

    @property
    def provider_name(self) -> str:
        names = [n.provider_name for n in (self._chat, self._email) if n is not None]
        return "+".join(names) or "none"

    @property
    def is_available(self) -> bool:
        return any(n is not None and n.is_available for n in (self._chat, self._email))
