"""Debounced, best-effort "it's your turn" pings sent through the bot."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable, Optional

from telegram import Bot
from telegram.error import TelegramError

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Send one private message per user after a quiet period.

    Every new ``notify`` for a user cancels the message still waiting for
    that user and schedules the new text, so a burst of moves produces a
    single ping. Delivery errors are logged and dropped; callers never
    wait on or observe them.
    """

    def __init__(self, bot: Optional[Bot] = None, *, delay: float = 3.0) -> None:
        self._bot = bot
        self._delay = delay
        self._pending: Dict[int, asyncio.Task[None]] = {}

    @property
    def bot(self) -> Optional[Bot]:
        return self._bot

    def attach_bot(self, bot: Optional[Bot]) -> None:
        self._bot = bot

    def pending_users(self) -> set[int]:
        return {user_id for user_id, task in self._pending.items() if not task.done()}

    def notify(self, user_id: int, text: str) -> None:
        if self._bot is None:
            logger.debug("No bot configured, dropping notification for %s", user_id)
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop, dropping notification for %s", user_id)
            return
        self.cancel(user_id)
        self._pending[user_id] = loop.create_task(self._deliver_later(user_id, text))

    def notify_many(self, user_ids: Iterable[int], text: str) -> None:
        for user_id in dict.fromkeys(user_ids):
            self.notify(user_id, text)

    def cancel(self, user_id: int) -> None:
        task = self._pending.pop(user_id, None)
        if task and not task.done():
            task.cancel()

    async def aclose(self) -> None:
        tasks = list(self._pending.values())
        self._pending.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _deliver_later(self, user_id: int, text: str) -> None:
        try:
            await asyncio.sleep(self._delay)
            await self._bot.send_message(chat_id=user_id, text=text)
        except asyncio.CancelledError:
            pass
        except TelegramError as exc:
            logger.warning("Failed to notify %s: %s", user_id, exc)
        except Exception:  # pragma: no cover
            logger.exception("Unexpected error while notifying %s", user_id)
        finally:
            if self._pending.get(user_id) is asyncio.current_task():
                self._pending.pop(user_id, None)


__all__ = ["NotificationDispatcher"]
