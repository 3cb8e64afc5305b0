# taskboard/backend/services/task_events.py
from __future__ import annotations

import asyncio
import logging
import threading
from collections import defaultdict
from typing import Any, Dict, List, Tuple
from uuid import UUID

from taskboard.backend.core.config import settings

logger = logging.getLogger(__name__)

_Subscriber = Tuple[asyncio.Queue, asyncio.AbstractEventLoop]


class TaskEventBroker:
    """
    사용자별 private 채널.
    publish()는 워커 스레드에서도 호출되므로 각 구독자의 루프로 call_soon_threadsafe 전달.
    """

    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        self._subs: Dict[str, List[_Subscriber]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, user_id: UUID | str) -> asyncio.Queue:
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        with self._lock:
            self._subs[str(user_id)].append((queue, loop))
        logger.info("task channel subscribed | user=%s", user_id)
        return queue

    def unsubscribe(self, user_id: UUID | str, queue: asyncio.Queue) -> None:
        key = str(user_id)
        with self._lock:
            subs = [s for s in self._subs.get(key, []) if s[0] is not queue]
            if subs:
                self._subs[key] = subs
            else:
                self._subs.pop(key, None)
        logger.info("task channel unsubscribed | user=%s", user_id)

    def subscriber_count(self, user_id: UUID | str) -> int:
        with self._lock:
            return len(self._subs.get(str(user_id), []))

    def publish(self, user_id: UUID | str, event: Dict[str, Any]) -> int:
        """Fire-and-forget. Returns the number of subscribers the event was handed to."""
        with self._lock:
            subs = list(self._subs.get(str(user_id), []))

        delivered = 0
        for queue, loop in subs:
            try:
                loop.call_soon_threadsafe(self._offer, queue, event, str(user_id))
                delivered += 1
            except Exception as e:
                # 루프가 이미 닫힌 경우 등
                logger.warning("task event dispatch failed | user=%s | %s", user_id, e)
        return delivered

    @staticmethod
    def _offer(queue: asyncio.Queue, event: Dict[str, Any], user_id: str) -> None:
        try:
            queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(
                "task event dropped (queue full) | user=%s event=%s",
                user_id,
                event.get("event"),
            )


task_events = TaskEventBroker(queue_size=settings.task_events_queue_size)
