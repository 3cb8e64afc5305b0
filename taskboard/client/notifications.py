# taskboard/client/notifications.py
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, Iterator, List, Optional, Set

from taskboard.client.api import TaskApiError
from taskboard.client.cache import TaskCache
from taskboard.client.config import client_settings
from taskboard.client.models import Notification, NotificationKind, TaskRecord, as_utc

logger = logging.getLogger(__name__)

FILTER_ALL = "all"
FILTER_UNREAD = "unread"
FILTER_READ = "read"

_MESSAGES = {
    NotificationKind.CREATED: 'New task created: "{title}"',
    NotificationKind.COMPLETED: 'Task completed: "{title}"',
    NotificationKind.DUE_SOON: 'Task due soon: "{title}"',
    NotificationKind.OVERDUE: 'Task overdue: "{title}"',
}


def is_overdue(due_date: Optional[datetime], now: datetime) -> bool:
    """Past due, not counting the rest of the due day itself."""
    if due_date is None:
        return False
    due = as_utc(due_date)
    return due < now and due.date() != now.date()


def is_due_soon(due_date: Optional[datetime], now: datetime, window: timedelta) -> bool:
    if due_date is None:
        return False
    # 오늘 이미 지난 마감도 아직 overdue가 아니면 due_soon
    return not is_overdue(due_date, now) and as_utc(due_date) <= now + window


def classify(task: TaskRecord, now: datetime, window: timedelta) -> NotificationKind:
    if task.status == "completed":
        return NotificationKind.COMPLETED
    if is_overdue(task.due_date, now):
        return NotificationKind.OVERDUE
    if is_due_soon(task.due_date, now, window):
        return NotificationKind.DUE_SOON
    return NotificationKind.CREATED


def derive_notifications(
    tasks: Iterable[TaskRecord],
    *,
    now: Optional[datetime] = None,
    limit: Optional[int] = None,
    due_soon_window: Optional[timedelta] = None,
) -> Iterator[Notification]:
    """
    태스크 목록에서 알림을 파생한다 (서버 저장 없음).
    제너레이터라서 다시 호출하면 처음부터 다시 만든다.
    """
    now = as_utc(now) if now else datetime.now(timezone.utc)
    limit = client_settings.notification_limit if limit is None else limit
    if due_soon_window is None:
        due_soon_window = timedelta(hours=client_settings.due_soon_hours)

    newest_first = sorted(tasks, key=lambda t: t.created_at, reverse=True)
    for task in newest_first[:limit]:
        kind = classify(task, now, due_soon_window)
        yield Notification(
            id=f"notif-{task.id}-{kind.value}",
            kind=kind,
            message=_MESSAGES[kind].format(title=task.title),
            task_id=task.id,
            read=False,
            created_at=task.due_date if kind is NotificationKind.OVERDUE else task.created_at,
        )


class NotificationFeed:
    """Derived notifications plus local-only read/dismissed state."""

    def __init__(
        self,
        cache: TaskCache,
        *,
        limit: Optional[int] = None,
        due_soon_window: Optional[timedelta] = None,
    ):
        self.cache = cache
        self.limit = limit
        self.due_soon_window = due_soon_window
        self._items: List[Notification] = []
        self._read: Set[str] = set()
        self._dismissed: Set[str] = set()
        self._unsubscribe = cache.subscribe(self.refresh)
        self.refresh()

    def close(self) -> None:
        self._unsubscribe()

    def refresh(self, now: Optional[datetime] = None) -> List[Notification]:
        derived = derive_notifications(
            self.cache.tasks(),
            now=now,
            limit=self.limit,
            due_soon_window=self.due_soon_window,
        )
        self._items = [
            n.model_copy(update={"read": n.id in self._read})
            for n in derived
            if n.id not in self._dismissed
        ]
        return list(self._items)

    def __iter__(self) -> Iterator[Notification]:
        return iter(list(self._items))

    def items(self, filter: str = FILTER_ALL) -> List[Notification]:
        if filter == FILTER_UNREAD:
            return [n for n in self._items if not n.read]
        if filter == FILTER_READ:
            return [n for n in self._items if n.read]
        return list(self._items)

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self._items if not n.read)

    def mark_read(self, notification_id: str) -> None:
        self._read.add(notification_id)
        self._items = [
            n.model_copy(update={"read": True}) if n.id == notification_id else n
            for n in self._items
        ]

    def mark_all_read(self) -> None:
        self._read.update(n.id for n in self._items)
        self._items = [n.model_copy(update={"read": True}) for n in self._items]

    def delete(self, notification_id: str) -> None:
        self._dismissed.add(notification_id)
        self._items = [n for n in self._items if n.id != notification_id]

    def clear_all(self) -> None:
        self._dismissed.update(n.id for n in self._items)
        self._items = []


class NotificationPoller:
    """
    주기적으로 캐시를 서버와 동기화하고 피드를 다시 파생한다.
    조회가 실패해도 피드는 갱신된다 (due_soon/overdue는 시간이 지나면 바뀜).
    stop()/async with 종료 시 타이머 태스크를 취소하고 끝날 때까지 기다린다.
    """

    def __init__(
        self,
        cache: TaskCache,
        feed: Optional[NotificationFeed] = None,
        interval: Optional[float] = None,
    ):
        self.cache = cache
        self.feed = feed
        self.interval = client_settings.notification_poll_seconds if interval is None else interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def __aenter__(self) -> "NotificationPoller":
        self.start()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.stop()

    async def poll_once(self) -> None:
        try:
            await self.cache.refresh()
        except TaskApiError as e:
            logger.warning("notification poll failed | %s", e.message)
        if self.feed is not None:
            self.feed.refresh()

    async def _run(self) -> None:
        while True:
            await self.poll_once()
            await asyncio.sleep(self.interval)
