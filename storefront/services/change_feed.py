# storefront/services/change_feed.py
import json
import time
import threading
from dataclasses import dataclass
from typing import Callable, Iterable

import redis
from redis.exceptions import RedisError

from storefront.utils.retry import redis_retry
from storefront.utils.settings import REDIS_URL, CHANGE_CHANNEL_PREFIX
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

ALL_EVENTS = "*"


@dataclass(frozen=True)
class Change:
    table: str
    event: str  # INSERT, UPDATE, DELETE
    record_id: int | None


class Subscription:
    """
    A live registration on the change feed.

    Messages are read by redis-py's pub/sub worker thread and handed to the
    callback when they match one of the (table, event) filters. ``unsubscribe``
    stops the worker and releases the channels exactly once.
    """

    def __init__(
        self,
        name: str,
        pubsub,
        channels: dict[str, str],
        filters: list[tuple[str, str]],
        callback: Callable[[Change], None],
        poll_interval: float = 0.2,
        join_timeout: float = 2.0,
    ):
        self.name = name
        self.pubsub = pubsub
        self.channels = channels  # channel -> table
        self.filters = filters
        self.callback = callback
        self.poll_interval = poll_interval
        self.join_timeout = join_timeout
        self._thread = None
        self._lock = threading.Lock()
        self._closed = False

    @property
    def active(self) -> bool:
        return self._thread is not None and not self._closed and self._thread.is_alive()

    def start(self) -> "Subscription":
        self.pubsub.subscribe(**{channel: self._on_message for channel in self.channels})
        self._thread = self.pubsub.run_in_thread(
            sleep_time=self.poll_interval,
            daemon=True,
            exception_handler=self._on_worker_error,
        )
        logger.info(f"Subscription {self.name} listening on {sorted(self.channels)}")
        return self

    def _on_worker_error(self, error: BaseException, pubsub, thread) -> None:
        # returning keeps the worker loop running
        logger.error(f"Subscription {self.name} worker error: {error!r}")
        if isinstance(error, RedisError):
            time.sleep(self.poll_interval)

    def matches(self, change: Change) -> bool:
        return any(
            table == change.table and event in (ALL_EVENTS, change.event)
            for table, event in self.filters
        )

    def _on_message(self, message: dict) -> None:
        if self._closed or message.get("type") != "message":
            return
        try:
            payload = json.loads(message["data"])
            change = Change(payload["table"], payload["event"], payload.get("id"))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Subscription {self.name} dropped malformed message: {e}")
            return
        if self.matches(change):
            self.callback(change)

    def unsubscribe(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True

        if self._thread is None:
            self.pubsub.close()
        else:
            # the worker closes the pubsub connection on its way out
            self._thread.stop()
            self._thread.join(timeout=self.join_timeout)
            if self._thread.is_alive():
                logger.warning(f"Subscription {self.name} worker still running after {self.join_timeout}s")
        logger.info(f"Subscription {self.name} closed")

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc) -> None:
        self.unsubscribe()


class ChangeFeed:
    """Realtime change notifications for store tables, carried over Redis pub/sub."""

    def __init__(self, url: str | None = None, client: redis.Redis | None = None, prefix: str | None = None):
        self.redis = client or redis.Redis.from_url(url or REDIS_URL, decode_responses=True)
        self.prefix = prefix or CHANGE_CHANNEL_PREFIX

    def channel(self, table: str) -> str:
        return f"{self.prefix}:{table}"

    @redis_retry()
    def _publish(self, channel: str, payload: str) -> int:
        return self.redis.publish(channel, payload)

    def publish(self, table: str, event: str, record_id: int | None) -> None:
        payload = json.dumps({"table": table, "event": event, "id": record_id})
        try:
            self._publish(self.channel(table), payload)
        except RedisError as e:
            # the write is already committed; listeners catch up on their next refresh
            logger.warning(f"Change notification {table}/{event} for {record_id} not delivered: {e}")

    def publish_all(self, changes: Iterable[Change]) -> None:
        for change in changes:
            self.publish(change.table, change.event, change.record_id)

    def subscribe(
        self,
        name: str,
        filters: list[tuple[str, str]],
        callback: Callable[[Change], None],
    ) -> Subscription:
        channels = {self.channel(table): table for table, _ in filters}
        sub = Subscription(
            name=name,
            pubsub=self.redis.pubsub(ignore_subscribe_messages=True),
            channels=channels,
            filters=filters,
            callback=callback,
        )
        return sub.start()
