"""
Change notifications over Redis pub/sub.

Every write to a watched table publishes a small JSON message on
``<CHANGE_FEED_PREFIX>:<table>``. Consumers subscribe through
``ChangeFeed.subscribe``; a background thread owns the Redis subscription and
hands typed ``Change`` events to the consumer's handler until the returned
``Subscription`` is closed.
"""
import json
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

import redis
from django.conf import settings
from django.db import transaction

logger = logging.getLogger(__name__)

INSERT = 'INSERT'
UPDATE = 'UPDATE'
DELETE = 'DELETE'

_redis_client = None
_redis_client_lock = threading.Lock()


def get_redis_client():
    """Process-wide Redis client; its connection pool is shared by every ChangeFeed"""
    global _redis_client
    if _redis_client is None:
        with _redis_client_lock:
            if _redis_client is None:
                _redis_client = redis.Redis(
                    host=settings.REDIS_HOST,
                    port=int(settings.REDIS_PORT),
                    db=int(settings.REDIS_DB),
                    decode_responses=True
                )
    return _redis_client


@dataclass(frozen=True)
class Change:
    table: str
    event: str
    id: Optional[str] = None

    def to_json(self) -> str:
        return json.dumps({'table': self.table, 'event': self.event, 'id': self.id})

    @classmethod
    def from_json(cls, raw: str) -> 'Change':
        try:
            data = json.loads(raw)
            return cls(table=data['table'], event=data['event'], id=data.get('id'))
        except (TypeError, ValueError, KeyError) as exc:
            raise ValueError(f'Malformed change message: {raw!r}') from exc


class Subscription:
    """Handle for a running subscription; close() unsubscribes and stops the thread"""

    def __init__(self, pubsub, thread):
        self.pubsub = pubsub
        self.thread = thread
        self.closed = False

    def close(self):
        if self.closed:
            return
        self.closed = True
        self.thread.stop()
        self.pubsub.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


class ChangeFeed:
    """Publish and subscribe to table change events"""

    def __init__(self, redis_client=None):
        self.redis_client = redis_client or get_redis_client()

    @staticmethod
    def channel_for(table: str) -> str:
        return f"{getattr(settings, 'CHANGE_FEED_PREFIX', 'canteen:changes')}:{table}"

    def publish(self, change: Change) -> bool:
        """
        Publish a change event

        Args:
            change: The change to announce

        Returns:
            True if Redis accepted the message, False if Redis was unreachable
        """
        try:
            self.redis_client.publish(self.channel_for(change.table), change.to_json())
        except redis.RedisError as exc:
            # Listeners miss one refresh; the write itself already committed
            logger.warning('Could not publish %s on %s: %s', change.event, change.table, exc)
            return False
        return True

    def subscribe(self, table: str, handler: Callable[[Change], None], poll_interval: float = 0.1) -> Subscription:
        """
        Start listening for changes on a table

        Args:
            table: Table name, e.g. "orders"
            handler: Called from the listener thread with each Change
            poll_interval: Seconds the listener thread sleeps between polls

        Returns:
            Subscription to close when the consumer shuts down
        """
        def on_message(message):
            try:
                change = Change.from_json(message['data'])
            except ValueError:
                logger.warning('Ignoring malformed message on %s', table)
                return
            handler(change)

        pubsub = self.redis_client.pubsub(ignore_subscribe_messages=True)
        pubsub.subscribe(**{self.channel_for(table): on_message})
        thread = pubsub.run_in_thread(sleep_time=poll_interval, daemon=True)
        logger.info('Subscribed to %s changes', table)
        return Subscription(pubsub, thread)


def publish_change(table: str, event: str, record_id=None):
    """Announce a change once the surrounding transaction commits"""
    change = Change(table=table, event=event, id=str(record_id) if record_id is not None else None)
    transaction.on_commit(lambda: ChangeFeed().publish(change))
