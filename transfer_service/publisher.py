import json
import logging
import time

import pika
from pika.exceptions import AMQPConnectionError
from starlette.concurrency import run_in_threadpool

from .config import RABBIT_HOST, RABBIT_USER, RABBIT_PASS

logger = logging.getLogger(__name__)

NOTIFICATION_QUEUE = "notifications"
ERROR_QUEUE = "transaction_errors"


class EventPublisher:
    """Publishes transaction events to RabbitMQ; a blank host disables publishing"""

    def __init__(self, host: str = RABBIT_HOST, user: str = RABBIT_USER,
                 password: str = RABBIT_PASS, max_retries: int = 5, retry_delay: float = 2):
        self.host = host
        self.user = user
        self.password = password
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    @property
    def enabled(self) -> bool:
        return bool(self.host)

    def get_channel(self):
        """Get RabbitMQ channel with retry logic"""
        retry_count = 0

        while True:
            try:
                creds = pika.PlainCredentials(self.user, self.password)
                params = pika.ConnectionParameters(
                    host=self.host,
                    credentials=creds,
                    heartbeat=600,
                    blocked_connection_timeout=300
                )
                conn = pika.BlockingConnection(params)
                return conn, conn.channel()
            except AMQPConnectionError:
                retry_count += 1
                if retry_count >= self.max_retries:
                    logger.error("Failed to connect to RabbitMQ after %d attempts", self.max_retries)
                    raise
                logger.warning("RabbitMQ connection attempt %d/%d failed, retrying...",
                               retry_count, self.max_retries)
                time.sleep(self.retry_delay)

    def publish(self, message: dict, queue: str):
        """Publish a persistent message to ``queue``"""
        conn, ch = self.get_channel()
        try:
            ch.queue_declare(queue=queue, durable=True)
            ch.basic_publish(
                exchange="",
                routing_key=queue,
                body=json.dumps(message, default=str),
                properties=pika.BasicProperties(delivery_mode=2)  # Persistent message
            )
        finally:
            conn.close()
        logger.debug("Published %s to queue '%s'", message.get("type"), queue)

    async def _publish_quietly(self, message: dict, queue: str):
        if not self.enabled:
            return
        try:
            await run_in_threadpool(self.publish, message, queue)
        except Exception:
            logger.exception("Failed to publish %s to queue '%s'", message.get("type"), queue)

    async def notify(self, message: dict):
        await self._publish_quietly(message, NOTIFICATION_QUEUE)

    async def report_error(self, message: dict):
        await self._publish_quietly(message, ERROR_QUEUE)
