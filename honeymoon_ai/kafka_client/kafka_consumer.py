"""
Kafka Consumer Wrapper
Async wrapper for consuming user action events from Kafka topics
"""

import asyncio
import json
from typing import Any, AsyncIterator, Dict, List, Optional

from kafka import KafkaConsumer
from kafka.errors import KafkaError
from loguru import logger
from pydantic import ValidationError

from ..config import settings
from .message_schemas import UserActionEvent


def decode_event(raw: Optional[bytes]) -> Optional[Dict[str, Any]]:
    """Deserialize a record value; undecodable records become None and are skipped"""
    if not raw:
        return None
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning(f"Skipping undecodable Kafka record: {e}")
        return None


class KafkaConsumerWrapper:
    """
    Async wrapper for Kafka consumer

    Provides async iteration over messages from subscribed topics
    """

    def __init__(
        self,
        topics: List[str],
        group_id: Optional[str] = None,
        bootstrap_servers: Optional[str] = None,
        auto_offset_reset: str = "latest",
        enable_auto_commit: bool = True
    ):
        """
        Initialize Kafka consumer

        Args:
            topics: List of topics to subscribe to
            group_id: Consumer group ID
            bootstrap_servers: Kafka broker addresses
            auto_offset_reset: Where to start reading (earliest/latest)
            enable_auto_commit: Auto commit offsets
        """
        self.topics = topics
        self.group_id = group_id or settings.KAFKA_CONSUMER_GROUP
        self.bootstrap_servers = bootstrap_servers or settings.KAFKA_BOOTSTRAP_SERVERS
        self.auto_offset_reset = auto_offset_reset
        self.enable_auto_commit = enable_auto_commit

        self._consumer: Optional[KafkaConsumer] = None
        self._running = False

    async def start(self):
        """Start the Kafka consumer"""
        if self._consumer:
            return

        try:
            # kafka-python is synchronous
            loop = asyncio.get_running_loop()
            self._consumer = await loop.run_in_executor(None, self._create_consumer)
            self._running = True
            logger.info(f"Kafka consumer started, subscribed to: {self.topics}")
        except KafkaError as e:
            logger.error(f"Failed to start Kafka consumer: {e}")
            raise

    def _create_consumer(self) -> KafkaConsumer:
        return KafkaConsumer(
            *self.topics,
            bootstrap_servers=self.bootstrap_servers.split(","),
            group_id=self.group_id,
            auto_offset_reset=self.auto_offset_reset,
            enable_auto_commit=self.enable_auto_commit,
            value_deserializer=decode_event,
            key_deserializer=lambda k: k.decode("utf-8") if k else None,
            session_timeout_ms=30000,
            heartbeat_interval_ms=3000,
            max_poll_interval_ms=300000,
            consumer_timeout_ms=1000
        )

    async def stop(self):
        """Stop the Kafka consumer"""
        self._running = False

        if self._consumer:
            try:
                loop = asyncio.get_running_loop()
                await loop.run_in_executor(None, self._consumer.close)
                logger.info("Kafka consumer stopped")
            except KafkaError as e:
                logger.error(f"Error stopping Kafka consumer: {e}")
            finally:
                self._consumer = None

    def __aiter__(self) -> AsyncIterator[Dict[str, Any]]:
        return self

    async def __anext__(self) -> Dict[str, Any]:
        if not self._running or not self._consumer:
            raise StopAsyncIteration

        loop = asyncio.get_running_loop()

        while self._running:
            try:
                message = await loop.run_in_executor(None, self._poll_message)
                if message is not None:
                    return message
                # Small delay to prevent busy waiting
                await asyncio.sleep(0.1)
            except Exception as e:
                logger.error(f"Error polling Kafka message: {e}")
                await asyncio.sleep(1)

        raise StopAsyncIteration

    def _poll_message(self) -> Optional[Dict[str, Any]]:
        """Poll for a single message (synchronous)"""
        if not self._consumer:
            return None

        try:
            records = self._consumer.poll(timeout_ms=1000, max_records=1)
        except (ValueError, KafkaError) as e:
            logger.error(f"Kafka poll failed, skipping: {e}")
            return None

        for topic_partition, messages in records.items():
            for message in messages:
                logger.debug(
                    f"Received message from {topic_partition.topic} "
                    f"partition {topic_partition.partition} "
                    f"offset {message.offset}"
                )
                return message.value
        return None


class ActionEventConsumer:
    """
    Feeds user.actions events into the personalization engine

    Args:
        engine: Anything with `async record_action(session_id, action)`
        consumer: Optional pre-built consumer wrapper
    """

    def __init__(self, engine, consumer: Optional[KafkaConsumerWrapper] = None):
        self.engine = engine
        self.consumer = consumer if consumer is not None else KafkaConsumerWrapper(
            topics=[settings.KAFKA_USER_ACTIONS_TOPIC]
        )
        self._task: Optional[asyncio.Task] = None
        self.processed = 0
        self.rejected = 0

    async def handle_event(self, payload: Dict[str, Any]) -> bool:
        """
        Validate one raw event and record it

        Returns:
            True when the event was recorded
        """
        try:
            event = UserActionEvent.model_validate(payload)
        except ValidationError as e:
            self.rejected += 1
            logger.warning(f"Rejected malformed user action event: {e.error_count()} errors")
            return False

        await self.engine.record_action(event.session_id, event.to_user_action())
        self.processed += 1
        return True

    async def run(self):
        await self.consumer.start()
        async for payload in self.consumer:
            if payload is None:
                continue
            try:
                await self.handle_event(payload)
            except Exception as e:
                self.rejected += 1
                logger.error(f"Failed to record user action event: {e}")

    def start(self):
        if self._task is None:
            self._task = asyncio.create_task(self.run())
            logger.info(f"Consuming user actions from {settings.KAFKA_USER_ACTIONS_TOPIC}")

    async def stop(self):
        await self.consumer.stop()
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.error(f"Kafka consumer task failed: {e}")
            self._task = None
        logger.info(
            f"Action consumer stopped: {self.processed} processed, {self.rejected} rejected"
        )
