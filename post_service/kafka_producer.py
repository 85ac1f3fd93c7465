"""
Kafka producer for publishing post events
"""
from aiokafka import AIOKafkaProducer
from typing import Optional, Dict, Any
import json
import logging

from .config import settings
from .domain.models import Post, utcnow

logger = logging.getLogger(__name__)


class KafkaProducerManager:
    """Manage Kafka producer for event publishing"""

    def __init__(self):
        self.producer: Optional[AIOKafkaProducer] = None

    async def start(self):
        """Start Kafka producer"""
        if not settings.KAFKA_ENABLED:
            logger.warning("Kafka is disabled")
            return

        try:
            self.producer = AIOKafkaProducer(
                bootstrap_servers=settings.KAFKA_BOOTSTRAP_SERVERS,
                value_serializer=lambda v: json.dumps(v).encode('utf-8'),
                key_serializer=lambda k: k.encode('utf-8') if k else None,
            )
            await self.producer.start()
            logger.info(f"Kafka producer started at {settings.KAFKA_BOOTSTRAP_SERVERS}")
        except Exception as e:
            logger.error(f"Failed to start Kafka producer: {e}")
            self.producer = None

    async def stop(self):
        """Stop Kafka producer"""
        if self.producer:
            await self.producer.stop()
            logger.info("Kafka producer stopped")

    async def publish_event(
        self,
        topic: str,
        key: str,
        event_data: Dict[str, Any]
    ) -> bool:
        """
        Publish an event to Kafka

        Args:
            topic: Kafka topic name
            key: Message key
            event_data: Event payload

        Returns:
            True if successful, False otherwise
        """
        if not self.producer:
            logger.debug("Kafka producer not available, skipping event publishing")
            return False

        try:
            await self.producer.send(topic, value=event_data, key=key)
            logger.debug(f"Published event to topic '{topic}' with key '{key}'")
            return True
        except Exception as e:
            logger.error(f"Failed to publish event to topic '{topic}': {e}")
            return False

    async def publish_post_created(self, post: Post) -> bool:
        """Publish post created event"""
        event = {
            "event_type": "post_created",
            "post_id": post.id,
            "author_id": post.author_id,
            "category": post.category,
            "post_type": post.type.value,
            "created_at": post.created_at.isoformat(),
        }
        return await self.publish_event(settings.KAFKA_TOPIC_POST_CREATED, post.id, event)

    async def publish_post_deleted(self, post_id: str, actor_id: str) -> bool:
        """Publish post deleted event"""
        event = {
            "event_type": "post_deleted",
            "post_id": post_id,
            "actor_id": actor_id,
            "deleted_at": utcnow().isoformat(),
        }
        return await self.publish_event(settings.KAFKA_TOPIC_POST_DELETED, post_id, event)


# Global Kafka producer instance
kafka_producer = KafkaProducerManager()


async def get_kafka_producer() -> KafkaProducerManager:
    """Dependency for getting Kafka producer instance"""
    return kafka_producer
