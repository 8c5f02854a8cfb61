"""
Kafka Integration Module
Consumes user action events for real-time personalization
"""

from .kafka_consumer import ActionEventConsumer, KafkaConsumerWrapper
from .message_schemas import UserActionEvent

__all__ = [
    "ActionEventConsumer",
    "KafkaConsumerWrapper",
    "UserActionEvent"
]
