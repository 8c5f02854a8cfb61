import json

from honeymoon_ai.kafka_client.kafka_consumer import ActionEventConsumer, KafkaConsumerWrapper, decode_event
from honeymoon_ai.kafka_client.message_schemas import UserActionEvent
from honeymoon_ai.schemas.ai_schemas import ActionType


class RecordingEngine:
    def __init__(self):
        self.recorded = []

    async def record_action(self, session_id, action):
        self.recorded.append((session_id, action))


def test_event_converts_to_action():
    event = UserActionEvent.model_validate({
        "session_id": "s1",
        "user_id": "u1",
        "type": "package_view",
        "target": "pkg-bali-jungle",
        "timestamp": "2025-06-01T10:15:00",
    })

    action = event.to_user_action()

    assert action.type == ActionType.PACKAGE_VIEW
    assert action.metadata["user_id"] == "u1"
    assert action.timestamp.tzinfo is not None


async def test_valid_event_is_recorded():
    engine = RecordingEngine()
    consumer = ActionEventConsumer(engine, consumer=object())

    assert await consumer.handle_event({"session_id": "s1", "type": "search", "target": "bali"})
    assert engine.recorded[0][0] == "s1"
    assert consumer.processed == 1


async def test_malformed_event_is_rejected():
    engine = RecordingEngine()
    consumer = ActionEventConsumer(engine, consumer=object())

    assert not await consumer.handle_event({"session_id": "s1", "type": "teleport"})
    assert engine.recorded == []
    assert consumer.rejected == 1


class ScriptedConsumer:
    """Async-iterable stand-in for the Kafka wrapper"""

    def __init__(self, payloads):
        self.payloads = payloads
        self.started = False

    async def start(self):
        self.started = True

    async def stop(self):
        pass

    async def __aiter__(self):
        for payload in self.payloads:
            yield payload


class RaisingKafkaConsumer:
    def poll(self, timeout_ms, max_records):
        raise json.JSONDecodeError("Expecting value", "{oops", 0)


def test_undecodable_record_value_is_skipped():
    assert decode_event(b"{oops") is None
    assert decode_event(b"\xff\xfe") is None
    assert decode_event(b"") is None
    assert decode_event(b'{"session_id": "s1"}') == {"session_id": "s1"}


def test_poll_failure_returns_no_message():
    wrapper = KafkaConsumerWrapper(topics=["user.actions"])
    wrapper._consumer = RaisingKafkaConsumer()

    assert wrapper._poll_message() is None


async def test_run_survives_bad_payloads():
    engine = RecordingEngine()
    consumer = ActionEventConsumer(engine, consumer=ScriptedConsumer([
        None,
        {"session_id": "s1", "type": "teleport"},
        ["not", "an", "object"],
        {"session_id": "s1", "type": "search", "target": "bali"},
    ]))

    await consumer.run()

    assert consumer.processed == 1
    assert consumer.rejected == 2
    assert engine.recorded[0][1].target == "bali"


async def test_run_keeps_going_when_recording_fails():
    class FailingOnceEngine(RecordingEngine):
        async def record_action(self, session_id, action):
            if not self.recorded and action.target == "boom":
                self.recorded.append(None)
                raise RuntimeError("engine unavailable")
            await super().record_action(session_id, action)

    engine = FailingOnceEngine()
    consumer = ActionEventConsumer(engine, consumer=ScriptedConsumer([
        {"session_id": "s1", "type": "search", "target": "boom"},
        {"session_id": "s1", "type": "search", "target": "bali"},
    ]))

    await consumer.run()

    assert consumer.processed == 1
    assert consumer.rejected == 1
    assert engine.recorded[-1][1].target == "bali"
