from __future__ import annotations

import asyncio

import pytest

from codeplayer.core.errors import CodePlayerError, RelayMessageError
from codeplayer.domain import LogKind
from codeplayer.preview.relay import MAX_MESSAGE_CHARS, RelayChannel, RelayMessage


def _payload(**overrides):
    payload = {"type": "console", "logType": "log", "executionId": 1, "message": "hi"}
    payload.update(overrides)
    return payload


class TestRelayMessageParse:
    def test_parse_valid(self):
        msg = RelayMessage.parse(_payload(logType="warn", executionId=4))
        assert msg.log_type == LogKind.WARN
        assert msg.execution_id == 4
        assert msg.message == "hi"
        assert msg.to_dict() == {"type": "console", "logType": "warn", "executionId": 4, "message": "hi"}

    @pytest.mark.parametrize(
        "payload",
        [
            "not an object",
            None,
            _payload(type="other"),
            _payload(logType="debug"),
            _payload(executionId="1"),
            _payload(executionId=True),
            {"type": "console", "logType": "log", "message": "no id"},
        ],
    )
    def test_parse_rejects_malformed(self, payload):
        with pytest.raises(RelayMessageError):
            RelayMessage.parse(payload)

    def test_parse_coerces_and_truncates_message(self):
        assert RelayMessage.parse(_payload(message=42)).message == "42"
        long = RelayMessage.parse(_payload(message="x" * (MAX_MESSAGE_CHARS + 10)))
        assert len(long.message) == MAX_MESSAGE_CHARS


@pytest.mark.asyncio
async def test_channel_delivers_in_order_to_single_subscriber():
    received = []
    channel = RelayChannel()
    channel.subscribe(received.append)

    assert channel.post(_payload(message="a"))
    assert channel.post(_payload(message="b"))
    assert channel.post(_payload(message="c", executionId=2))
    await asyncio.wait_for(channel.join(), timeout=1)

    assert [m.message for m in received] == ["a", "b", "c"]
    await channel.close()


@pytest.mark.asyncio
async def test_channel_drops_malformed_without_raising():
    received = []
    channel = RelayChannel()
    channel.subscribe(received.append)

    assert channel.post({"type": "unrelated"}) is False
    assert channel.post([1, 2, 3]) is False
    assert channel.post(_payload()) is True
    await asyncio.wait_for(channel.join(), timeout=1)

    assert len(received) == 1
    await channel.close()


@pytest.mark.asyncio
async def test_channel_accepts_async_subscriber_and_survives_handler_failure():
    seen = []

    async def handler(message):
        if message.message == "boom":
            raise ValueError("handler failed")
        seen.append(message.message)

    channel = RelayChannel()
    channel.subscribe(handler)
    channel.post(_payload(message="boom"))
    channel.post(_payload(message="after"))
    await asyncio.wait_for(channel.join(), timeout=1)

    assert seen == ["after"]
    await channel.close()


@pytest.mark.asyncio
async def test_channel_allows_one_subscriber_only():
    channel = RelayChannel()
    channel.subscribe(lambda m: None)
    with pytest.raises(CodePlayerError):
        channel.subscribe(lambda m: None)
    await channel.close()
    assert channel.post(_payload()) is False
