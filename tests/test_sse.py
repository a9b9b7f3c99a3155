"""Tests for upstream line decoding."""

import httpx
import pytest

from duckproxy.core.exceptions import EventParseError
from duckproxy.core.sse import (
    DONE,
    encode_sse_frame,
    extract_message,
    iter_upstream_messages,
    parse_event_line,
)


async def _lines(*lines):
    for line in lines:
        yield line


async def _collect(lines):
    return [message async for message in iter_upstream_messages(lines)]


class TestParseEventLine:
    """Tests for parse_event_line."""

    def test_returns_none_without_prefix(self):
        assert parse_event_line("") is None
        assert parse_event_line("event: ping") is None
        assert parse_event_line('data:{"message":"x"}') is None

    def test_decodes_json_object(self):
        assert parse_event_line('data: {"message":"a"}\n') == {"message": "a"}

    def test_done_sentinel(self):
        assert parse_event_line("data: [DONE]") is DONE
        assert parse_event_line("data: [DONE]  \r\n") is DONE

    def test_invalid_json_raises(self):
        with pytest.raises(EventParseError) as exc_info:
            parse_event_line("data: notjson")
        assert exc_info.value.line == "data: notjson"

    def test_non_object_raises(self):
        with pytest.raises(EventParseError, match="expected object"):
            parse_event_line('data: ["a"]')


class TestExtractMessage:
    """Tests for extract_message."""

    def test_string_message(self):
        assert extract_message({"message": "hi"}) == "hi"

    def test_empty_string_is_kept(self):
        assert extract_message({"message": ""}) == ""

    @pytest.mark.parametrize("event", [{}, {"message": None}, {"message": 3}, {"message": ["x"]}])
    def test_other_shapes_give_none(self, event):
        assert extract_message(event) is None


@pytest.mark.asyncio
async def test_iter_upstream_messages_skips_malformed_lines():
    messages = await _collect(
        _lines(
            'data: {"message":"a"}\n',
            "data: notjson\n",
            ": comment",
            'data: {"message":null}\n',
            'data: {"message":"b"}\n',
        )
    )
    assert messages == ["a", "b"]


@pytest.mark.asyncio
async def test_iter_upstream_messages_stops_at_done():
    messages = await _collect(
        _lines('data: {"message":"a"}', "data: [DONE]", 'data: {"message":"late"}')
    )
    assert messages == ["a"]


@pytest.mark.asyncio
async def test_iter_upstream_messages_propagates_read_errors():
    async def broken():
        yield 'data: {"message":"a"}'
        raise httpx.ReadError("connection reset")

    with pytest.raises(httpx.ReadError):
        await _collect(broken())


def test_encode_sse_frame():
    assert encode_sse_frame({"a": "é"}) == 'data: {"a": "é"}\n\n'
