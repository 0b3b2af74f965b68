"""Tests for the SSE frame parser in ssepush.testing.sse."""

from ssepush.realtime.events import Comment, Message
from ssepush.testing.sse import parse_sse_frames


class TestParseSSEFrames:
    """Unit tests for parse_sse_frames()."""

    def test_single_data_event(self) -> None:
        events, comments = parse_sse_frames("data: hello\n\n")
        assert events == [Message(data="hello")]
        assert comments == []

    def test_event_without_data(self) -> None:
        events, _ = parse_sse_frames("event: open\n\n")
        assert events == [Message(event="open")]

    def test_multiple_events(self) -> None:
        events, _ = parse_sse_frames("data: first\n\ndata: second\n\n")
        assert [e.data for e in events] == ["first", "second"]

    def test_multiline_data(self) -> None:
        events, _ = parse_sse_frames("data: line1\ndata: line2\ndata: line3\n\n")
        assert events[0].data == "line1\nline2\nline3"

    def test_trailing_whitespace_preserved_in_data(self) -> None:
        events, _ = parse_sse_frames("data: Hi \n\ndata: there!\n\n")
        assert "".join(e.data for e in events) == "Hi there!"

    def test_all_fields(self) -> None:
        events, _ = parse_sse_frames("event: update\ndata: msg\nid: 7\nretry: 3000\n\n")
        assert events == [Message(event="update", data="msg", id="7", retry="3000")]

    def test_comments_collected(self) -> None:
        events, comments = parse_sse_frames(": heartbeat\n\ndata: payload\n\n: heartbeat\n\n")
        assert [e.data for e in events] == ["payload"]
        assert comments == ["heartbeat", "heartbeat"]

    def test_multiline_comment(self) -> None:
        _, comments = parse_sse_frames(Comment("a\nb").encode())
        assert comments == ["a\nb"]

    def test_empty_input(self) -> None:
        assert parse_sse_frames("") == ([], [])

    def test_blank_event_block_ignored(self) -> None:
        assert parse_sse_frames(Message().encode()) == ([], [])

    def test_reads_encoder_output(self) -> None:
        original = [
            Message(event="open"),
            Message(event="time", data="12:00\n12:01"),
            Message(data="", id="9"),
            Message(event="close"),
        ]
        events, _ = parse_sse_frames("".join(m.encode() for m in original))
        assert events == original
