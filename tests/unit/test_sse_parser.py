"""Unit tests for the Server-Sent Events line parser."""

import pytest

from ekko_client.stream.sse import SSEParser


def feed(parser, lines):
    return [payload for payload in (parser.feed_line(line) for line in lines) if payload is not None]


@pytest.mark.unit
class TestSSEParser:
    
    def test_blank_line_dispatches_message(self):
        parser = SSEParser()
        
        assert parser.feed_line('data: {"type":"connected"}\n') is None
        assert parser.feed_line("\n") == '{"type":"connected"}'
    
    def test_multiple_data_lines_are_joined(self):
        assert feed(SSEParser(), ["data: one\n", "data: two\n", "\n"]) == ["one\ntwo"]
    
    def test_crlf_and_missing_space(self):
        assert feed(SSEParser(), ["data:hello\r\n", "\r\n"]) == ["hello"]
    
    def test_only_one_leading_space_is_removed(self):
        assert feed(SSEParser(), ["data:   indented\n", "\n"]) == ["  indented"]
    
    def test_comments_and_other_fields_are_ignored(self):
        lines = [": keep-alive\n", "event: transcript\n", "id: 3\n", "retry: 100\n", "data: x\n", "\n"]
        
        assert feed(SSEParser(), lines) == ["x"]
    
    def test_blank_line_without_data(self):
        assert feed(SSEParser(), ["\n", ": ping\n", "\n"]) == []
    
    def test_consecutive_messages(self):
        lines = ["data: a\n", "\n", "data: b\n", "\n"]
        
        assert feed(SSEParser(), lines) == ["a", "b"]
