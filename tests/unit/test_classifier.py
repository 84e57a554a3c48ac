"""Unit tests for stream payload classification."""

import pytest

from ekko_client.models.events import ConnectedEvent, SessionEndedEvent, UtteranceEvent
from ekko_client.stream.classifier import classify, parse_payload


@pytest.mark.unit
class TestParsePayload:
    
    def test_valid_json(self):
        result = parse_payload('{"text": "x"}')
        
        assert result.ok
        assert result.value == {"text": "x"}
    
    def test_invalid_json_is_a_result_not_an_exception(self):
        result = parse_payload("hello")
        
        assert not result.ok
        assert result.value is None
        assert result.error


@pytest.mark.unit
class TestClassify:
    
    def test_connected(self):
        assert classify('{"type":"connected"}') == ConnectedEvent(via="server")
    
    def test_ended(self):
        assert classify('{"type":"ended"}') == SessionEndedEvent()
    
    def test_structured_utterance(self):
        assert classify('{"text":"x","seq":7}') == UtteranceEvent(text="x", sequence=7)
    
    def test_utterance_without_sequence(self):
        assert classify('{"text":"hi there"}') == UtteranceEvent(text="hi there", sequence=None)
    
    def test_plain_text(self):
        event = classify("hello")
        
        assert event == UtteranceEvent(text="hello", sequence=None)
    
    @pytest.mark.parametrize("raw", ["", "   ", "\n", None])
    def test_empty_payloads_are_ignored(self, raw):
        assert classify(raw) is None
    
    @pytest.mark.parametrize("raw", ['{"foo": 1}', '{"text": ""}', '{"type": "progress"}', "42", "[1, 2]"])
    def test_unrecognised_json_falls_back_to_raw_text(self, raw):
        assert classify(raw) == UtteranceEvent(text=raw, sequence=None)
    
    @pytest.mark.parametrize("seq", ["0", "-3", '"7"', "true", "1.5", "null"])
    def test_invalid_sequence_is_dropped(self, seq):
        event = classify('{"text": "x", "seq": %s}' % seq)
        
        assert event == UtteranceEvent(text="x", sequence=None)
    
    def test_type_takes_precedence_over_text(self):
        assert classify('{"type":"ended","text":"bye"}') == SessionEndedEvent()
