from __future__ import annotations

from codeiq.events import delta_event, extract_delta_content, extract_error_message


def test_extract_delta_content_common_shape() -> None:
    obj = {"id": "x", "model": "m", "choices": [{"index": 0, "delta": {"role": "assistant", "content": "hi"}}]}
    assert extract_delta_content(obj) == "hi"


def test_extract_delta_content_missing_hops() -> None:
    assert extract_delta_content({}) is None
    assert extract_delta_content({"choices": []}) is None
    assert extract_delta_content({"choices": ["x"]}) is None
    assert extract_delta_content({"choices": [{"delta": "text"}]}) is None
    assert extract_delta_content({"choices": [{"delta": {"content": 3}}]}) is None
    assert extract_delta_content({"choices": [{"delta": {"content": ""}}]}) is None
    assert extract_delta_content([1, 2]) is None


def test_extract_delta_content_reads_first_choice_only() -> None:
    obj = {"choices": [{"delta": {}}, {"delta": {"content": "second"}}]}
    assert extract_delta_content(obj) is None


def test_extract_error_message_precedence() -> None:
    assert extract_error_message({"message": "m", "error": "e"}, "d") == "m"
    assert extract_error_message({"error": "e"}, "d") == "e"
    assert extract_error_message({"error": {"code": 1}}, "d") == "d"
    assert extract_error_message(None, "d") == "d"


def test_delta_event_round_trips_through_extractor() -> None:
    assert extract_delta_content(delta_event("abc")) == "abc"
