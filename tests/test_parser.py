"""Tests for message parsing."""
import json
import pytest
from core.errors import MalformedMessage
from core.parser import parse


@pytest.mark.parametrize("raw,expected", [
    ('{"type": "event_callback", "event": {"type": "reaction_added"}}',
     {"type": "event_callback", "event": {"type": "reaction_added"}}),
    ('{"challenge": "xyz"}', {"challenge": "xyz"}),
    ("command=%2Fcount&user_id=U1&text=", {"command": "/count", "user_id": "U1", "text": ""}),
    ("token=abc&trigger_word=deploy", {"token": "abc", "trigger_word": "deploy"}),
    (b'{"type": "hello"}', {"type": "hello"}),
    (b"command=%2Fcount", {"command": "/count"}),
    ("", {}),
])
def test_parse_text(raw, expected):
    """JSON is tried first, then form encoding."""
    assert parse(raw) == expected


def test_repeated_form_keys_collect_into_list():
    assert parse("a=1&a=2&b=3") == {"a": ["1", "2"], "b": "3"}


@pytest.mark.parametrize("raw", [
    "not json and not a form",
    "[1, 2, 3]",
    "42",
    b"\xff\xfe",
])
def test_malformed_bodies(raw):
    with pytest.raises(MalformedMessage):
        parse(raw)


def test_unsupported_type():
    with pytest.raises(MalformedMessage):
        parse(12)


def test_payload_field_is_decoded():
    """Interactive button bodies carry the message as a JSON string in payload."""
    payload = {"callback_id": "approve", "actions": [{"name": "yes"}]}
    message = parse("payload=" + json.dumps(payload))
    assert message["payload"] == payload


def test_payload_attachments_are_decoded():
    payload = {"callback_id": "x", "attachments": json.dumps([{"text": "hi"}])}
    message = parse({"payload": json.dumps(payload)})
    assert message["payload"]["attachments"] == [{"text": "hi"}]


def test_top_level_attachments_are_decoded():
    message = parse({"attachments": '[{"text": "a"}]'})
    assert message["attachments"] == [{"text": "a"}]


def test_bad_payload_is_an_error():
    with pytest.raises(MalformedMessage):
        parse("payload=not-json")


def test_parse_is_idempotent():
    raw = "payload=" + json.dumps({"callback_id": "c", "attachments": "[1]"})
    once = parse(raw)
    assert parse(once) == once


def test_dict_input_is_not_mutated():
    original = {"payload": '{"callback_id": "c"}'}
    message = parse(original)
    assert original == {"payload": '{"callback_id": "c"}'}
    assert message["payload"] == {"callback_id": "c"}


@pytest.mark.parametrize("raw,expected", [
    ("token=x&command=%2Fcount&", {"token": "x", "command": "/count"}),
    ("token=x&&command=%2Fcount", {"token": "x", "command": "/count"}),
    ("&", {}),
])
def test_empty_form_segments_are_skipped(raw, expected):
    assert parse(raw) == expected


@pytest.mark.parametrize("raw", [
    {"attachments": "plain text"},
    "attachments=plain%20text&text=x",
])
def test_plain_top_level_attachments_are_kept(raw):
    assert parse(raw)["attachments"] == "plain text"


def test_plain_payload_attachments_are_an_error():
    with pytest.raises(MalformedMessage):
        parse({"payload": json.dumps({"attachments": "plain text"})})
