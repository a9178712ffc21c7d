"""Decode raw Slack request bodies into message dicts."""
import json
from typing import Any, Dict, Union
from urllib.parse import parse_qsl

from core.errors import MalformedMessage

Message = Dict[str, Any]

# Fields that Slack delivers as JSON strings inside an otherwise decoded body
NESTED_JSON_FIELDS = ("payload", "attachments")

# Decoded when they hold JSON, left as they are otherwise
LENIENT_FIELDS = ("attachments",)


def parse(raw: Union[Message, str, bytes]) -> Message:
    """
    Parse a Slack message.

    Strings are decoded as JSON first and as a query string when that fails.
    A string ``payload`` (interactive buttons) is decoded in place, as is a
    string ``attachments`` inside it. A top-level ``attachments`` string is
    decoded only when it holds JSON. Fields that are already structured are
    left alone, so parsing a parsed message returns an equal message.

    Args:
        raw: Request body or an already decoded mapping

    Returns:
        The decoded message

    Raises:
        MalformedMessage: if no decoding applies
    """
    if isinstance(raw, dict):
        message = dict(raw)
    elif isinstance(raw, (str, bytes, bytearray)):
        message = _decode_text(raw)
    else:
        raise MalformedMessage(f"Cannot parse message of type {type(raw).__name__}", raw)

    _decode_nested(message, lenient=LENIENT_FIELDS)
    payload = message.get("payload")
    if isinstance(payload, dict):
        message["payload"] = dict(payload)
        _decode_nested(message["payload"], fields=("attachments",))
    return message


def _decode_text(raw: Union[str, bytes, bytearray]) -> Message:
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedMessage(f"Body is not valid UTF-8: {e}", raw) from e

    if not raw.strip():
        return {}

    try:
        decoded = json.loads(raw)
    except ValueError:
        pass
    else:
        if not isinstance(decoded, dict):
            raise MalformedMessage("JSON body is not an object", raw)
        return decoded

    # Empty segments from doubled or trailing separators carry nothing
    raw = "&".join(segment for segment in raw.split("&") if segment)
    if not raw:
        return {}

    try:
        pairs = parse_qsl(raw, keep_blank_values=True, strict_parsing=True)
    except ValueError as e:
        raise MalformedMessage(f"Body is neither JSON nor form encoded: {e}", raw) from e

    # Repeated keys collect into a list, as querystring decoders do
    message: Message = {}
    for key, value in pairs:
        if key in message:
            existing = message[key]
            if isinstance(existing, list):
                existing.append(value)
            else:
                message[key] = [existing, value]
        else:
            message[key] = value
    return message


def _decode_nested(message: Message, fields=NESTED_JSON_FIELDS, lenient=()):
    for field in fields:
        value = message.get(field)
        if not isinstance(value, str):
            continue
        try:
            message[field] = json.loads(value)
        except ValueError as e:
            if field in lenient:
                continue
            raise MalformedMessage(f"Field '{field}' is not valid JSON: {e}", value) from e
