"""Tests for the Slack handler facade."""
import json

from platforms.slack import SlackHandler


def test_instance_has_own_defaults_and_subscriptions():
    base = SlackHandler(token="xoxb-test", signing_secret="")
    calls = []
    base.on("*", lambda m: calls.append(m))

    child = base.instance({"username": "counter"})
    child.digest({"type": "message"})

    assert calls == []
    assert child.defaults == {"username": "counter"}
    assert base.defaults == {}
    assert child.token == "xoxb-test"


def test_on_chains():
    slack = SlackHandler(signing_secret="")
    first, second = [], []

    result = slack.on("a", lambda m: first.append(m)).on("b", "c", lambda m: second.append(m))

    assert result is slack
    slack.digest({"command": "a", "trigger_word": "c"})
    assert len(first) == 1
    assert len(second) == 1


def test_defaults_cannot_be_mutated_through_property():
    slack = SlackHandler({"channel": "C1"}, signing_secret="")
    slack.defaults["channel"] = "C2"
    assert slack.defaults == {"channel": "C1"}


async def test_send_uses_instance_defaults(outbound):
    slack = SlackHandler({"channel": "C1"}, token="xoxb-test", signing_secret="", transport=outbound.transport)

    result = await slack.send_outgoing("https://hooks.slack.com/x", {"text": "hi"})

    assert result.ok
    assert json.loads(outbound.requests[0].content) == {"channel": "C1", "text": "hi"}
