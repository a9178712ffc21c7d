"""Event router: parse a message, classify it, notify subscribers."""
import logging
from typing import Any, List, NamedTuple, Optional

from core.parser import Message, parse
from core.registry import SubscriptionRegistry

logger = logging.getLogger(__name__)

WILDCARD = "*"

# Dispatch order across dimensions
DIMENSIONS = ("type", "command", "event.type", "trigger_word", "payload.callback_id")


class Classification(NamedTuple):
    """One routing match: the dimension it came from and its value."""
    dimension: str
    key: str


def classify(message: Message) -> List[Classification]:
    """
    Derive the routing matches of a message.

    The wildcard always comes first, followed by every dimension whose value
    is present and non-empty, in DIMENSIONS order.
    """
    matches = [Classification(WILDCARD, WILDCARD)]
    for dimension in DIMENSIONS:
        value = _lookup(message, dimension)
        if value is None or value == "":
            continue
        matches.append(Classification(dimension, str(value)))
    return matches


def _lookup(message: Message, dimension: str) -> Optional[Any]:
    value: Any = message
    for part in dimension.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    if isinstance(value, (dict, list)):
        return None
    return value


class Router:
    """
    Routes digested messages to registry subscribers.

    With ``scoped=False`` (the default) routing keys are the bare values, so a
    handler on ``"foo"`` fires for a ``command`` or an ``event.type`` of
    ``"foo"``. With ``scoped=True`` keys are ``"<dimension>:<value>"``, for
    example ``"command:/count"`` or ``"event.type:reaction_added"``. The
    wildcard is ``"*"`` in both modes.
    """

    def __init__(self, registry: SubscriptionRegistry = None, scoped: bool = False):
        """Initialize router."""
        self.registry = registry if registry is not None else SubscriptionRegistry()
        self.scoped = scoped

    def routing_key(self, match: Classification) -> str:
        """Registry key for a classification."""
        if not self.scoped or match.dimension == WILDCARD:
            return match.key
        return f"{match.dimension}:{match.key}"

    def routing_keys(self, message: Message) -> List[str]:
        """Registry keys a message is dispatched to, in order."""
        return [self.routing_key(match) for match in classify(message)]

    def digest(self, message) -> Message:
        """
        Digest a Slack message and notify subscribers.

        Args:
            message: Raw body or decoded message

        Returns:
            The parsed message

        Raises:
            MalformedMessage: if the message cannot be parsed
        """
        message = parse(message)

        for key in self.routing_keys(message):
            self.registry.emit(key, message)

        return message
