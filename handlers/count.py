"""/count slash command: per-user counter kept in the key-value store."""
import logging
from typing import Any, Callable, Dict, Optional

from data.store import KeyValueStore, StoreError

logger = logging.getLogger(__name__)


def build_reply(user_id: str, user_name: str, count: int) -> Dict[str, Any]:
    """Reply message for a count."""
    return {
        "channel": user_id,
        "text": f"Current count for {user_name} is: {count}",
        "response_type": "in_channel",
    }


def register(slack, get_store: Callable[[], Optional[KeyValueStore]]):
    """
    Register the /count handler on a Slack handler.

    Args:
        slack: SlackHandler to subscribe on and reply through
        get_store: Returns the connected store, or None
    """

    async def reply_error(user_id: str, response_url: str, text: str, reason):
        logger.error(f"{text} {reason}")
        await slack.send(response_url, {"channel": user_id, "text": text})

    @slack.on("/count")
    async def count(message: Dict[str, Any]):
        user_id = message.get("user_id", "")
        user_name = message.get("user_name", "")
        response_url = message.get("response_url", "")

        store = get_store()
        if store is None:
            await reply_error(user_id, response_url, "Error database connection failed.", "no store")
            return

        try:
            current = await store.get(user_id)
            current = current + 1 if current else 1
            await store.set(user_id, current)
        except StoreError as e:
            await reply_error(user_id, response_url, "Error database get value.", e)
            return
        logger.info(f"Saved count ({current}) for: {user_id}")

        result = await slack.send(response_url, build_reply(user_id, user_name, current))
        if result.ok:
            logger.info("Response sent to /count slash command")
        else:
            logger.error(f"An error occurred when responding to /count slash command: {result.error}")

    return count
