"""Subscription registry: routing key -> ordered callbacks."""
import asyncio
import inspect
import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, Set, Tuple

logger = logging.getLogger(__name__)


class SubscriptionRegistry:
    """Stores handler callbacks by routing key and notifies them in order."""

    def __init__(self):
        """Initialize registry."""
        self._subscriptions: Dict[str, List[Callable]] = defaultdict(list)
        self._pending: Set[asyncio.Task] = set()

    def on(self, *names):
        """
        Register a callback under one or more routing keys.

        The last positional argument is the callback. Without a callable the
        call returns a decorator, so both of these work::

            registry.on("/count", "reaction_added", handle)

            @registry.on("/count")
            def handle(message): ...

        Returns:
            The registry for chaining, or a decorator
        """
        if names and callable(names[-1]):
            *keys, callback = names
            self._register(keys, callback)
            return self

        def decorator(callback: Callable) -> Callable:
            self._register(names, callback)
            return callback

        return decorator

    def _register(self, keys, callback: Callable):
        if not keys:
            raise ValueError("At least one routing key is required")
        for key in keys:
            self._subscriptions[key].append(callback)

    def listeners(self, key: str) -> Tuple[Callable, ...]:
        """Callbacks registered under key, in registration order."""
        return tuple(self._subscriptions.get(key, ()))

    def emit(self, key: str, message: Any) -> int:
        """
        Notify every callback registered under key.

        Callback failures are logged and do not stop the remaining callbacks.
        Coroutine callbacks are scheduled on the running loop and not awaited.

        Returns:
            Number of callbacks notified
        """
        callbacks = self._subscriptions.get(key)
        if not callbacks:
            return 0

        for callback in list(callbacks):
            try:
                result = callback(message)
            except Exception:
                logger.exception(f"Handler {_name(callback)} failed for '{key}'")
                continue
            if inspect.isawaitable(result):
                self._schedule(key, callback, result)
        return len(callbacks)

    def _schedule(self, key: str, callback: Callable, awaitable):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop to hand the coroutine to, run it here
            try:
                asyncio.run(_await(awaitable))
            except Exception:
                logger.exception(f"Handler {_name(callback)} failed for '{key}'")
            return

        task = loop.create_task(_await(awaitable))
        self._pending.add(task)

        def done(t: asyncio.Task):
            self._pending.discard(t)
            if t.cancelled():
                return
            exc = t.exception()
            if exc is not None:
                logger.error(
                    f"Handler {_name(callback)} failed for '{key}': {exc}",
                    exc_info=exc
                )

        task.add_done_callback(done)

    async def drain(self):
        """Wait for all scheduled coroutine handlers to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


async def _await(awaitable):
    return await awaitable


def _name(callback: Callable) -> str:
    return getattr(callback, "__qualname__", None) or repr(callback)
