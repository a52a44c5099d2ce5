"""
Asynchronous request/response channel.

A responder registers one handler per query kind; a requester awaits
:meth:`MessageChannel.request`.  There is no timeout, retry or
cancellation primitive: a request for a kind nobody answers stays
pending until a handler for that kind is registered, so callers that
cannot wait forever wrap the await in ``asyncio.wait_for``.

Ordering is only guaranteed within one kind.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import Any

from xereta.utils import logger

log = logger.create_logger("Channel")

Handler = Callable[[Any], Any | Awaitable[Any]]


class MessageChannel:
    """Named channel dispatching requests to per-kind handlers."""

    def __init__(self, name: str = "default") -> None:
        self._name = name
        self._handlers: dict[str, Handler] = {}
        self._waiting: dict[str, list[tuple[Any, asyncio.Future[Any]]]] = {}
        self._answering: set[asyncio.Task[None]] = set()

    @property
    def name(self) -> str:
        return self._name

    def register(self, kind: str, handler: Handler) -> None:
        """Answer *kind* with *handler*, replacing any previous one.

        Requests that were already waiting for *kind* are answered now;
        the channel holds the answering tasks until they finish.
        """
        self._handlers[kind] = handler
        for payload, future in self._waiting.pop(kind, []):
            if not future.done():
                task = future.get_loop().create_task(self._answer(kind, handler, payload, future))
                self._answering.add(task)
                task.add_done_callback(self._answering.discard)

    def unregister(self, kind: str) -> None:
        self._handlers.pop(kind, None)

    def pending(self, kind: str) -> int:
        """Number of unanswered requests waiting for a handler for *kind*."""
        return sum(1 for _, f in self._waiting.get(kind, []) if not f.done())

    async def _answer(self, kind: str, handler: Handler, payload: Any, future: asyncio.Future[Any]) -> None:
        try:
            result = handler(payload)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            log.error("Handler failed", {"channel": self._name, "kind": kind, "error": str(exc)})
            if not future.done():
                future.set_exception(exc)
            return
        if not future.done():
            future.set_result(result)

    async def request(self, kind: str, payload: Any = None) -> Any:
        """Send *payload* to the handler for *kind* and await its response.

        Raises whatever the handler raises.
        """
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        handler = self._handlers.get(kind)
        if handler is None:
            log.debug("No handler yet, request pending", {"channel": self._name, "kind": kind})
            self._waiting.setdefault(kind, []).append((payload, future))
        else:
            await self._answer(kind, handler, payload, future)
        return await future
