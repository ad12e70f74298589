"""Lifespan composition for the sitegate app factory.

Composes multiple :class:`LifespanHook` entries into a single
FastAPI-compatible lifespan context manager.
"""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable
    from contextlib import AbstractAsyncContextManager

    from fastapi import FastAPI

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LifespanHook:
    """A startup/shutdown hook with an ordering priority.

    Attributes:
        hook: Callable ``(app) -> async context manager``.
        priority: Lower values start first and shut down last.
    """

    hook: Callable[[Any], AbstractAsyncContextManager[Any]]
    priority: int = 500


def compose_lifespan(
    hooks: list[LifespanHook],
) -> Callable[[FastAPI], AbstractAsyncContextManager[None]]:
    """Create a composite lifespan from ordered :class:`LifespanHook` entries.

    Hooks are sorted by priority (ascending). Lower priority hooks start first
    and shut down last (stack semantics via :class:`AsyncExitStack`).

    Args:
        hooks: List of LifespanHook instances.

    Returns:
        An async context manager factory suitable for FastAPI's ``lifespan`` parameter.
    """
    sorted_hooks = sorted(hooks, key=lambda h: h.priority)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        async with AsyncExitStack() as stack:
            for entry in sorted_hooks:
                logger.info(
                    "Entering lifespan hook (priority=%d): %r",
                    entry.priority,
                    entry.hook,
                )
                await stack.enter_async_context(entry.hook(app))
            yield

    return lifespan
