"""Action handler registry.

This module provides:
- A registry mapping action references (e.g. "plugin.http.get") to handlers
- A process-wide registry populated once, at import of ``actiongraph.library``
- The cancellation signal handed to every handler attempt

Design:
- A handler is ``async (node, input, signal) -> dict``. It receives the node
  descriptor and the fully resolved input, and returns the node's output map
  or raises. The engine treats handlers opaquely.
- Handlers must not keep run-specific state; everything they need arrives in
  ``input``. This is what makes the global registry safe to share between
  concurrent runs.

Example:
    @register_action("my.action")
    async def my_action(node, input, signal) -> dict:
        return {"echo": input}
"""

from __future__ import annotations

import asyncio
import sys
from typing import Any, Awaitable, Callable

from actiongraph.domain.models import WorkflowNode
from actiongraph.execution.errors import DispatchError


class CancellationSignal:
    """Cooperative cancellation flag for a single handler attempt.

    The engine sets it when an attempt is abandoned (timeout enforcement).
    Long-running handlers may poll ``cancelled`` or ``await wait()``.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str | None = None) -> None:
        self.reason = reason
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


ActionHandler = Callable[[WorkflowNode, dict[str, Any], CancellationSignal], Awaitable[dict[str, Any]]]


class ActionRegistry:
    """Registry of action handlers keyed by action reference.

    Example:
        registry = ActionRegistry()

        @registry.register_handler("plugin.core.noop")
        async def noop(node, input, signal):
            return {}

        handler = registry.require("plugin.core.noop")
    """

    def __init__(self, handlers: dict[str, ActionHandler] | None = None) -> None:
        self._handlers: dict[str, ActionHandler] = dict(handlers or {})

    def register(self, action_ref: str, handler: ActionHandler) -> None:
        """Register a handler for an action reference, replacing any previous one."""
        self._handlers[action_ref] = handler

    def register_handler(self, action_ref: str) -> Callable[[ActionHandler], ActionHandler]:
        """Decorator form of :meth:`register`."""
        def decorator(handler: ActionHandler) -> ActionHandler:
            self.register(action_ref, handler)
            return handler
        return decorator

    def get(self, action_ref: str) -> ActionHandler | None:
        return self._handlers.get(action_ref)

    def require(self, action_ref: str) -> ActionHandler:
        """Look up a handler.

        Raises:
            DispatchError: If nothing is registered for ``action_ref``
        """
        handler = self._handlers.get(action_ref)
        if handler is None:
            sys.stderr.write(
                f"[REGISTRY] No handler for '{action_ref}'. "
                f"Available: {', '.join(self.action_refs())}\n"
            )
            sys.stderr.flush()
            raise DispatchError(action_ref)
        return handler

    def has_action(self, action_ref: str) -> bool:
        return action_ref in self._handlers

    def action_refs(self) -> list[str]:
        return sorted(self._handlers)

    def copy(self) -> "ActionRegistry":
        """Independent registry seeded with the same handlers (handy in tests)."""
        return ActionRegistry(self._handlers)


# Global registry instance
_global_registry = ActionRegistry()


def register_action(action_ref: str) -> Callable[[ActionHandler], ActionHandler]:
    """Decorator registering a handler in the global registry."""
    return _global_registry.register_handler(action_ref)


def get_action_handler(action_ref: str) -> ActionHandler | None:
    return _global_registry.get(action_ref)


def has_action(action_ref: str) -> bool:
    return _global_registry.has_action(action_ref)


def get_global_registry() -> ActionRegistry:
    """Return the process-wide registry with the built-in actions loaded."""
    import actiongraph.library  # noqa: F401

    return _global_registry
