"""Event hook bus.

An ``EventBus`` is a plain value owned by the orchestrator; there is no
process-wide hook registry. Hooks for one event run in registration order and
each hook is isolated: an exception is logged against that hook and recorded
as a ``HookFailure``, and the remaining hooks still run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass

from toolsmith.recipes.model import Hook

__all__ = [
    "PRE_DEPENDENCY_RESOLUTION",
    "POST_DEPENDENCY_RESOLUTION",
    "PRE_INSTALL",
    "POST_INSTALL",
    "WELL_KNOWN_EVENTS",
    "HookFailure",
    "EventBus",
    "hook_name",
]

logger = logging.getLogger(__name__)

PRE_DEPENDENCY_RESOLUTION = "pre_dependency_resolution"
POST_DEPENDENCY_RESOLUTION = "post_dependency_resolution"
PRE_INSTALL = "pre_install"
POST_INSTALL = "post_install"

WELL_KNOWN_EVENTS = (
    PRE_DEPENDENCY_RESOLUTION,
    POST_DEPENDENCY_RESOLUTION,
    PRE_INSTALL,
    POST_INSTALL,
)


def hook_name(callback: Hook) -> str:
    module = getattr(callback, "__module__", None) or ""
    name = getattr(callback, "__qualname__", None) or type(callback).__name__
    return f"{module}.{name}" if module else name


@dataclass(frozen=True, slots=True)
class HookFailure:
    """A hook that raised while its event was being fired."""

    event: str
    hook_name: str
    error: str


class EventBus:
    """Named events with ordered, isolated callbacks."""

    def __init__(self) -> None:
        self._hooks: dict[str, list[Hook]] = {}

    def add_hook(self, event: str, callback: Hook) -> None:
        """Register ``callback`` for ``event``; adding it twice is a no-op."""
        if not event:
            raise ValueError("Event name cannot be empty")
        if not callable(callback):
            raise TypeError(f"Hook for {event!r} is not callable")
        callbacks = self._hooks.setdefault(event, [])
        if callback not in callbacks:
            callbacks.append(callback)

    def hooks(self, event: str) -> tuple[Hook, ...]:
        return tuple(self._hooks.get(event, ()))

    def fire(
        self,
        event: str,
        context: Mapping[str, object] | None = None,
        *,
        bound: Iterable[Hook] = (),
        redact: Callable[[str], str] | None = None,
    ) -> list[HookFailure]:
        """Run ``bound`` callbacks, then the bus's callbacks for ``event``.

        ``redact`` scrubs each error message before it is logged or recorded.

        Returns:
            One HookFailure per callback that raised (empty when all succeeded).
        """
        payload: Mapping[str, object] = {"event": event, **(context or {})}
        failures: list[HookFailure] = []
        for callback in (*bound, *self._hooks.get(event, ())):
            name = hook_name(callback)
            try:
                callback(payload)
            except Exception as e:  # noqa: BLE001
                error = redact(str(e)) if redact else str(e)
                logger.warning("Hook %s failed on %s: %s", name, event, error)
                failures.append(HookFailure(event=event, hook_name=name, error=error))
        return failures
