"""Per-task hook container: registration, emission and lookup.

Emission iterates over a snapshot of the registrations taken when the emit
starts, so hooks attached or detached by a running hook only affect later
emissions. Hooks run sequentially in registration order. A failing hook is
logged and skipped; it never reaches the frame that emitted the event.
"""

from dataclasses import dataclass
from typing import TypeVar

from cadence.errors import HookError
from cadence.hooks.base import HookCallable, TaskHook, as_hook
from cadence.hooks.events import (
    EventGroup,
    OnHookAttach,
    OnHookDetach,
    TaskHookEvent,
    kind_label,
)
from cadence.observability.logging import get_logger

logger = get_logger(__name__)

HookKind = type[TaskHookEvent] | EventGroup
H = TypeVar("H", bound=TaskHook)


@dataclass(frozen=True)
class HookRegistration:
    """One (kind, hook) pair. ``inherited`` marks registrations merged from a global container."""

    kind: HookKind
    hook: TaskHook
    inherited: bool = False

    def matches(self, event_type: type[TaskHookEvent]) -> bool:
        if isinstance(self.kind, EventGroup):
            return event_type in self.kind
        return self.kind is event_type


class TaskHookContainer:
    """Ordered hook registrations for one task (or for the scheduler's globals)."""

    def __init__(self, owner: str | None = None) -> None:
        self.owner = owner
        self._registrations: list[HookRegistration] = []

    def __len__(self) -> int:
        return len(self._registrations)

    @property
    def registrations(self) -> tuple[HookRegistration, ...]:
        return tuple(self._registrations)

    async def attach(self, hook: TaskHook | HookCallable, kind: HookKind) -> TaskHook:
        """Register a hook for an event class, a group, or ALL_EVENTS.

        Returns:
            The registered TaskHook (callables are wrapped), usable for detach.
        """
        registered = as_hook(hook)
        self._registrations.append(HookRegistration(kind=kind, hook=registered))
        logger.debug("hook_attached", owner=self.owner, hook=repr(registered), kind=kind_label(kind))
        await self.emit(OnHookAttach(hook=registered, kind=kind_label(kind)))
        return registered

    async def detach(self, hook: TaskHook | HookCallable, kind: HookKind) -> bool:
        """Remove one prior registration of ``hook`` for ``kind``.

        Returns:
            True if a registration was removed.
        """
        target = as_hook(hook)
        for index, registration in enumerate(self._registrations):
            if registration.kind is kind and registration.hook == target:
                del self._registrations[index]
                logger.debug("hook_detached", owner=self.owner, hook=repr(target), kind=kind_label(kind))
                await self.emit(OnHookDetach(hook=registration.hook, kind=kind_label(kind)))
                return True
        logger.warning("hook_not_found", owner=self.owner, hook=repr(target), kind=kind_label(kind))
        return False

    def merge_global(self, global_container: "TaskHookContainer") -> None:
        """Prepend registrations from a global container.

        Previously inherited registrations are replaced so repeated merges do
        not duplicate hooks. Global hooks run before the task's own.
        """
        own = [r for r in self._registrations if not r.inherited]
        inherited = [
            HookRegistration(kind=r.kind, hook=r.hook, inherited=True)
            for r in global_container.registrations
        ]
        self._registrations = inherited + own

    async def emit(self, event: TaskHookEvent) -> None:
        """Invoke every matching hook in registration order."""
        event_type = type(event)
        if not event_type.emittable:
            raise TypeError(f"{event_type.__name__} is a marker and cannot be emitted")

        snapshot = tuple(self._registrations)
        for registration in snapshot:
            if registration.matches(event_type):
                await self._invoke(registration.hook, event)

    async def _invoke(self, hook: TaskHook, event: TaskHookEvent) -> None:
        try:
            await hook.on_event(event)
        except Exception as exc:
            error = HookError(hook, event.event_key, exc)
            logger.error(
                "hook_failed",
                owner=self.owner,
                hook=repr(hook),
                event_key=event.event_key,
                error_code=error.error_code.value,
                error=str(exc),
                exc_info=True,
            )

    def get(self, hook_type: type[H], kind: HookKind | None = None) -> H | None:
        """Return the first registered hook of ``hook_type``, optionally for a given kind."""
        for registration in self._registrations:
            if kind is not None and registration.kind is not kind:
                continue
            if isinstance(registration.hook, hook_type):
                return registration.hook
        return None

    def get_all(self, hook_type: type[H], kind: HookKind | None = None) -> list[H]:
        return [
            registration.hook
            for registration in self._registrations
            if (kind is None or registration.kind is kind) and isinstance(registration.hook, hook_type)
        ]

    def has(self, hook_type: type[TaskHook], kind: HookKind | None = None) -> bool:
        return self.get(hook_type, kind) is not None
