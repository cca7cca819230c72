"""
Patch lifecycle events.

Listeners subscribe by event name and are called synchronously, in
subscription order, with a PatchEvent.
"""

from dataclasses import dataclass
from typing import Callable

from autopatch.host import Package
from autopatch.patches.models import Patch

PRE_PATCH_APPLY = "pre-patch-apply"
POST_PATCH_APPLY = "post-patch-apply"


@dataclass(frozen=True)
class PatchEvent:
    """Payload delivered to lifecycle listeners."""

    name: str
    package: Package
    patch: Patch

    @property
    def url(self) -> str:
        return self.patch.url

    @property
    def description(self) -> str:
        return self.patch.description


Listener = Callable[[PatchEvent], None]


class EventDispatcher:
    """Minimal synchronous event bus."""

    def __init__(self):
        self._listeners: dict[str, list[Listener]] = {}

    def add_listener(self, event_name: str, listener: Listener) -> None:
        self._listeners.setdefault(event_name, []).append(listener)

    def remove_listener(self, event_name: str, listener: Listener) -> None:
        listeners = self._listeners.get(event_name, [])
        if listener in listeners:
            listeners.remove(listener)

    def dispatch(self, event: PatchEvent) -> None:
        for listener in list(self._listeners.get(event.name, [])):
            listener(event)
