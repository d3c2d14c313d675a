"""Component lifecycle notifications feeding the test registries."""

import logging
import threading
from collections.abc import Callable
from typing import Protocol, TypeAlias

log = logging.getLogger(__name__)

ComponentCallback: TypeAlias = Callable[[str], None]
_Hooks: TypeAlias = tuple[ComponentCallback, ComponentCallback]


class ComponentLifecycleSource(Protocol):
    """Something that reports components being loaded and unloaded."""

    def subscribe(
        self, on_add: ComponentCallback, on_remove: ComponentCallback
    ) -> Callable[[], None]:
        """Register lifecycle hooks and return a function that unsubscribes.

        Components already present are reported to ``on_add`` right away.
        """
        ...


class ComponentHub:
    """In-process component source driven by the host application.

    The host calls :meth:`add` and :meth:`remove` as components come and go;
    every subscriber is notified on the calling thread, in the order
    the announcements were made.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._components: dict[str, None] = {}
        self._subscribers: tuple[_Hooks, ...] = ()

    @property
    def components(self) -> tuple[str, ...]:
        return tuple(self._components)

    def subscribe(
        self, on_add: ComponentCallback, on_remove: ComponentCallback
    ) -> Callable[[], None]:
        hooks: _Hooks = (on_add, on_remove)
        with self._lock:
            self._subscribers = (*self._subscribers, hooks)
            for component_id in self._components:
                self._deliver(on_add, component_id)

        def unsubscribe() -> None:
            with self._lock:
                self._subscribers = tuple(s for s in self._subscribers if s != hooks)

        return unsubscribe

    def add(self, component_id: str) -> None:
        """Announce that a component has been loaded."""
        with self._lock:
            if component_id in self._components:
                return
            self._components[component_id] = None
            log.debug("Component added: %s", component_id)
            for on_add, _ in self._subscribers:
                self._deliver(on_add, component_id)

    def remove(self, component_id: str) -> None:
        """Announce that a component has been unloaded."""
        with self._lock:
            if component_id not in self._components:
                return
            del self._components[component_id]
            log.debug("Component removed: %s", component_id)
            for _, on_remove in self._subscribers:
                self._deliver(on_remove, component_id)

    def _deliver(self, callback: ComponentCallback, component_id: str) -> None:
        try:
            callback(component_id)
        except Exception:
            log.exception("Component callback failed for %s", component_id)
