"""Abstract base class for test registries."""

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import ClassVar, Literal, TypeAlias

from live_test_runner.models.unit import RegistryEvent, TestUnit
from live_test_runner.registry.components import ComponentLifecycleSource

log = logging.getLogger(__name__)

RegistryListener: TypeAlias = Callable[[RegistryEvent], None]


class TestRegistry(ABC):
    """Authoritative set of known test units, keyed by contributing component.

    Subclasses only decide which units a component contributes; this base
    keeps the bookkeeping and publishes an event for every add and remove.

    Mutations, including the event delivery they trigger, are serialized, so
    listeners observe the transitions of a unit in order. The component map is
    replaced rather than mutated, which lets readers take snapshots without
    locking.
    """

    __test__ = False

    discovery: ClassVar[str]

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._units: Mapping[str, Mapping[TestUnit, None]] = {}
        self._listeners: tuple[RegistryListener, ...] = ()
        self._unsubscribe: Callable[[], None] | None = None

    @abstractmethod
    def discover_units(self, component_id: str) -> Iterable[TestUnit]:
        """Find the test units a component contributes.

        Called at most once per registration of a component.

        Args:
            component_id: Identifier of the contributing component

        Returns:
            Test units in discovery order

        """

    def register_units(self, component_id: str) -> None:
        """Register all tests of a component, once."""
        with self._lock:
            if component_id in self._units:
                return

            units: dict[TestUnit, None] = {}
            for unit in self.discover_units(component_id):
                units.setdefault(unit, None)

            self._units = {**self._units, component_id: units}
            log.debug("Registered %d test(s) for %s", len(units), component_id)

            for unit in units:
                self._fire("add", unit)

    def remove_units(self, component_id: str) -> None:
        """Forget all tests of a component and announce each removal."""
        with self._lock:
            if component_id not in self._units:
                return

            remaining = dict(self._units)
            units = remaining.pop(component_id)
            self._units = remaining
            log.debug("Removed %d test(s) of %s", len(units), component_id)

            for unit in units:
                self._fire("remove", unit)

    def get_all(self) -> Sequence[TestUnit]:
        """Snapshot of every registered unit, in registration order."""
        return [unit for units in self._units.values() for unit in units]

    def get_by_ids(self, ids: Iterable[str]) -> Sequence[TestUnit]:
        """Registered units whose id is listed; unknown ids are ignored."""
        wanted = set(ids)
        return [unit for unit in self.get_all() if unit.id in wanted]

    def test_ids(self) -> Sequence[str]:
        """Ids of every registered unit."""
        return [unit.id for unit in self.get_all()]

    def add_listener(
        self, listener: RegistryListener, *, replay: bool = False
    ) -> None:
        """Subscribe to add/remove events.

        With ``replay``, the listener first receives an add event for every
        unit already registered. Subscribing and replaying happen under the
        mutation lock, so no add or remove can fall between the snapshot and
        the events that follow it.

        Raises:
            TypeError: If the listener is not callable

        """
        if not callable(listener):
            raise TypeError("Cannot add a listener that is not callable")
        with self._lock:
            if listener in self._listeners:
                return
            self._listeners = (*self._listeners, listener)
            if replay:
                for unit in self.get_all():
                    self._notify(listener, RegistryEvent(type="add", test=unit))

    def remove_listener(self, listener: RegistryListener) -> None:
        """Unsubscribe a listener; unknown listeners are ignored.

        Raises:
            TypeError: If the listener is not callable

        """
        if not callable(listener):
            raise TypeError("Cannot remove a listener that is not callable")
        with self._lock:
            self._listeners = tuple(
                known for known in self._listeners if known != listener
            )

    def dispose(self) -> None:
        """Drop every unit without publishing remove events."""
        with self._lock:
            self._units = {}

    def attach(self, source: ComponentLifecycleSource) -> None:
        """Follow a component lifecycle source until :meth:`detach`."""
        if self._unsubscribe is not None:
            raise RuntimeError("Registry is already attached to a source")
        # subscribing replays present components, which takes the source's lock
        unsubscribe = source.subscribe(self.register_units, self.remove_units)
        with self._lock:
            self._unsubscribe = unsubscribe

    def detach(self) -> None:
        """Stop following the component source and drop every unit."""
        with self._lock:
            unsubscribe, self._unsubscribe = self._unsubscribe, None
        try:
            if unsubscribe is not None:
                unsubscribe()
        finally:
            self.dispose()

    def _fire(self, event_type: Literal["add", "remove"], unit: TestUnit) -> None:
        event = RegistryEvent(type=event_type, test=unit)
        for listener in self._listeners:
            self._notify(listener, event)

    @staticmethod
    def _notify(listener: RegistryListener, event: RegistryEvent) -> None:
        try:
            listener(event)
        except Exception:
            log.warning(
                "Listener %r failed on %s event for test %s",
                listener,
                event.type,
                event.test.id,
                exc_info=True,
            )
