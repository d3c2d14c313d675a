"""Queue of test units waiting for execution."""

import logging
import threading
from collections import deque
from collections.abc import Iterable

from live_test_runner.filtering import TestFilter
from live_test_runner.models.unit import RegistryEvent, TestUnit

log = logging.getLogger(__name__)


class WorkQueue:
    """Thread safe FIFO of test units with filtering at admission time.

    Its :meth:`registry_changed` method is meant to be subscribed to a test
    registry so that the queue follows components coming and going.
    """

    def __init__(
        self,
        units: Iterable[TestUnit] = (),
        test_filter: TestFilter | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._items: deque[TestUnit] = deque()
        self._filter = test_filter
        self.extend(units)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, unit: object) -> bool:
        with self._lock:
            return unit in self._items

    def offer(self, unit: TestUnit) -> bool:
        """Append a unit if the filter accepts it and it is not queued yet."""
        if self._filter is not None and not self._filter.accept(unit.name):
            log.debug("Test %s filtered out", unit.id)
            return False
        with self._lock:
            if unit in self._items:
                return False
            self._items.append(unit)
        return True

    def extend(self, units: Iterable[TestUnit]) -> None:
        for unit in units:
            self.offer(unit)

    def discard(self, unit: TestUnit) -> bool:
        """Remove a unit that has not been polled yet."""
        with self._lock:
            try:
                self._items.remove(unit)
            except ValueError:
                return False
        return True

    def poll(self) -> TestUnit | None:
        """Take the next unit, or None right away if the queue is empty."""
        with self._lock:
            return self._items.popleft() if self._items else None

    def registry_changed(self, event: RegistryEvent) -> None:
        """Apply a registry add/remove event to the queue.

        Raises:
            ValueError: If the event carries no test unit

        """
        if event.test is None:
            raise ValueError("Registry event has no test unit")

        if event.type == "add":
            self.offer(event.test)
        elif event.type == "remove":
            self.discard(event.test)
        else:
            log.warning("Registry event type %s not supported", event.type)
