"""
Progress tracking and query cancellation.

A ProgressMonitor is handed to long-running work by the caller. `attach_cancel`
links it to a connection so that cancelling the monitor asks the engine to
abort the statement currently running on that connection.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from typing import Any

from src.db_metadata.dialects import Dialect, detect_dialect
from src.db_metadata.ports import Connection
from src.enums import ProgressProperty
from src.logger import LOGGER

# listener(property, old_value, new_value)
Listener = Callable[[ProgressProperty, Any, Any], None]


class ProgressMonitor:
    """Counts finished steps and broadcasts progress and cancellation."""

    def __init__(self, step_count: int = 1) -> None:
        if step_count < 1:
            raise ValueError("step_count must be at least 1.")
        self.step_count = step_count
        self._steps_done = 0
        self._canceled = False
        self._listeners: dict[ProgressProperty, list[Listener]] = defaultdict(list)

    # ---------- listeners ----------

    def add_listener(self, prop: ProgressProperty, listener: Listener) -> None:
        self._listeners[prop].append(listener)

    def remove_listener(self, prop: ProgressProperty, listener: Listener) -> None:
        """Detach `listener`; unknown listeners are ignored."""
        if listener in self._listeners[prop]:
            self._listeners[prop].remove(listener)

    def _fire(self, prop: ProgressProperty, old_value: Any, new_value: Any) -> None:
        for listener in list(self._listeners[prop]):
            listener(prop, old_value, new_value)

    # ---------- progress ----------

    @property
    def progress(self) -> float:
        """Fraction of steps done, in [0, 1]."""
        return min(self._steps_done, self.step_count) / self.step_count

    def end_step(self) -> None:
        old_progress = self.progress
        self._steps_done += 1
        self._fire(ProgressProperty.PROGRESS, old_progress, self.progress)

    # ---------- cancellation ----------

    @property
    def is_canceled(self) -> bool:
        return self._canceled

    def cancel(self) -> None:
        """Mark as cancelled; CANCELED listeners run on the first call only."""
        if self._canceled:
            return
        self._canceled = True
        self._fire(ProgressProperty.CANCELED, False, True)


class _CancelStatement:
    """CANCELED listener that aborts the running statement of a connection."""

    def __init__(self, connection: Connection, dialect: Dialect) -> None:
        self.connection = connection
        self.dialect = dialect

    def __call__(self, prop: ProgressProperty, old_value: Any, new_value: Any) -> None:
        try:
            self.dialect.cancel(self.connection)
        except Exception as error:
            LOGGER.warning("Failed to cancel the running statement: %s", error)


def attach_cancel(
    connection: Connection,
    monitor: ProgressMonitor,
    dialect: Dialect | None = None,
) -> Listener:
    """
    Cancel the statement running on `connection` when `monitor` is cancelled.

    Returns the registered listener; pass it to
    `monitor.remove_listener(ProgressProperty.CANCELED, listener)` once the
    statement has finished.
    """
    listener = _CancelStatement(connection, dialect or detect_dialect(connection))
    monitor.add_listener(ProgressProperty.CANCELED, listener)
    return listener
