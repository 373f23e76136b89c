"""Background heartbeat for the status record."""

from __future__ import annotations

import logging
import threading

from cycleguard.application.records import AgentRecords

logger = logging.getLogger(__name__)


class Heartbeat:
    """Context manager that refreshes ``heartbeat`` on a fixed schedule.

    Runs beside the controller thread, including through long worker
    invocations, and touches nothing but ``heartbeat``/``lastUpdate``.

    Usage::

        with Heartbeat(records, interval=60.0):
            # ... run a cycle ...
    """

    def __init__(self, records: AgentRecords, interval: float = 60.0) -> None:
        self._records = records
        self._interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def __enter__(self) -> Heartbeat:
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        self.stop()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._beat_loop,
            name=f"heartbeat-{self._records.key}",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=self._interval + 5)
            self._thread = None

    def _beat_loop(self) -> None:
        while not self._stop.wait(timeout=self._interval):
            self.beat()

    def beat(self) -> None:
        """Refresh the heartbeat once."""
        try:
            self._records.touch_heartbeat()
        except OSError as exc:
            logger.warning("Heartbeat write failed for %s: %s", self._records.key, exc)
