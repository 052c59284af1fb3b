from __future__ import annotations

"""
Background finalization sweep.

Runs ``FinalizationEngine.sweep_expired`` on a daemon thread every
``interval_sec`` seconds until stopped.
"""

import logging
import threading
from typing import Optional

from .finalization import FinalizationEngine

log = logging.getLogger(__name__)


class FinalizationSweeper:
    def __init__(self, engine: FinalizationEngine, interval_sec: float = 30.0) -> None:
        self.engine = engine
        self.interval_sec = max(0.05, float(interval_sec))
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    def is_running(self) -> bool:
        t = self._thread
        return bool(t and t.is_alive())

    def start(self) -> None:
        with self._lock:
            if self._thread and self._thread.is_alive():
                return
            self._stop_event.clear()
            t = threading.Thread(target=self._loop_main, name="voting-finalize-sweep", daemon=True)
            self._thread = t
            t.start()
            log.info("finalization sweep started (every %.1fs)", self.interval_sec)

    def stop(self, timeout: float = 2.0) -> None:
        self._stop_event.set()
        t = self._thread
        if t and t.is_alive():
            t.join(timeout=timeout)

    def tick(self) -> None:
        self.engine.sweep_expired()

    def _loop_main(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception:
                log.exception("finalization sweep tick failed")
            self._stop_event.wait(self.interval_sec)
