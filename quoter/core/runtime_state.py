from __future__ import annotations

import threading


class StopToken:
    """Monotonic stop flag shared by the loop thread and the control thread.

    Once set it stays set; ``stop()`` may be called any number of times.
    """

    def __init__(self):
        self._event = threading.Event()

    def stop(self) -> None:
        self._event.set()

    @property
    def stopped(self) -> bool:
        return self._event.is_set()

    @property
    def running(self) -> bool:
        return not self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; return True early if stop was requested."""
        if seconds <= 0:
            return self._event.is_set()
        return self._event.wait(timeout=seconds)
