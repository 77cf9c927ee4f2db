# utils/debounce.py
import threading

from config import CONFIG
from utils.logger import get_logger

log = get_logger("debounce")


class Debouncer:
    """
    Run `callback` once a burst of `schedule()` calls has gone quiet for
    `delay_ms`. Each call cancels the pending timer and starts a new one, and
    only the arguments of the last call are used.
    """

    def __init__(self, callback, delay_ms=None):
        self._callback = callback
        self.delay = (CONFIG.DEBOUNCE_MS if delay_ms is None else delay_ms) / 1000
        self._lock = threading.Lock()
        self._timer = None
        self._args = ()
        self._kwargs = {}

    @property
    def pending(self):
        with self._lock:
            return self._timer is not None

    def schedule(self, *args, **kwargs):
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._args, self._kwargs = args, kwargs
            timer = threading.Timer(self.delay, self._fire)
            timer.daemon = True
            # The timer passes itself so a superseded one can tell
            timer.args = (timer,)
            self._timer = timer
            timer.start()
        log.debug("Scheduled in %.3fs", self.delay)

    def _fire(self, timer):
        with self._lock:
            if self._timer is not timer:
                return
            self._timer = None
            args, kwargs = self._args, self._kwargs
        self._callback(*args, **kwargs)

    def cancel(self):
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def flush(self):
        """Run the pending call now, if there is one. Returns True if it ran."""
        with self._lock:
            if self._timer is None:
                return False
            self._timer.cancel()
            self._timer = None
            args, kwargs = self._args, self._kwargs
        self._callback(*args, **kwargs)
        return True
