# smartcalc/fallbacks.py
import threading


class CircuitBreaker:
    def __init__(self, threshold=3):
        self.threshold = threshold
        self.failures = 0
        self._lock = threading.Lock()

    def record_failure(self):
        with self._lock:
            self.failures += 1

    def record_success(self):
        with self._lock:
            self.failures = 0

    def ok(self):
        return self.failures < self.threshold
