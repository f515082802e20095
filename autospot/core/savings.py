"""
Process-wide accumulator of realized hourly savings.
"""
import math
import threading
from contextlib import contextmanager


class SavingsAccumulator:
    """Non-decreasing hourly savings total guarded by a reader/writer lock.
    
    Any number of readers may hold the lock at once; an increment waits
    for readers to drain and excludes everyone else while it updates.
    Waiting writers block new readers so increments cannot starve.
    """
    
    def __init__(self, initial: float = 0.0):
        if initial < 0:
            raise ValueError(f"Initial savings must be non-negative, got {initial}")
        self._total = float(initial)
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0
    
    @contextmanager
    def _read_locked(self):
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()
    
    @contextmanager
    def _write_locked(self):
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()
    
    def add(self, delta: float) -> float:
        """Add a realized hourly saving and return the new total.
        
        Raises:
            ValueError: If delta is negative or not a finite number
        """
        if not math.isfinite(delta) or delta < 0:
            raise ValueError(f"Savings can only grow by a finite amount, got delta {delta}")
        with self._write_locked():
            self._total += delta
            return self._total
    
    def read(self) -> float:
        with self._read_locked():
            return self._total
    
    @property
    def total(self) -> float:
        return self.read()
