import threading
import time


class OrderNumberGenerator:
    """
    Human-readable order numbers from the epoch millisecond: ORD1718000000000.

    Numbers handed out by one generator are strictly increasing, even when
    several orders land in the same millisecond or the clock steps back;
    the next number is max(now_ms, last + 1).
    """

    prefix = 'ORD'

    def __init__(self, clock=None):
        self._clock = clock or (lambda: time.time_ns() // 1_000_000)
        self._last = 0
        self._lock = threading.Lock()

    def next_value(self) -> int:
        with self._lock:
            value = max(self._clock(), self._last + 1)
            self._last = value
            return value

    def next(self) -> str:
        return f"{self.prefix}{self.next_value()}"


generator = OrderNumberGenerator()


def next_order_number() -> str:
    return generator.next()
