"""In-memory visit counters."""
import threading
from typing import Dict


class VisitCounter:
    """Counts requests in total and per client IP for the life of the process.

    One instance is owned by each Flask app; nothing is persisted, so a
    restart starts again from zero.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._total = 0
        self._per_ip: Dict[str, int] = {}

    @property
    def total(self) -> int:
        return self._total

    def record(self, ip: str) -> int:
        """Count one visit from *ip* and return the new total."""
        with self._lock:
            self._total += 1
            self._per_ip[ip] = self._per_ip.get(ip, 0) + 1
            return self._total

    def per_ip(self) -> Dict[str, int]:
        """Return a copy of the ``{ip: count}`` mapping in first-seen order."""
        with self._lock:
            return dict(self._per_ip)

    def reset(self) -> None:
        with self._lock:
            self._total = 0
            self._per_ip.clear()
