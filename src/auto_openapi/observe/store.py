"""Live record of response codes actually returned per operation."""

import logging
import threading

logger = logging.getLogger(__name__)


def observation_key(method: str, pattern: str) -> str:
    return f"{method.upper()} {pattern}"


class ObservationStore:
    """Append-only map of "METHOD pattern" to the status codes seen so far.

    Safe to share between request threads and document generation. Entries
    only grow for the lifetime of the process.
    """

    def __init__(self):
        self._codes: dict[str, set[int]] = {}
        self._lock = threading.Lock()

    def record(self, method: str, pattern: str, status: int) -> None:
        key = observation_key(method, pattern)
        with self._lock:
            seen = self._codes.setdefault(key, set())
            if status in seen:
                return
            seen.add(status)
        logger.debug("Observed %d for %s", status, key)

    def get(self, method: str, pattern: str) -> frozenset[int]:
        with self._lock:
            return frozenset(self._codes.get(observation_key(method, pattern), ()))

    def __len__(self) -> int:
        with self._lock:
            return len(self._codes)
