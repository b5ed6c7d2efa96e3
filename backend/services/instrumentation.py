"""
Latency tracking for outbound tour API calls.

Wraps a transport callable at the call site instead of patching the shared
requests session, so clients opt in explicitly.
"""
from __future__ import annotations

import functools
import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, List, Optional
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallSample:
    endpoint: str
    elapsed_ms: float
    ok: bool


class LatencyRecorder:
    """Rolling window of recent call timings; thread-safe."""

    def __init__(self, window: int = 200, slow_call_ms: float = 2000.0):
        self.slow_call_ms = slow_call_ms
        self._samples: Deque[CallSample] = deque(maxlen=window)
        self._lock = threading.Lock()

    def record(self, endpoint: str, elapsed_ms: float, ok: bool) -> None:
        with self._lock:
            self._samples.append(CallSample(endpoint, elapsed_ms, ok))
        if elapsed_ms >= self.slow_call_ms:
            logger.warning("Slow tour API call: endpoint=%s elapsed_ms=%.1f", endpoint, elapsed_ms)
        else:
            logger.debug("Tour API call: endpoint=%s elapsed_ms=%.1f ok=%s", endpoint, elapsed_ms, ok)

    def samples(self) -> List[CallSample]:
        with self._lock:
            return list(self._samples)

    def stats(self, endpoint: Optional[str] = None) -> Dict[str, float]:
        samples = [s for s in self.samples() if endpoint is None or s.endpoint == endpoint]
        if not samples:
            return {"count": 0, "avg_ms": 0.0, "max_ms": 0.0, "p95_ms": 0.0, "error_rate": 0.0}
        elapsed = sorted(s.elapsed_ms for s in samples)
        p95_index = max(0, int(round(0.95 * len(elapsed))) - 1)
        return {
            "count": len(elapsed),
            "avg_ms": sum(elapsed) / len(elapsed),
            "max_ms": elapsed[-1],
            "p95_ms": elapsed[p95_index],
            "error_rate": sum(1 for s in samples if not s.ok) / len(samples),
        }

    def clear(self) -> None:
        with self._lock:
            self._samples.clear()


def endpoint_label(url: str) -> str:
    """Last path segment of a URL, e.g. 'areaBasedList2'."""
    path = urlsplit(url).path.rstrip("/")
    return path.rsplit("/", 1)[-1] or "/"


def timed(transport: Callable, recorder: LatencyRecorder) -> Callable:
    """Return a transport that records elapsed time for every call."""

    @functools.wraps(transport)
    def wrapper(url: str, **kwargs):
        start = time.perf_counter()
        ok = False
        try:
            response = transport(url, **kwargs)
            status = getattr(response, "status_code", 200)
            ok = 200 <= status < 300
            return response
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000.0
            recorder.record(endpoint_label(url), elapsed_ms, ok)

    return wrapper
