"""
Performance metrics for optimized search.

Tracks:
- Average and P95 latency
- Throughput (queries per second)
- Error rate
- Backend complementarity (when overlap feedback is on)
"""

import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple


@dataclass
class PerformanceSample:
    """One optimized search, successful or failed."""

    query: str
    latency_ms: float
    timestamp: float
    weights: Tuple[float, float]
    result_quality: float
    failed: bool = False
    complementary_score: Optional[float] = None


@dataclass
class PerformanceStats:
    """Aggregate statistics over recorded samples."""

    avg_latency: float = 0.0
    p95_latency: float = 0.0
    throughput: float = 0.0
    cache_hit_rate: float = 0.0
    error_rate: float = 0.0
    sample_count: int = 0


class PerformanceMonitor:
    """
    Collect performance samples in a bounded ring.

    The oldest sample is dropped once history_size is reached.
    Samples are read-side diagnostics only.
    """

    def __init__(
        self,
        history_size: int = 10000,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            history_size: Number of recent samples to keep
            clock: Wall-clock source in seconds, used for time windows
        """
        self.history_size = history_size
        self.clock = clock
        self._samples: deque = deque(maxlen=history_size)

    def record(
        self,
        query: str,
        latency_ms: float,
        weights: Tuple[float, float],
        result_quality: float,
        failed: bool = False,
        complementary_score: Optional[float] = None,
    ) -> PerformanceSample:
        """Record a sample stamped with the current time."""
        sample = PerformanceSample(
            query=query,
            latency_ms=latency_ms,
            timestamp=self.clock(),
            weights=weights,
            result_quality=result_quality,
            failed=failed,
            complementary_score=complementary_score,
        )
        self._samples.append(sample)
        return sample

    def samples(self, time_window: Optional[float] = None) -> List[PerformanceSample]:
        """Samples newer than time_window seconds, or all of them."""
        samples = list(self._samples)
        if time_window:
            cutoff = self.clock() - time_window
            samples = [s for s in samples if s.timestamp > cutoff]
        return samples

    def get_stats(
        self,
        time_window: Optional[float] = None,
        cache_hit_rate: float = 0.0,
    ) -> PerformanceStats:
        """
        Get aggregate statistics.

        Args:
            time_window: Only consider samples from the last N seconds
            cache_hit_rate: Hit rate reported by the result cache

        Returns:
            PerformanceStats (zeros when there are no samples)
        """
        history = self.samples(time_window)

        if not history:
            return PerformanceStats(cache_hit_rate=cache_hit_rate)

        latencies = sorted(s.latency_ms for s in history)
        n = len(latencies)
        time_span = history[-1].timestamp - history[0].timestamp

        return PerformanceStats(
            avg_latency=sum(latencies) / n,
            p95_latency=latencies[int(n * 0.95)],
            throughput=n / max(time_span, 1.0),
            cache_hit_rate=cache_hit_rate,
            error_rate=sum(1 for s in history if s.failed) / n,
            sample_count=n,
        )

    def average_complementarity(self, time_window: Optional[float] = None) -> Optional[float]:
        """Mean complementary score of samples that recorded one."""
        scores = [
            s.complementary_score
            for s in self.samples(time_window)
            if s.complementary_score is not None
        ]
        if not scores:
            return None
        return sum(scores) / len(scores)

    def reset(self):
        """Reset all samples."""
        self._samples.clear()

    def __len__(self) -> int:
        return len(self._samples)
