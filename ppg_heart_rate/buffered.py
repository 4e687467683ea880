"""
Sliding-window heart-rate estimator.

Algorithm
---------
1. Keep the last ``capacity`` filtered samples (FIFO, oldest evicted first).
2. Once the window is full, mark every interior sample that is strictly
   greater than both neighbours as a peak.  The first and last samples are
   never candidates because one of their neighbours is missing.
3. Take the differences between consecutive peak timestamps and keep those
   inside the open interval ``(min_interval, max_interval)``
   (default 0.3 – 2.0 s, i.e. 30 – 200 BPM).
4. BPM = round(60 / mean(kept intervals)).

Any step that cannot produce a value yields the invalid estimate (-1).
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Sequence, Tuple

import numpy as np

from ppg_heart_rate.samples import FilteredSample, HREstimate

logger = logging.getLogger(__name__)


def local_maxima(values: Sequence[float]) -> np.ndarray:
    """
    Return indices of samples strictly greater than both neighbours.

    Only positions ``1 .. len(values) - 2`` are examined.
    """
    v = np.asarray(values, dtype=np.float64)
    if v.size < 3:
        return np.array([], dtype=np.intp)
    interior = v[1:-1]
    mask = (interior > v[:-2]) & (interior > v[2:])
    return np.flatnonzero(mask) + 1


def plausible_intervals(
    peak_times: Sequence[float],
    min_interval: float = 0.3,
    max_interval: float = 2.0,
) -> np.ndarray:
    """Successive peak-time differences lying strictly between the bounds."""
    diffs = np.diff(np.asarray(peak_times, dtype=np.float64))
    return diffs[(diffs > min_interval) & (diffs < max_interval)]


class BufferedEstimator:
    """
    Peak-detection heart-rate estimator over a fixed-size window.

    Parameters
    ----------
    capacity:
        Number of filtered samples held in the window (default 30).  No
        estimate is produced until the window is full.
    min_interval:
        Exclusive lower bound of a plausible RR interval in seconds.
    max_interval:
        Exclusive upper bound of a plausible RR interval in seconds.
    """

    def __init__(
        self,
        capacity: int = 30,
        min_interval: float = 0.3,
        max_interval: float = 2.0,
    ) -> None:
        if capacity < 3:
            raise ValueError(f"capacity must be at least 3, got {capacity}")
        self.capacity = capacity
        self.min_interval = min_interval
        self.max_interval = max_interval

        self._values: Deque[float] = deque(maxlen=capacity)
        self._times: Deque[float] = deque(maxlen=capacity)
        self._last_estimate = HREstimate.invalid()
        self._last_mean_interval: float = 0.0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def update(self, sample: FilteredSample) -> HREstimate:
        """Append *sample* to the window and recompute the heart rate."""
        self._values.append(sample.value)
        self._times.append(sample.timestamp)
        self._last_estimate, mean_interval = self._evaluate()
        if self._last_estimate.valid:
            self._last_mean_interval = mean_interval
            logger.debug(
                "[Buffered] RR interval %.4f s -> %d BPM", mean_interval, self._last_estimate.bpm
            )
        return self._last_estimate

    def compute(self) -> HREstimate:
        """
        Evaluate the current window without modifying it.

        Returns the invalid estimate while the window is not yet full.
        """
        estimate, _ = self._evaluate()
        return estimate

    def peak_times(self) -> np.ndarray:
        """Timestamps (s) of the peaks currently in the window."""
        peaks = local_maxima(self._values)
        return np.asarray(self._times, dtype=np.float64)[peaks]

    def reset(self) -> None:
        """Clear the window."""
        self._values.clear()
        self._times.clear()
        self._last_estimate = HREstimate.invalid()
        self._last_mean_interval = 0.0

    def __len__(self) -> int:
        return len(self._values)

    @property
    def is_full(self) -> bool:
        return len(self._values) == self.capacity

    @property
    def fill_ratio(self) -> float:
        """How full the window is (0 – 1)."""
        return len(self._values) / self.capacity

    @property
    def last_estimate(self) -> HREstimate:
        return self._last_estimate

    @property
    def last_mean_interval(self) -> float:
        """Mean RR interval behind the most recent valid estimate (0 if none)."""
        return self._last_mean_interval

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _evaluate(self) -> Tuple[HREstimate, float]:
        """Return ``(estimate, mean_interval)`` for the current window."""
        if len(self._values) < self.capacity:
            return HREstimate.invalid(), 0.0

        peaks = local_maxima(self._values)
        if len(peaks) < 2:
            return HREstimate.invalid(), 0.0

        times = np.asarray(self._times, dtype=np.float64)
        intervals = plausible_intervals(times[peaks], self.min_interval, self.max_interval)
        if intervals.size == 0:
            return HREstimate.invalid(), 0.0

        mean_interval = float(np.mean(intervals))
        return HREstimate.from_interval(mean_interval), mean_interval
