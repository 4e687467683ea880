"""
Online (per-sample) heart-rate estimator.

Algorithm
---------
Beat detection is incremental: each call compares the *previous* filtered
sample with its two neighbours, so a beat is confirmed one sample after its
peak.

1. A candidate peak is a sample strictly greater than both neighbours and
   above the high-passed baseline (value > 0).  Its *rise* is its height
   above the lowest sample since the previous candidate.
2. A candidate counts as a beat only if its rise reaches ``peak_threshold``
   times the mean rise of the recently accepted beats.  This rejects the
   dicrotic shoulder and noise ripples, whose rise is a fraction of the
   systolic upstroke.
3. One beat per pulse lobe: after a beat the detector is disarmed until the
   signal falls back below the beat's mid-level (halfway between its trough
   and its peak).  The mid-level is used instead of zero because respiratory
   baseline wander passes the 0.2 Hz high-pass and can keep whole pulses
   above zero.
4. The interval to the previous beat must lie in the open interval
   ``(min_interval, max_interval)``.  Within the refractory window a taller
   peak replaces the previous beat; a longer interval is a gap that clears
   the interval history.
5. The last ``beats_to_average`` intervals are averaged; BPM = 60 / mean.

No value is reported until ``training_period`` seconds have elapsed since the
first sample, nor once ``max_interval`` seconds pass without a beat.  Beats
seen during training still fill the averaging window, so a value is
available as soon as training ends.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Optional, Protocol

import numpy as np

from ppg_heart_rate.samples import FilteredSample, HREstimate

logger = logging.getLogger(__name__)

# Number of accepted beats used for the amplitude reference
_RISE_HISTORY = 8


class HeartRateEstimator(Protocol):
    """Anything that turns filtered samples into heart-rate estimates."""

    def update(self, sample: FilteredSample) -> HREstimate:
        ...

    def reset(self) -> None:
        ...


class DirectEstimator:
    """
    Continuous beat-to-beat heart-rate estimator.

    Parameters
    ----------
    training_period:
        Warm-up time in seconds during which no estimate is reported
        (default 10).
    beats_to_average:
        Number of most recent beat-to-beat intervals averaged into one
        estimate (default 1, the instantaneous rate).
    min_interval:
        Exclusive lower bound of a plausible RR interval in seconds.
    max_interval:
        Exclusive upper bound of a plausible RR interval in seconds.  Also
        the time without a beat after which the estimate expires.
    peak_threshold:
        Minimum rise of a beat as a fraction of the mean rise of recently
        accepted beats (default 0.5).
    """

    def __init__(
        self,
        training_period: float = 10.0,
        beats_to_average: int = 1,
        min_interval: float = 0.3,
        max_interval: float = 2.0,
        peak_threshold: float = 0.5,
    ) -> None:
        if beats_to_average < 1:
            raise ValueError(f"beats_to_average must be >= 1, got {beats_to_average}")
        self.training_period = training_period
        self.beats_to_average = beats_to_average
        self.min_interval = min_interval
        self.max_interval = max_interval
        self.peak_threshold = peak_threshold

        self._intervals: Deque[float] = deque(maxlen=beats_to_average)
        self._rises: Deque[float] = deque(maxlen=_RISE_HISTORY)
        self.reset()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def update(self, sample: FilteredSample) -> HREstimate:
        """Consume one filtered sample and return the current estimate."""
        if self._start_time is None:
            self._start_time = sample.timestamp
        self._elapsed = sample.timestamp - self._start_time

        before, previous = self._before, self._previous
        peaked = (
            before is not None
            and previous is not None
            and previous.value > before.value
            and previous.value > sample.value
        )
        if peaked:
            self._on_peak(previous, previous.value - self._trough)
            self._trough = sample.value
        elif self._trough is None or sample.value < self._trough:
            self._trough = sample.value
        self._before, self._previous = previous, sample

        if not self._armed and sample.value < self._rearm_level:
            self._armed = True
        if self._beat_expired(sample.timestamp):
            self._on_gap()

        self._last_estimate = self._estimate(sample.timestamp)
        return self._last_estimate

    def reset(self) -> None:
        """Restart training and forget all beats."""
        self._intervals.clear()
        self._rises.clear()
        self._start_time: Optional[float] = None
        self._elapsed: float = 0.0
        self._before: Optional[FilteredSample] = None
        self._previous: Optional[FilteredSample] = None
        self._trough: Optional[float] = None
        self._armed: bool = True
        self._rearm_level: float = 0.0
        self._last_beat_time: Optional[float] = None
        self._last_interval_open: bool = False
        self._beat_count: int = 0
        self._last_estimate = HREstimate.invalid()

    @property
    def in_training(self) -> bool:
        return self._start_time is None or self._elapsed < self.training_period

    @property
    def beat_count(self) -> int:
        """Beats accepted since construction or the last reset."""
        return self._beat_count

    @property
    def last_estimate(self) -> HREstimate:
        return self._last_estimate

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _on_peak(self, peak: FilteredSample, rise: float) -> None:
        if peak.value <= 0:
            return

        reference = float(np.mean(self._rises)) if self._rises else 0.0
        if rise < self.peak_threshold * reference:
            return

        if self._last_beat_time is not None:
            interval = peak.timestamp - self._last_beat_time
            if interval <= self.min_interval:
                if rise > self._rises[-1]:
                    self._replace_last_beat(peak, rise)
                return

        if not self._armed:
            return
        self._accept(peak, rise)

    def _accept(self, peak: FilteredSample, rise: float) -> None:
        self._last_interval_open = False
        if self._last_beat_time is not None:
            interval = peak.timestamp - self._last_beat_time
            if interval < self.max_interval:
                self._intervals.append(interval)
                self._last_interval_open = True
            else:
                logger.debug("[Direct] %.3f s gap since last beat; restarting", interval)
                self._intervals.clear()

        self._last_beat_time = peak.timestamp
        self._rises.append(rise)
        self._beat_count += 1
        self._armed = False
        self._rearm_level = peak.value - 0.5 * rise

    def _replace_last_beat(self, peak: FilteredSample, rise: float) -> None:
        """Move the previous beat to a taller peak inside its refractory window."""
        shift = peak.timestamp - self._last_beat_time
        if self._last_interval_open:
            corrected = self._intervals.pop() + shift
            if self.min_interval < corrected < self.max_interval:
                self._intervals.append(corrected)
            else:
                self._last_interval_open = False

        self._last_beat_time = peak.timestamp
        self._rises[-1] = rise
        self._armed = False
        self._rearm_level = peak.value - 0.5 * rise

    def _beat_expired(self, now: float) -> bool:
        return self._last_beat_time is not None and now - self._last_beat_time >= self.max_interval

    def _on_gap(self) -> None:
        # Amplitude may have changed (sensor re-attached); learn it again
        if self._intervals or self._rises:
            logger.debug("[Direct] No beat for %.1f s; estimate expired", self.max_interval)
        self._intervals.clear()
        self._rises.clear()
        self._last_interval_open = False
        self._armed = True

    def _estimate(self, now: float) -> HREstimate:
        if self.in_training or not self._intervals or self._beat_expired(now):
            return HREstimate.invalid()

        mean_interval = float(np.mean(self._intervals))
        estimate = HREstimate.from_interval(mean_interval)
        logger.debug("[Direct] Computed heart rate: %d BPM", estimate.bpm)
        return estimate
