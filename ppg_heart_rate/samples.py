"""
Sample and result types shared by the filters, estimators and pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass

INVALID_BPM: int = -1


@dataclass(frozen=True)
class RawSample:
    """
    One calibrated PPG reading as delivered by the sensor.

    Parameters
    ----------
    value:
        Calibrated PPG value (sensor units).
    timestamp_ms:
        Device timestamp in milliseconds.  Must be non-decreasing over the
        lifetime of a pipeline.
    """

    value: float
    timestamp_ms: float


@dataclass(frozen=True)
class FilteredSample:
    """A band-limited PPG value with its timestamp in **seconds**."""

    value: float
    timestamp: float

    @classmethod
    def from_raw(cls, raw: RawSample, value: float) -> "FilteredSample":
        return cls(value=value, timestamp=raw.timestamp_ms / 1000.0)


@dataclass(frozen=True)
class HREstimate:
    """
    Heart-rate result in beats per minute.

    ``bpm == INVALID_BPM`` (-1) means "no answer yet"; estimators never raise
    for insufficient data, they return this sentinel instead.
    """

    bpm: int = INVALID_BPM

    @property
    def valid(self) -> bool:
        return self.bpm != INVALID_BPM

    @classmethod
    def invalid(cls) -> "HREstimate":
        return cls(INVALID_BPM)

    @classmethod
    def from_interval(cls, mean_interval: float) -> "HREstimate":
        """Convert a mean beat-to-beat interval (seconds) to a rounded BPM."""
        if mean_interval <= 0:
            return cls.invalid()
        return cls(int(round(60.0 / mean_interval)))
