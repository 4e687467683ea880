"""
Streaming signal conditioning for PPG samples.

Algorithm
---------
Each raw sample passes through two cascaded Butterworth IIR filters:

1. Low-pass (default 5 Hz) removes high-frequency sensor noise.
2. High-pass (default 0.2 Hz) removes the DC level and slow baseline wander
   (respiration, finger pressure), centring the pulse wave on zero.

The filters are evaluated one sample at a time with ``scipy.signal.sosfilt``,
carrying the second-order-section delay taps between calls.  On the first
sample the taps are primed to the steady state for that input level, so a
large DC offset does not ring through the high-pass stage.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np
from scipy.signal import butter, sosfilt, sosfilt_zi

logger = logging.getLogger(__name__)


class StreamingFilter:
    """
    A single recursive filter with private state.

    Parameters
    ----------
    btype:
        ``"lowpass"`` or ``"highpass"``.
    cutoff:
        Cutoff frequency in Hz.
    sampling_rate:
        Sampling rate of the incoming stream in Hz.  Fixed for the lifetime
        of the filter.
    order:
        Butterworth filter order (default 2).
    """

    def __init__(
        self,
        btype: str,
        cutoff: float,
        sampling_rate: float,
        order: int = 2,
    ) -> None:
        self.btype = btype
        self.cutoff = cutoff
        self.sampling_rate = sampling_rate
        self.order = order

        self._sos = self._build_filter()
        self._zi_step = sosfilt_zi(self._sos)
        self._zi: Optional[np.ndarray] = None

    def step(self, value: float) -> float:
        """Filter one sample and advance the internal state."""
        if self._zi is None:
            # Steady state for a constant input equal to the first sample
            self._zi = self._zi_step * value
        out, self._zi = sosfilt(self._sos, np.array([value], dtype=np.float64), zi=self._zi)
        return float(out[0])

    def reset(self) -> None:
        """Forget the filter history; the next sample re-primes the taps."""
        self._zi = None

    @property
    def coefficients(self) -> np.ndarray:
        return self._sos

    @property
    def state(self) -> Optional[np.ndarray]:
        """Current delay taps, ``None`` before the first sample."""
        return self._zi

    def _build_filter(self) -> np.ndarray:
        """Construct the Butterworth filter (SOS form)."""
        nyq = self.sampling_rate / 2.0
        wn = self.cutoff / nyq
        # Clamp to valid range
        clamped = max(1e-4, min(wn, 0.999))
        if clamped != wn:
            logger.warning(
                "%s cutoff %.3f Hz is outside (0, %.3f) Hz for fs=%.3f Hz; clamped.",
                self.btype, self.cutoff, nyq, self.sampling_rate,
            )
        return butter(self.order, clamped, btype=self.btype, output="sos")


class SignalConditioner:
    """
    Low-pass followed by high-pass filtering of raw PPG samples.

    Every instance owns its own pair of :class:`StreamingFilter` objects, so
    two conditioners fed the same stream never share filter taps.

    Parameters
    ----------
    sampling_rate:
        Sampling rate of the sensor stream in Hz.
    lowpass_cutoff:
        Low-pass cutoff in Hz (default 5.0).
    highpass_cutoff:
        High-pass cutoff in Hz (default 0.2).
    filter_order:
        Order of both Butterworth filters (default 2).
    """

    def __init__(
        self,
        sampling_rate: float,
        lowpass_cutoff: float = 5.0,
        highpass_cutoff: float = 0.2,
        filter_order: int = 2,
    ) -> None:
        self.sampling_rate = sampling_rate
        self._lowpass = StreamingFilter("lowpass", lowpass_cutoff, sampling_rate, filter_order)
        self._highpass = StreamingFilter("highpass", highpass_cutoff, sampling_rate, filter_order)

    def filter(self, raw: float) -> float:
        """
        Return the band-limited value for one raw sample.

        *raw* must be finite; it is not sanitised here.
        """
        return self._highpass.step(self._lowpass.step(raw))

    def reset(self) -> None:
        self._lowpass.reset()
        self._highpass.reset()

    @property
    def lowpass(self) -> StreamingFilter:
        return self._lowpass

    @property
    def highpass(self) -> StreamingFilter:
        return self._highpass
