"""
Synthetic PPG-like signals for demos and tests.
"""

from __future__ import annotations

from typing import List, Optional

import numpy as np

from ppg_heart_rate.samples import RawSample


def triangle_wave(n_samples: int, samples_per_period: int, amplitude: float = 1.0) -> np.ndarray:
    """Zero-mean triangle wave whose peaks fall on samples 0, P, 2P, ..."""
    phase = (np.arange(n_samples) % samples_per_period) / samples_per_period
    return amplitude * (1.0 - 4.0 * np.minimum(phase, 1.0 - phase))


def synthetic_ppg(
    duration: float,
    sampling_rate: float,
    bpm: float = 72.0,
    dc_level: float = 1500.0,
    pulse_amplitude: float = 50.0,
    dicrotic_ratio: float = 0.25,
    wander_amplitude: float = 20.0,
    wander_rate: float = 15.0,
    noise_std: float = 1.0,
    seed: Optional[int] = None,
) -> np.ndarray:
    """
    Generate a PPG-like waveform.

    Each beat is a Gaussian systolic pulse followed by a wider, smaller
    dicrotic shoulder.  A respiratory-rate sinusoid (``wander_rate`` breaths
    per minute) adds baseline wander, and white noise is added on top.

    Returns
    -------
    signal:
        Array of ``int(duration * sampling_rate)`` samples.
    """
    rng = np.random.default_rng(seed)
    n_samples = int(duration * sampling_rate)
    t = np.arange(n_samples) / sampling_rate

    period = 60.0 / bpm
    phase = np.mod(t, period) / period
    systolic = np.exp(-0.5 * ((phase - 0.15) / 0.06) ** 2)
    dicrotic = dicrotic_ratio * np.exp(-0.5 * ((phase - 0.45) / 0.10) ** 2)
    pulse = pulse_amplitude * (systolic + dicrotic)

    wander = wander_amplitude * np.sin(2 * np.pi * (wander_rate / 60.0) * t)
    noise = rng.normal(0.0, noise_std, n_samples) if noise_std > 0 else np.zeros(n_samples)
    return dc_level + pulse + wander + noise


def to_raw_samples(
    values: np.ndarray,
    sampling_rate: float,
    start_ms: float = 0.0,
) -> List[RawSample]:
    """Attach evenly spaced millisecond timestamps to *values*."""
    step_ms = 1000.0 / sampling_rate
    return [
        RawSample(value=float(v), timestamp_ms=start_ms + i * step_ms)
        for i, v in enumerate(values)
    ]
