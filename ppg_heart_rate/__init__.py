"""
PPG Heart Rate — dual-method streaming heart-rate estimation.

Raw photoplethysmography (PPG) samples are band-limited by two independent
filter chains and fed to a *buffered* (sliding-window peak detection) and a
*direct* (online beat detection) estimator.  Both results are exposed as
last-known BPM registers.
"""

from ppg_heart_rate.samples import (
    INVALID_BPM,
    FilteredSample,
    HREstimate,
    RawSample,
)
from ppg_heart_rate.conditioner import SignalConditioner, StreamingFilter
from ppg_heart_rate.buffered import BufferedEstimator
from ppg_heart_rate.direct import DirectEstimator, HeartRateEstimator
from ppg_heart_rate.pipeline import EstimationPipeline, PipelineConfig

__version__ = "0.1.0"
__author__ = "ppg_heart_rate"

__all__ = [
    "INVALID_BPM",
    "RawSample",
    "FilteredSample",
    "HREstimate",
    "StreamingFilter",
    "SignalConditioner",
    "BufferedEstimator",
    "DirectEstimator",
    "HeartRateEstimator",
    "EstimationPipeline",
    "PipelineConfig",
]
