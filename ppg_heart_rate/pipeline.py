"""
Dual-method estimation pipeline.

Each raw sample is conditioned twice, by two independent
:class:`~ppg_heart_rate.conditioner.SignalConditioner` instances, and the two
filtered values drive the direct and the buffered estimator respectively.
The latest result of each method is kept in a register that consumers may
poll at their own cadence.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ppg_heart_rate.buffered import BufferedEstimator
from ppg_heart_rate.conditioner import SignalConditioner
from ppg_heart_rate.direct import DirectEstimator, HeartRateEstimator
from ppg_heart_rate.samples import FilteredSample, HREstimate, RawSample

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineConfig:
    """
    Settings of an :class:`EstimationPipeline`, fixed at construction.

    Only ``sampling_rate`` has no default; it must match the sensor stream.
    """

    sampling_rate: float

    # Direct method
    training_period: float = 10.0
    beats_to_average: int = 1
    peak_threshold: float = 0.5

    # Buffered method
    window_size: int = 30

    # Conditioning
    lowpass_cutoff: float = 5.0
    highpass_cutoff: float = 0.2
    filter_order: int = 2

    # Plausible RR interval, exclusive bounds (seconds)
    min_rr_interval: float = 0.3
    max_rr_interval: float = 2.0

    def __post_init__(self) -> None:
        if self.sampling_rate <= 0:
            raise ValueError(f"sampling_rate must be positive, got {self.sampling_rate}")
        if self.training_period < 0:
            raise ValueError(f"training_period must be >= 0, got {self.training_period}")
        if self.beats_to_average < 1:
            raise ValueError(f"beats_to_average must be >= 1, got {self.beats_to_average}")
        if self.window_size < 3:
            raise ValueError(f"window_size must be >= 3, got {self.window_size}")
        if self.filter_order < 1:
            raise ValueError(f"filter_order must be >= 1, got {self.filter_order}")
        if self.lowpass_cutoff <= 0 or self.highpass_cutoff <= 0:
            raise ValueError("filter cutoffs must be positive")
        if self.highpass_cutoff >= self.lowpass_cutoff:
            raise ValueError(
                f"highpass_cutoff ({self.highpass_cutoff} Hz) must be below "
                f"lowpass_cutoff ({self.lowpass_cutoff} Hz)"
            )
        if not 0 <= self.min_rr_interval < self.max_rr_interval:
            raise ValueError(
                f"invalid RR interval bounds ({self.min_rr_interval}, {self.max_rr_interval})"
            )

    def make_conditioner(self) -> SignalConditioner:
        return SignalConditioner(
            self.sampling_rate,
            lowpass_cutoff=self.lowpass_cutoff,
            highpass_cutoff=self.highpass_cutoff,
            filter_order=self.filter_order,
        )


class EstimationPipeline:
    """
    Owns one conditioner + estimator pair per method.

    Samples must be ingested one at a time, from a single producer, with
    non-decreasing timestamps.  Non-finite values must be dropped before
    :meth:`ingest`; they are not checked here.

    Parameters
    ----------
    config:
        Pipeline settings.
    direct:
        Optional replacement for the direct-method estimator (any object with
        ``update(FilteredSample) -> HREstimate`` and ``reset()``).
    """

    def __init__(
        self,
        config: PipelineConfig,
        direct: HeartRateEstimator | None = None,
    ) -> None:
        self.config = config

        self._direct_conditioner = config.make_conditioner()
        self._buffered_conditioner = config.make_conditioner()

        self._direct: HeartRateEstimator = direct if direct is not None else DirectEstimator(
            training_period=config.training_period,
            beats_to_average=config.beats_to_average,
            min_interval=config.min_rr_interval,
            max_interval=config.max_rr_interval,
            peak_threshold=config.peak_threshold,
        )
        self._buffered = BufferedEstimator(
            capacity=config.window_size,
            min_interval=config.min_rr_interval,
            max_interval=config.max_rr_interval,
        )

        self._hr_direct = HREstimate.invalid()
        self._hr_buffered = HREstimate.invalid()
        self._samples_ingested = 0

        logger.info(
            "Estimation pipeline ready – fs=%.1f Hz window=%d training=%.1f s beats=%d",
            config.sampling_rate,
            config.window_size,
            config.training_period,
            config.beats_to_average,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def ingest(self, sample: RawSample) -> None:
        """Run *sample* through both methods and update the HR registers."""
        logger.debug("Raw PPG value: %s", sample.value)

        direct_in = FilteredSample.from_raw(sample, self._direct_conditioner.filter(sample.value))
        self._hr_direct = self._direct.update(direct_in)

        buffered_in = FilteredSample.from_raw(
            sample, self._buffered_conditioner.filter(sample.value)
        )
        self._hr_buffered = self._buffered.update(buffered_in)

        self._samples_ingested += 1

    def current_direct_hr(self) -> HREstimate:
        """Last direct-method estimate (no side effects)."""
        return self._hr_direct

    def current_buffered_hr(self) -> HREstimate:
        """Last buffered-method estimate (no side effects)."""
        return self._hr_buffered

    def reset(self) -> None:
        """Return both methods to their freshly constructed state."""
        self._direct_conditioner.reset()
        self._buffered_conditioner.reset()
        self._direct.reset()
        self._buffered.reset()
        self._hr_direct = HREstimate.invalid()
        self._hr_buffered = HREstimate.invalid()
        self._samples_ingested = 0
        logger.info("Estimation pipeline reset.")

    @property
    def samples_ingested(self) -> int:
        return self._samples_ingested

    @property
    def buffered(self) -> BufferedEstimator:
        return self._buffered

    @property
    def direct(self) -> HeartRateEstimator:
        return self._direct
