#!/usr/bin/env python3
"""
PPG Heart Rate – command-line entry point.

Usage
-----
    python main.py --input recording.csv --sampling-rate 128
    python main.py --demo 30 --sampling-rate 50

Options
-------
    --input PATH          CSV with ``timestamp_ms,ppg`` columns (header row skipped)
    --demo SECONDS        Stream a synthetic PPG signal instead of a file
    --sampling-rate HZ    Sensor sampling rate (default: 50)
    --training FLOAT      Direct-method training period in seconds (default: 10)
    --beats INT           Beats averaged by the direct method (default: 1)
    --window INT          Buffered-method window size in samples (default: 30)
    --log-interval INT    Print both HR registers every N samples (default: 50)
    --verbose             Enable per-sample debug logging
"""

from __future__ import annotations

import argparse
import logging
import math
import sys
from pathlib import Path
from typing import Iterator, List

import numpy as np

from ppg_heart_rate.pipeline import EstimationPipeline, PipelineConfig
from ppg_heart_rate.samples import RawSample
from ppg_heart_rate.synthetic import synthetic_ppg, to_raw_samples

logger = logging.getLogger("ppg_heart_rate")


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Dual-method heart-rate estimation from a PPG stream",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--input", type=Path, default=None,
                        help="CSV file with timestamp_ms,ppg columns")
    source.add_argument("--demo", type=float, default=None, metavar="SECONDS",
                        help="Stream a synthetic PPG signal of this duration")
    parser.add_argument("--sampling-rate", type=float, default=50.0,
                        help="Sensor sampling rate in Hz")
    parser.add_argument("--training", type=float, default=10.0,
                        help="Direct-method training period in seconds")
    parser.add_argument("--beats", type=int, default=1,
                        help="Number of beats averaged by the direct method")
    parser.add_argument("--window", type=int, default=30,
                        help="Buffered-method window size in samples")
    parser.add_argument("--demo-bpm", type=float, default=72.0,
                        help="Heart rate of the synthetic demo signal")
    parser.add_argument("--log-interval", type=int, default=50,
                        help="Print the HR registers every N samples")
    parser.add_argument("--verbose", action="store_true",
                        help="Per-sample debug logging")
    return parser.parse_args(argv)


# ---------------------------------------------------------------------------
# Sample sources
# ---------------------------------------------------------------------------

def read_csv(path: Path) -> Iterator[RawSample]:
    """
    Yield samples from a ``timestamp_ms,ppg`` CSV.

    Rows with a missing or non-finite field, or with a timestamp earlier than
    the last accepted row, are skipped with a warning, so only well-formed,
    ordered samples reach the pipeline.
    """
    data = np.genfromtxt(path, delimiter=",", skip_header=1, usecols=(0, 1), ndmin=2)
    last_ms = -math.inf
    for row_idx, (timestamp_ms, value) in enumerate(data, start=2):
        if not (math.isfinite(timestamp_ms) and math.isfinite(value)):
            logger.warning("Row %d: PPG or timestamp missing – skipped.", row_idx)
            continue
        if timestamp_ms < last_ms:
            logger.warning(
                "Row %d: timestamp %.1f ms precedes %.1f ms – skipped.",
                row_idx, timestamp_ms, last_ms,
            )
            continue
        last_ms = timestamp_ms
        yield RawSample(value=float(value), timestamp_ms=float(timestamp_ms))


def demo_samples(duration: float, sampling_rate: float, bpm: float) -> List[RawSample]:
    signal = synthetic_ppg(duration, sampling_rate, bpm=bpm, seed=0)
    return to_raw_samples(signal, sampling_rate)


def _fmt(estimate) -> str:
    return f"{estimate.bpm:d}" if estimate.valid else "--"


# ---------------------------------------------------------------------------
# Main loop
# ---------------------------------------------------------------------------

def run(args: argparse.Namespace) -> int:
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s – %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        config = PipelineConfig(
            sampling_rate=args.sampling_rate,
            training_period=args.training,
            beats_to_average=args.beats,
            window_size=args.window,
        )
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    if args.input is not None:
        if not args.input.is_file():
            logger.error("Input file not found: %s", args.input)
            return 1
        try:
            samples = list(read_csv(args.input))
        except ValueError as e:
            logger.error("Could not parse %s: %s", args.input, e)
            return 1
        logger.info("Loaded %d samples from %s", len(samples), args.input)
    else:
        samples = demo_samples(args.demo, args.sampling_rate, args.demo_bpm)
        logger.info("Streaming %.1f s synthetic PPG at %.1f BPM", args.demo, args.demo_bpm)

    pipeline = EstimationPipeline(config)
    log_interval = max(1, args.log_interval)

    try:
        for sample in samples:
            pipeline.ingest(sample)
            if pipeline.samples_ingested % log_interval == 0:
                direct = pipeline.current_direct_hr()
                buffered = pipeline.current_buffered_hr()
                print(
                    f"[t={sample.timestamp_ms / 1000.0:7.2f}s] "
                    f"Direct={_fmt(direct)}  Buffered={_fmt(buffered)}"
                )
    except KeyboardInterrupt:
        logger.info("Interrupted.")

    logger.info(
        "Done – %d samples.  Final HR: direct=%s buffered=%s",
        pipeline.samples_ingested,
        _fmt(pipeline.current_direct_hr()),
        _fmt(pipeline.current_buffered_hr()),
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    return run(parse_args(argv))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    sys.exit(main())
