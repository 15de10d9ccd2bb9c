"""
Sample aggregation utilities for repeated page-load measurements.

Provides averaging of several samples of one metric into a single value,
with explicit handling of runs that did not report the metric.
"""

import statistics
from enum import Enum
from typing import List, Optional

# Decimal places kept for averaged telemetry
AVERAGE_PRECISION = 2


class MissingDataStrategy(Enum):
    """Strategy for handling missing data points."""

    SKIP = "skip"  # Skip missing values, aggregate remaining
    ZERO = "zero"  # Treat missing values as zero


def aggregate_samples(
    samples: List[Optional[float]],
    missing_strategy: MissingDataStrategy = MissingDataStrategy.SKIP,
    precision: Optional[int] = None,
) -> Optional[float]:
    """
    Average multiple samples of one metric.

    Parameters
    ----------
    samples : List[Optional[float]]
        Measurements, may contain None for runs that did not report a value
    missing_strategy : MissingDataStrategy, default=SKIP
        How to handle missing data. SKIP shrinks the denominator to the runs
        that reported a value; ZERO keeps the full run count.
    precision : int, optional
        Round the result to this many decimal places

    Returns
    -------
    float or None
        Mean value, or None if there is no valid data

    Examples
    --------
    >>> aggregate_samples([1.0, None, 3.0])
    2.0
    >>> aggregate_samples([3.0, None, None], MissingDataStrategy.ZERO)
    1.0
    """
    if not samples:
        return None

    if missing_strategy == MissingDataStrategy.SKIP:
        processed = [s for s in samples if s is not None]
    else:
        processed = [s if s is not None else 0.0 for s in samples]

    if not processed:
        return None

    result = statistics.fmean(processed)
    if precision is not None:
        result = round(result, precision)
    return result


def round_half_up(value: float) -> int:
    """Round a non-negative value to the nearest integer, halves going up."""
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)
