"""
Averaging of repeated page-load runs into one representative record.

Scalar telemetry is averaged over the runs that reported it. Hostname and
eTLD+1 request maps are averaged over all runs, a key missing from a run
counting as zero for that run.
"""

import logging
from typing import Callable, Dict, Optional, Sequence

from .models import Metrics, Requests, Weight
from .utils.aggregation import (
    AVERAGE_PRECISION,
    MissingDataStrategy,
    aggregate_samples,
)

logger = logging.getLogger(__name__)


class AveragingError(ValueError):
    """Raised when a set of runs cannot be averaged."""


def _average_field(
    runs: Sequence[Metrics], selector: Callable[[Metrics], Optional[float]]
) -> float:
    """Mean over runs defining the field, rounded; 0 when no run defines it."""
    result = aggregate_samples(
        [selector(run) for run in runs],
        MissingDataStrategy.SKIP,
        precision=AVERAGE_PRECISION,
    )
    return result if result is not None else 0.0


def _average_counts(
    runs: Sequence[Metrics], selector: Callable[[Metrics], Dict[str, float]]
) -> Dict[str, float]:
    """Average per-key counts over every run, dropping keys averaging to zero."""
    keys: Dict[str, None] = {}
    for run in runs:
        keys.update(dict.fromkeys(selector(run)))

    averages: Dict[str, float] = {}
    for key in keys:
        average = aggregate_samples(
            [selector(run).get(key) for run in runs],
            MissingDataStrategy.ZERO,
            precision=AVERAGE_PRECISION,
        )
        if average:
            averages[key] = average
    return averages


def compute_average_metrics(runs: Sequence[Metrics]) -> Metrics:
    """
    Reduce repeated runs of one domain to a single averaged ``Metrics``.

    Parameters
    ----------
    runs : Sequence[Metrics]
        Non-empty runs of the same domain and environment. Non-numeric fields
        (url, domain, test environment, method, measure time) are taken from
        the first run.

    Returns
    -------
    Metrics
        New record; the input runs are left untouched.

    Raises
    ------
    AveragingError
        If ``runs`` is empty.
    """
    if not runs:
        raise AveragingError("Cannot compute average of empty metrics array")

    first = runs[0]
    logger.debug(
        "averaging.compute",
        extra={"domain": first.domain, "run_count": len(runs)},
    )

    weight = Weight(
        total_bytes=_average_field(runs, lambda m: m.weight.total_bytes),
        third_party_bytes=_average_field(runs, lambda m: m.weight.third_party_bytes),
    )
    requests = Requests(
        total_requests=_average_field(runs, lambda m: m.requests.total_requests),
        blocked_requests=_average_field(runs, lambda m: m.requests.blocked_requests),
        not_blocked_requests=_average_field(
            runs, lambda m: m.requests.not_blocked_requests
        ),
        third_party_requests=_average_field(
            runs, lambda m: m.requests.third_party_requests
        ),
        third_party_blocked_requests=_average_field(
            runs, lambda m: m.requests.third_party_blocked_requests
        ),
        third_party_not_blocked_requests=_average_field(
            runs, lambda m: m.requests.third_party_not_blocked_requests
        ),
        hostnames=_average_counts(runs, lambda m: m.requests.hostnames),
        etld_plus1s=_average_counts(runs, lambda m: m.requests.etld_plus1s),
    )
    return first.model_copy(
        update={
            "dom_content_load_time_ms": _average_field(
                runs, lambda m: m.dom_content_load_time_ms
            ),
            "load_time_ms": _average_field(runs, lambda m: m.load_time_ms),
            "weight": weight,
            "requests": requests,
        }
    )
