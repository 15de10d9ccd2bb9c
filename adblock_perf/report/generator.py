"""Report generation from collected metrics files.

Loads one metrics file per test environment, restricts every file to the
domains reliably measured in all of them, computes statistics per file and
hands the resulting map (input file name -> ``ReportResult``) to the report
artifact writer.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..config.models import load_metrics_file, load_reference_data
from ..domain.models import MetricsData, ReferenceData, ReportResult, TestEnvironment
from ..domain.reconcile import (
    MIN_REQUESTS_THRESHOLD,
    filter_by_domains,
    find_common_domains,
)
from ..domain.statistics import compute_statistics
from .artifact import write_report

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


def load_metrics_data(input_files: Sequence[Path]) -> List[MetricsData]:
    """Load every input file in order.

    Raises
    ------
    MetricsFileError
        On the first file that cannot be read or parsed; no partial result.
    """
    all_data = []
    for path in input_files:
        data = load_metrics_file(path)
        logger.info(
            "report.input_loaded",
            extra={"path": str(path), "domain_count": len(data)},
        )
        all_data.append(data)
    return all_data


def determine_test_environment(data: Optional[MetricsData]) -> TestEnvironment:
    """Detect the environment from the first entry of the first domain.

    Missing data or a missing first entry means ``baseline``; an unknown
    environment name means ``none``.
    """
    if not data:
        return TestEnvironment.BASELINE

    first_entries = next(iter(data.values()))
    if not first_entries or not first_entries[0].test_env:
        return TestEnvironment.BASELINE

    try:
        return TestEnvironment(first_entries[0].test_env)
    except ValueError:
        logger.warning(
            "report.unknown_test_environment",
            extra={"test_env": first_entries[0].test_env},
        )
        return TestEnvironment.NONE


def generate_report_results(
    all_data: Sequence[MetricsData],
    input_files: Sequence[Path],
    reference: ReferenceData,
    threshold: float = MIN_REQUESTS_THRESHOLD,
) -> Dict[str, ReportResult]:
    """
    Build one ``ReportResult`` per input file over the common domain set.

    Parameters
    ----------
    all_data : Sequence[MetricsData]
        Loaded metrics, aligned with ``input_files``
    input_files : Sequence[Path]
        Input paths; results are keyed by their base names
    reference : ReferenceData
        Tracker and company tables for this report run
    threshold : float
        Minimum mean total requests per run for a domain to be compared

    Raises
    ------
    NoCommonDomainsError
        If the inputs share no reliable domain
    """
    common_domains = find_common_domains(all_data, threshold)

    results: Dict[str, ReportResult] = {}
    for path, data in zip(input_files, all_data):
        filtered = filter_by_domains(data, common_domains)
        result = compute_statistics(filtered, reference)
        result.type = determine_test_environment(filtered)
        results[Path(path).name] = result
        logger.info(
            "report.file_summarized",
            extra={
                "file": Path(path).name,
                "environment": result.type.value,
                "site_count": result.site_count,
                "average_load_time": result.average_load_time,
            },
        )
    return results


def generate_report(
    input_files: Sequence[Path],
    output_dir: Path,
    reference: Optional[ReferenceData] = None,
    threshold: float = MIN_REQUESTS_THRESHOLD,
    now: Optional[datetime] = None,
) -> Path:
    """
    Generate a timestamped report from metrics files.

    Reference data is loaded from the bundled snapshot when not given. Returns
    the path of the written HTML report.
    """
    logger.info("report.generate.start", extra={"input_count": len(input_files)})

    all_data = load_metrics_data(input_files)
    if reference is None:
        reference = load_reference_data()
    results = generate_report_results(all_data, input_files, reference, threshold)

    timestamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
    report_path = write_report(results, output_dir, f"report_{timestamp}.html")
    logger.info("report.generate.done", extra={"report_path": str(report_path)})
    return report_path
