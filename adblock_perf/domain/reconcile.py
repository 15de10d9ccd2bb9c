"""
Cross-file domain reconciliation.

Report inputs come from separate capture sessions, one per test environment,
and rarely cover exactly the same domains. Comparisons are restricted to the
domains present and reliably loaded in every input. A domain is reliable when
it averages at least ``MIN_REQUESTS_THRESHOLD`` requests per run; pages below
that are typically captchas, block pages or failed loads.
"""

import logging
from typing import List, Optional, Sequence, Set

from .models import MetricsData

logger = logging.getLogger(__name__)

MIN_REQUESTS_THRESHOLD = 20


class NoCommonDomainsError(RuntimeError):
    """Raised when the input data sets share no reliable domain."""


def reliable_domains(
    data: MetricsData, threshold: float = MIN_REQUESTS_THRESHOLD
) -> Set[str]:
    """
    Return domains whose mean ``totalRequests`` per run meets ``threshold``.

    Domains without any entry are never reliable.

    Notes
    -----
    A domain averaging 15 requests is dropped; one averaging exactly 20 is kept.
    """
    domains = set()
    for domain, entries in data.items():
        if not entries:
            continue
        total = sum(entry.requests.total_requests for entry in entries)
        if total / len(entries) >= threshold:
            domains.add(domain)
    return domains


def find_common_domains(
    all_data: Sequence[MetricsData], threshold: float = MIN_REQUESTS_THRESHOLD
) -> Set[str]:
    """
    Intersect the reliable domains of every data set.

    Parameters
    ----------
    all_data : Sequence[MetricsData]
        One data set per report input file
    threshold : float, default=MIN_REQUESTS_THRESHOLD
        Minimum mean total requests per run for a domain to count

    Returns
    -------
    Set[str]
        Domains reliable in all data sets

    Raises
    ------
    NoCommonDomainsError
        If no data sets are given or the intersection is empty
    """
    common: Optional[Set[str]] = None
    per_file: List[int] = []
    for data in all_data:
        domains = reliable_domains(data, threshold)
        per_file.append(len(domains))
        common = domains if common is None else common & domains

    if not common:
        raise NoCommonDomainsError("No common domains found across input files.")

    logger.info(
        "reconcile.common_domains",
        extra={
            "common_count": len(common),
            "reliable_per_file": per_file,
            "threshold": threshold,
        },
    )
    return common


def filter_by_domains(data: MetricsData, domains: Set[str]) -> MetricsData:
    """Project a data set onto ``domains``, keeping input order and entries."""
    return {domain: entries for domain, entries in data.items() if domain in domains}
