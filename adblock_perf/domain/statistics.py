"""
Report statistics over a reconciled metrics data set.

Walks every domain's entries once, accumulating scalar totals, flat request
tallies per hostname / eTLD+1 / tracker / company, and the set of tested
domains reaching each entity. Reach sets are reduced to their sizes before the
result leaves this module.

Precondition: each domain contributes exactly one, already averaged, entry.
Averages divide by the number of domains, not the number of entries.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import DefaultDict, Dict, Set

from .classification import EntityResolver
from .models import Metrics, MetricsData, ReferenceData, ReportResult, TestEnvironment
from .utils.aggregation import round_half_up

logger = logging.getLogger(__name__)


@dataclass
class _Totals:  # pylint: disable=too-many-instance-attributes
    """Scalar sums over all entries."""

    dom_content_load_time: float = 0.0
    load_time: float = 0.0
    bytes: float = 0.0
    requests: float = 0.0
    third_party_requests: float = 0.0
    blocked_requests: float = 0.0
    hostnames: int = 0
    etld_plus1s: int = 0

    def add(self, entry: Metrics) -> None:
        self.dom_content_load_time += entry.dom_content_load_time_ms or 0
        self.load_time += entry.load_time_ms or 0
        self.bytes += entry.weight.total_bytes or 0
        self.requests += entry.requests.total_requests or 0
        self.third_party_requests += entry.requests.third_party_requests or 0
        self.blocked_requests += entry.requests.blocked_requests or 0


def _tally() -> DefaultDict[str, float]:
    return defaultdict(float)


def _reach() -> DefaultDict[str, Set[str]]:
    return defaultdict(set)


@dataclass
class _Collected:
    """Per-entity tallies (summed counts) and reach (sets of tested domains)."""

    hostnames: DefaultDict[str, float] = field(default_factory=_tally)
    etld_plus1s: DefaultDict[str, float] = field(default_factory=_tally)
    trackers: DefaultDict[str, float] = field(default_factory=_tally)
    companies: DefaultDict[str, float] = field(default_factory=_tally)
    etld_plus1_websites: DefaultDict[str, Set[str]] = field(default_factory=_reach)
    tracker_websites: DefaultDict[str, Set[str]] = field(default_factory=_reach)
    company_websites: DefaultDict[str, Set[str]] = field(default_factory=_reach)


def _process_hostnames(
    domain: str,
    entry: Metrics,
    resolver: EntityResolver,
    totals: _Totals,
    collected: _Collected,
) -> None:
    hostnames = entry.requests.hostnames
    totals.hostnames += len(hostnames)

    for hostname, count in hostnames.items():
        collected.hostnames[hostname] += count

        classification = resolver.classify(hostname)
        if classification.tracker is not None:
            collected.trackers[classification.tracker] += count
            collected.tracker_websites[classification.tracker].add(domain)
        if classification.company is not None:
            collected.companies[classification.company] += count
            collected.company_websites[classification.company].add(domain)
        if classification.etld_plus1 is not None:
            collected.etld_plus1_websites[classification.etld_plus1].add(domain)


def _process_etld_plus1s(entry: Metrics, totals: _Totals, collected: _Collected) -> None:
    etld_plus1s = entry.requests.etld_plus1s
    totals.etld_plus1s += len(etld_plus1s)

    for etld_plus1, count in etld_plus1s.items():
        collected.etld_plus1s[etld_plus1] += count


def _reach_counts(reach: Dict[str, Set[str]]) -> Dict[str, int]:
    return {entity: len(websites) for entity, websites in reach.items()}


def _average(total: float, site_count: int) -> float:
    # Empty data sets report zero averages
    return total / site_count if site_count else 0.0


def compute_statistics(data: MetricsData, reference: ReferenceData) -> ReportResult:
    """
    Compute report statistics for one metrics data set.

    Parameters
    ----------
    data : MetricsData
        Domain -> entries, normally filtered to the common domain set
    reference : ReferenceData
        Tracker and company tables loaded for this report run

    Returns
    -------
    ReportResult
        Totals, per-site averages, flat tallies and website reach per
        eTLD+1, tracker and company. ``type`` is ``baseline``; callers set
        the detected environment.

    Examples
    --------
    Two domains with 20 and 10 total requests (5 and 2 blocked) give
    ``total_requests == 30``, ``average_requests == 15.0``,
    ``total_blocked_requests == 7`` and ``average_blocked_requests == 3.5``.
    """
    site_count = len(data)
    resolver = EntityResolver(reference)
    totals = _Totals()
    collected = _Collected()

    for domain, entries in data.items():
        for entry in entries:
            totals.add(entry)
            _process_hostnames(domain, entry, resolver, totals, collected)
            _process_etld_plus1s(entry, totals, collected)

    logger.debug(
        "statistics.computed",
        extra={
            "site_count": site_count,
            "hostname_count": len(collected.hostnames),
            "tracker_count": len(collected.trackers),
            "company_count": len(collected.companies),
        },
    )

    return ReportResult(
        site_count=site_count,
        average_dom_content_load_time=_average(totals.dom_content_load_time, site_count),
        average_load_time=_average(totals.load_time, site_count),
        total_load_time=totals.load_time,
        average_bytes=_average(totals.bytes, site_count),
        total_bytes=totals.bytes,
        average_requests=_average(totals.requests, site_count),
        total_requests=round_half_up(totals.requests),
        average_third_party_requests=_average(
            totals.third_party_requests, site_count
        ),
        total_third_party_requests=round_half_up(totals.third_party_requests),
        average_blocked_requests=_average(totals.blocked_requests, site_count),
        total_blocked_requests=round_half_up(totals.blocked_requests),
        average_hostnames=_average(totals.hostnames, site_count),
        total_hostnames=totals.hostnames,
        average_etld_plus1s=_average(totals.etld_plus1s, site_count),
        total_etld_plus1s=totals.etld_plus1s,
        domains_data=data,
        hostnames_data=dict(collected.hostnames),
        etld_plus1_data=dict(collected.etld_plus1s),
        trackers_data=dict(collected.trackers),
        companies_data=dict(collected.companies),
        etld_plus1_websites_data=_reach_counts(collected.etld_plus1_websites),
        companies_websites_data=_reach_counts(collected.company_websites),
        trackers_websites_data=_reach_counts(collected.tracker_websites),
        type=TestEnvironment.BASELINE,
    )
