"""Hostname classification against the tracker and company taxonomies.

Observed hostnames are resolved with the same two-tier rule for every
reference table: try the exact hostname first, then its registrable domain
(eTLD+1). Companies are reached through the resolved tracker's ``companyId``,
falling back to the eTLD+1 label used as a literal company id
(``google.com`` -> ``google``).

Hostnames that resolve to nothing are not errors: callers skip them for
tracker/company attribution and still count them as plain hostnames.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, TypeVar

from .models import CompanyInfo, ReferenceData, TrackerInfo
from .utils.hostnames import get_etld_plus1, get_registrable_label

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Classification:
    """Resolution result for one hostname.

    Attributes
    ----------
    hostname : str
        Hostname as observed on the network.
    etld_plus1 : str or None
        Registrable domain, None when the hostname has no public suffix.
    tracker : str or None
        Tracker display name, None when the hostname is not a known tracker.
    company : str or None
        Owning company display name, None when no company could be attributed.
    """

    hostname: str
    etld_plus1: Optional[str]
    tracker: Optional[str]
    company: Optional[str]


def first_match(keys: Iterable[Optional[str]], table: Mapping[str, T]) -> Optional[T]:
    """Return the table entry for the first key present, in key order."""
    for key in keys:
        if key is not None and key in table:
            return table[key]
    return None


class EntityResolver:
    """Resolve hostnames to tracker and company identities.

    One resolver is built per statistics pass from the reference tables of
    that pass; results are memoised per hostname for the resolver's lifetime.
    """

    def __init__(self, reference: ReferenceData) -> None:
        trackers = reference.trackers.trackers
        # Hostname-or-eTLD+1 -> tracker, dropping ids missing from `trackers`
        self._domain_trackers: Dict[str, TrackerInfo] = {
            domain: trackers[tracker_id]
            for domain, tracker_id in reference.trackers.tracker_domains.items()
            if tracker_id in trackers
        }
        self._companies: Dict[str, CompanyInfo] = reference.companies.companies
        self._cache: Dict[str, Classification] = {}

    def classify(self, hostname: str) -> Classification:
        """Classify a hostname, using the memoised result when available."""
        cached = self._cache.get(hostname)
        if cached is not None:
            return cached

        etld_plus1 = get_etld_plus1(hostname)
        tracker = self._resolve_tracker(hostname, etld_plus1)
        company = self._resolve_company(tracker, etld_plus1)
        result = Classification(
            hostname=hostname,
            etld_plus1=etld_plus1,
            tracker=tracker.name if tracker is not None else None,
            company=company.name if company is not None else None,
        )
        if result.tracker is None and result.company is None:
            logger.debug("classification.unresolved", extra={"hostname": hostname})
        self._cache[hostname] = result
        return result

    def _resolve_tracker(
        self, hostname: str, etld_plus1: Optional[str]
    ) -> Optional[TrackerInfo]:
        return first_match((hostname, etld_plus1), self._domain_trackers)

    def _resolve_company(
        self, tracker: Optional[TrackerInfo], etld_plus1: Optional[str]
    ) -> Optional[CompanyInfo]:
        keys = (
            tracker.company_id if tracker is not None else None,
            get_registrable_label(etld_plus1) if etld_plus1 is not None else None,
        )
        return first_match(keys, self._companies)
