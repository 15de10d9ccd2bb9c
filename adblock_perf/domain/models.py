"""Canonical data model for benchmark metrics, reference tables and reports.

These Pydantic models mirror the JSON persisted by the metrics collector and
consumed by the report generator. Python attributes are snake_case; every
field carries the camelCase alias used on disk, so records are validated from
raw JSON with ``model_validate`` and written back with ``by_alias=True``.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TestEnvironment(str, Enum):
    """Ad-blocking configuration active during a capture run."""

    # Not a pytest test class despite the name
    __test__ = False

    NONE = "none"
    BASELINE = "baseline"
    DNS = "dns"
    EXTENSION = "extension"


class _AliasedModel(BaseModel):
    """Base model accepting both attribute names and camelCase aliases."""

    model_config = ConfigDict(populate_by_name=True)


class Weight(_AliasedModel):
    """Bytes transferred during a page load.

    Attributes
    ----------
    total_bytes: float
        All bytes transferred for the page.
    third_party_bytes: Optional[float]
        Subset transferred from third-party origins, if the driver reported it.
    """

    total_bytes: float = Field(0, alias="totalBytes", ge=0)
    third_party_bytes: Optional[float] = Field(None, alias="thirdPartyBytes", ge=0)


class Requests(_AliasedModel):
    """Request counters for a page load.

    ``hostnames`` and ``etld_plus1s`` map an observed hostname (or its
    registrable domain) to the number of not-blocked requests made to it.
    """

    total_requests: float = Field(0, alias="totalRequests", ge=0)
    blocked_requests: float = Field(0, alias="blockedRequests", ge=0)
    not_blocked_requests: float = Field(0, alias="notBlockedRequests", ge=0)
    third_party_requests: float = Field(0, alias="thirdPartyRequests", ge=0)
    third_party_blocked_requests: float = Field(
        0, alias="thirdPartyBlockedRequests", ge=0
    )
    third_party_not_blocked_requests: float = Field(
        0, alias="thirdPartyNotBlockedRequests", ge=0
    )
    hostnames: Dict[str, float] = Field(default_factory=dict)
    etld_plus1s: Dict[str, float] = Field(default_factory=dict, alias="etldPlus1s")


class Metrics(_AliasedModel):
    """One page-load measurement, possibly already averaged over runs.

    Attributes
    ----------
    url: str
        Final URL of the tested page.
    domain: str
        Domain name the page was tested under.
    measure_time: str
        ISO-8601 capture timestamp, kept verbatim.
    test_env: Optional[str]
        Test environment name. Stored as a plain string so that files written
        with unknown environment names still load; None when the record does
        not name one.
    method: str
        Capture method identifier.
    dom_content_load_time_ms: Optional[float]
        DOMContentLoaded time, absent if the run failed to report it.
    load_time_ms: Optional[float]
        Load event time, absent if the run failed to report it.
    """

    url: str
    domain: str
    measure_time: str = Field(..., alias="measureTime")
    test_env: Optional[str] = Field(None, alias="testEnv")
    method: str = "puppeteer"
    dom_content_load_time_ms: Optional[float] = Field(
        None, alias="domContentLoadTimeMs", ge=0
    )
    load_time_ms: Optional[float] = Field(None, alias="loadTimeMs", ge=0)
    weight: Weight = Field(default_factory=Weight)
    requests: Requests = Field(default_factory=Requests)


# Domain name -> one entry per completed benchmark run for that domain
MetricsData = Dict[str, List[Metrics]]


class TrackerInfo(_AliasedModel):
    """Tracker entry of the reference taxonomy."""

    name: str
    category_id: Optional[int] = Field(None, alias="categoryId")
    url: Optional[str] = None
    company_id: Optional[str] = Field(None, alias="companyId")
    source: Optional[str] = None


class TrackersData(_AliasedModel):
    """Tracker reference table.

    Attributes
    ----------
    categories: Dict[str, str]
        Category id -> category name.
    trackers: Dict[str, TrackerInfo]
        Tracker id -> tracker description.
    tracker_domains: Dict[str, str]
        Hostname or eTLD+1 -> tracker id.
    """

    time_updated: Optional[str] = Field(None, alias="timeUpdated")
    categories: Dict[str, str] = Field(default_factory=dict)
    trackers: Dict[str, TrackerInfo] = Field(default_factory=dict)
    tracker_domains: Dict[str, str] = Field(
        default_factory=dict, alias="trackerDomains"
    )


class CompanyInfo(_AliasedModel):
    """Company entry of the reference taxonomy."""

    name: str
    website_url: Optional[str] = Field(None, alias="websiteUrl")
    description: Optional[str] = None
    source: Optional[str] = None


class CompaniesData(_AliasedModel):
    """Company reference table: company id -> company description."""

    time_updated: Optional[str] = Field(None, alias="timeUpdated")
    companies: Dict[str, CompanyInfo] = Field(default_factory=dict)


class ReferenceData(BaseModel):
    """Reference tables used by one report-generation call.

    Loaded once per call and passed explicitly into the statistics
    aggregator; never cached at module level.
    """

    trackers: TrackersData = Field(default_factory=TrackersData)
    companies: CompaniesData = Field(default_factory=CompaniesData)


class ReportResult(_AliasedModel):
    """Aggregated statistics for one input file / test environment.

    The ``*_websites_data`` maps hold website reach: the number of distinct
    tested domains that made at least one not-blocked request to the entity.
    The ``*_data`` tallies hold summed not-blocked request counts.
    """

    site_count: int = Field(0, alias="siteCount")
    average_dom_content_load_time: float = Field(0.0, alias="averageDomContentLoadTime")
    average_load_time: float = Field(0.0, alias="averageLoadTime")
    total_load_time: float = Field(0.0, alias="totalLoadTime")
    average_bytes: float = Field(0.0, alias="averageBytes")
    total_bytes: float = Field(0.0, alias="totalBytes")
    average_requests: float = Field(0.0, alias="averageRequests")
    total_requests: int = Field(0, alias="totalRequests")
    average_third_party_requests: float = Field(
        0.0, alias="averageThirdPartyRequests"
    )
    total_third_party_requests: int = Field(0, alias="totalThirdPartyRequests")
    average_blocked_requests: float = Field(0.0, alias="averageBlockedRequests")
    total_blocked_requests: int = Field(0, alias="totalBlockedRequests")
    average_hostnames: float = Field(0.0, alias="averageHostnames")
    total_hostnames: int = Field(0, alias="totalHostnames")
    average_etld_plus1s: float = Field(0.0, alias="averageEtldPlus1s")
    total_etld_plus1s: int = Field(0, alias="totalEtldPlus1s")
    domains_data: MetricsData = Field(default_factory=dict, alias="domainsData")
    hostnames_data: Dict[str, float] = Field(
        default_factory=dict, alias="hostnamesData"
    )
    etld_plus1_data: Dict[str, float] = Field(
        default_factory=dict, alias="etldPlus1Data"
    )
    trackers_data: Dict[str, float] = Field(default_factory=dict, alias="trackersData")
    companies_data: Dict[str, float] = Field(
        default_factory=dict, alias="companiesData"
    )
    etld_plus1_websites_data: Dict[str, int] = Field(
        default_factory=dict, alias="etldPlus1WebsitesData"
    )
    companies_websites_data: Dict[str, int] = Field(
        default_factory=dict, alias="companiesWebsitesData"
    )
    trackers_websites_data: Dict[str, int] = Field(
        default_factory=dict, alias="trackersWebsitesData"
    )
    type: TestEnvironment = TestEnvironment.BASELINE
