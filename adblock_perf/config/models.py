"""Settings and JSON loaders.

This module defines the environment-driven settings of the benchmark and
report generator, and the loaders for the JSON files they work on: report
input metrics and the tracker/company reference tables. JSON is parsed with
`orjson`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import orjson
from pydantic import Field, TypeAdapter, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.models import (
    CompaniesData,
    Metrics,
    MetricsData,
    ReferenceData,
    TrackersData,
)

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent.parent / "data"

_metrics_data_adapter: TypeAdapter[Dict[str, List[Metrics]]] = TypeAdapter(
    Dict[str, List[Metrics]]
)


class MetricsFileError(RuntimeError):
    """Raised when a metrics or reference file cannot be read or parsed."""


class ReportSettings(BaseSettings):
    """Environment-driven settings and .env support.

    Attributes
    ----------
    log_level: str
        Logging level name (e.g., "DEBUG", "INFO"). Defaults to "INFO".
    min_requests_threshold: float
        Minimum mean total requests per run for a domain to take part in
        cross-file comparisons.
    trackers_path: Path
        Tracker reference table. Defaults to the bundled snapshot.
    companies_path: Path
        Company reference table. Defaults to the bundled snapshot.
    metrics_dir: Path
        Directory collected metrics files are written to.
    report_dir: Path
        Default report output directory.
    runner: Optional[str]
        Import path (``module:attribute``) of the page-load runner factory
        used by metrics collection.
    """

    model_config = SettingsConfigDict(env_file=".env", env_prefix="ADBLOCK_PERF_")

    log_level: str = Field("INFO")
    min_requests_threshold: float = Field(
        20,
        ge=0,
        description="Minimum mean total requests per run for a reliable domain",
    )
    trackers_path: Path = Field(
        DATA_DIR / "trackers.json", description="Tracker reference table"
    )
    companies_path: Path = Field(
        DATA_DIR / "companies.json", description="Company reference table"
    )
    metrics_dir: Path = Field(
        Path("dist/metrics"), description="Output directory for collected metrics"
    )
    report_dir: Path = Field(
        Path("report"), description="Default output directory for reports"
    )
    runner: Optional[str] = Field(
        None, description="Page-load runner factory as module:attribute"
    )


def read_json(path: Path) -> Any:
    """Read and parse a JSON file.

    Raises
    ------
    MetricsFileError
        If the file cannot be read or is not valid JSON.
    """
    try:
        return orjson.loads(path.read_bytes())
    except OSError as e:
        raise MetricsFileError(f"Error reading file {path}: {e}") from e
    except orjson.JSONDecodeError as e:
        raise MetricsFileError(f"Error parsing file {path}: {e}") from e


def load_metrics_file(path: Path) -> MetricsData:
    """Load one metrics file (domain -> list of metrics records)."""
    raw = read_json(path)
    try:
        return _metrics_data_adapter.validate_python(raw)
    except ValidationError as e:
        raise MetricsFileError(f"Invalid metrics data in {path}: {e}") from e


def load_reference_data(
    trackers_path: Optional[Path] = None, companies_path: Optional[Path] = None
) -> ReferenceData:
    """Load the tracker and company reference tables.

    Paths default to the bundled snapshot in ``adblock_perf/data``.
    """
    trackers_path = trackers_path or DATA_DIR / "trackers.json"
    companies_path = companies_path or DATA_DIR / "companies.json"
    try:
        trackers = TrackersData.model_validate(read_json(trackers_path))
        companies = CompaniesData.model_validate(read_json(companies_path))
    except ValidationError as e:
        raise MetricsFileError(f"Invalid reference data: {e}") from e

    logger.info(
        "config.reference_loaded",
        extra={
            "tracker_count": len(trackers.trackers),
            "tracker_domain_count": len(trackers.tracker_domains),
            "company_count": len(companies.companies),
        },
    )
    return ReferenceData(trackers=trackers, companies=companies)
