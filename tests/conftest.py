"""Pytest configuration for test suite.

Ensures the project root is on ``sys.path`` so imports like
``import adblock_perf`` resolve correctly regardless of the working directory
pytest chooses, and provides shared metrics and reference-data fixtures.
"""

from __future__ import annotations

import copy
import sys
from pathlib import Path
from typing import Any, Callable, Dict

import pytest


def _ensure_project_root_on_syspath() -> None:
    project_root = Path(__file__).resolve().parents[1]
    project_root_str = str(project_root)
    if project_root_str not in sys.path:
        # Prepend to prefer local sources over site-packages
        sys.path.insert(0, project_root_str)


_ensure_project_root_on_syspath()

from adblock_perf.domain.models import Metrics, ReferenceData  # noqa: E402

BASE_METRICS: Dict[str, Any] = {
    "url": "https://example.com",
    "domain": "example.com",
    "measureTime": "2025-01-15T10:00:00.000Z",
    "testEnv": "baseline",
    "method": "puppeteer",
    "domContentLoadTimeMs": 1000,
    "loadTimeMs": 2000,
    "weight": {"totalBytes": 1000, "thirdPartyBytes": 500},
    "requests": {
        "totalRequests": 10,
        "blockedRequests": 0,
        "notBlockedRequests": 10,
        "thirdPartyRequests": 5,
        "thirdPartyBlockedRequests": 0,
        "thirdPartyNotBlockedRequests": 5,
        "hostnames": {},
        "etldPlus1s": {},
    },
}


def build_metrics_dict(**overrides: Any) -> Dict[str, Any]:
    """Return raw (camelCase) metrics JSON with top-level and nested overrides.

    ``weight`` and ``requests`` overrides are merged into the defaults.
    """
    data = copy.deepcopy(BASE_METRICS)
    for key, value in overrides.items():
        if key in ("weight", "requests"):
            data[key].update(value)
        else:
            data[key] = value
    return data


@pytest.fixture
def make_metrics() -> Callable[..., Metrics]:
    """Factory building validated `Metrics` from camelCase overrides."""

    def _make(**overrides: Any) -> Metrics:
        return Metrics.model_validate(build_metrics_dict(**overrides))

    return _make


@pytest.fixture
def metrics_json() -> Callable[..., Dict[str, Any]]:
    """Factory building raw metrics JSON dicts, as stored on disk."""
    return build_metrics_dict


@pytest.fixture
def reference() -> ReferenceData:
    """Small tracker/company taxonomy covering every resolution path."""
    return ReferenceData.model_validate(
        {
            "trackers": {
                "timeUpdated": "2025-01-15T00:00:00.000Z",
                "categories": {"0": "Advertising", "1": "Site Analytics"},
                "trackers": {
                    "google_analytics": {
                        "name": "Google Analytics",
                        "categoryId": 1,
                        "url": "https://analytics.google.com",
                        "companyId": "google",
                    },
                    "analytics": {
                        "name": "Analytics",
                        "categoryId": 1,
                        "url": None,
                        "companyId": "analyticsco",
                    },
                    "example_stats": {
                        "name": "Example Stats",
                        "categoryId": 1,
                        "url": None,
                        "companyId": "unknownco",
                    },
                    "adnet": {
                        "name": "AdNet",
                        "categoryId": 0,
                        "url": None,
                        "companyId": None,
                    },
                },
                "trackerDomains": {
                    "google-analytics.com": "google_analytics",
                    "analytics.com": "analytics",
                    "stats.example.net": "example_stats",
                    "adnet.io": "adnet",
                    "ghost.com": "missing_tracker",
                },
            },
            "companies": {
                "timeUpdated": "2025-01-15T00:00:00.000Z",
                "companies": {
                    "google": {
                        "name": "Google",
                        "websiteUrl": "https://www.google.com/",
                        "description": None,
                    },
                    "analyticsco": {
                        "name": "Analytics Inc",
                        "websiteUrl": None,
                        "description": None,
                    },
                    "yandex": {
                        "name": "Yandex",
                        "websiteUrl": "https://yandex.com/",
                        "description": None,
                    },
                    "adnet": {
                        "name": "AdNet Holdings",
                        "websiteUrl": None,
                        "description": None,
                    },
                },
            },
        }
    )
