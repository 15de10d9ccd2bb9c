"""Metrics collection: run page loads, average them and persist the result.

Browser automation is delegated to a page-load runner implementing the
`PageLoadRunner` protocol. This module turns each runner result into a
`Metrics` record, averages the repeated runs of a domain and appends the
averaged record to the metrics file of the current session.
"""

# pylint: disable=too-few-public-methods

from __future__ import annotations

import logging
from datetime import datetime, timezone
from importlib import import_module
from pathlib import Path
from typing import Callable, List, Optional, Protocol

import httpx
import orjson
from pydantic import BaseModel, ConfigDict, Field

from .config.models import load_metrics_file
from .domain.averaging import compute_average_metrics
from .domain.models import Metrics, Requests, TestEnvironment, Weight

logger = logging.getLogger(__name__)

# Repeated runs per domain, averaged into one stored record
RUNS_PER_DOMAIN = 3

URL_PROBE_TIMEOUT_SECONDS = 5.0
URL_PROBE_PROTOCOLS = ("http://", "https://")


class PageLoadResults(BaseModel):
    """Raw measurements of one page load, as reported by the runner."""

    model_config = ConfigDict(populate_by_name=True)

    dom_content_load_time_ms: Optional[float] = Field(
        None, alias="domContentLoadTimeMs"
    )
    load_time_ms: Optional[float] = Field(None, alias="loadTimeMs")
    weight: Weight = Field(default_factory=Weight)
    requests: Requests = Field(default_factory=Requests)


class PageLoadRunner(Protocol):
    """Browser driver contract.

    Implementations launch a browser (optionally behind a proxy or with the
    blocking extension loaded), load pages and report `PageLoadResults`.
    """

    def launch(self, proxy_server: Optional[str], with_extension: bool) -> None:
        """Start the browser."""
        raise NotImplementedError

    def warm_up(self, url: str) -> None:
        """Load ``url`` once without measuring, to prime DNS and caches."""
        raise NotImplementedError

    def run(
        self,
        environment: TestEnvironment,
        url: str,
        domain: str,
        har_path: Optional[str] = None,
    ) -> Optional[PageLoadResults]:
        """Load ``url`` once and return its measurements, or None on failure."""
        raise NotImplementedError

    def close(self) -> None:
        """Shut the browser down."""
        raise NotImplementedError


def load_runner(import_path: str, verbose: bool = False) -> PageLoadRunner:
    """Instantiate a runner from a ``module:attribute`` factory path.

    Raises
    ------
    ValueError
        If the path is malformed or does not name a callable.
    """
    module_name, sep, attribute = import_path.partition(":")
    if not sep or not module_name or not attribute:
        raise ValueError(
            f"Invalid runner path '{import_path}', expected 'module:attribute'"
        )
    factory = getattr(import_module(module_name), attribute, None)
    if not callable(factory):
        raise ValueError(f"Runner factory '{import_path}' is not callable")
    return factory(verbose=verbose)


def resolve_url(
    domain: str, client_factory: Callable[..., httpx.Client] = httpx.Client
) -> Optional[str]:
    """Find the URL a domain's home page ends up at.

    Tries plain HTTP first, then HTTPS, following redirects. Returns None when
    neither protocol answers.
    """
    with client_factory(
        timeout=URL_PROBE_TIMEOUT_SECONDS,
        follow_redirects=True,
        headers={"Accept-Encoding": "identity"},
    ) as client:
        for protocol in URL_PROBE_PROTOCOLS:
            url = f"{protocol}{domain}"
            try:
                response = client.get(url)
            except httpx.HTTPError as e:
                logger.error(
                    "collector.url_probe_failed", extra={"url": url, "error": str(e)}
                )
                continue
            return str(response.url)
    return None


def _utc_timestamp() -> str:
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def extract_metrics(
    results: PageLoadResults,
    url: str,
    domain: str,
    test_env: TestEnvironment,
) -> Metrics:
    """Build a `Metrics` record from one page load."""
    return Metrics(
        url=url,
        domain=domain,
        measure_time=_utc_timestamp(),
        test_env=test_env.value,
        method="puppeteer",
        dom_content_load_time_ms=results.dom_content_load_time_ms,
        load_time_ms=results.load_time_ms,
        weight=results.weight.model_copy(),
        requests=results.requests.model_copy(deep=True),
    )


def store_metrics(
    metrics: Metrics, domain: str, output_file: str, metrics_dir: Path
) -> Path:
    """Append a record to ``<metrics_dir>/<output_file>.json`` under ``domain``.

    A missing or empty file starts a new data set.
    """
    path = metrics_dir / f"{output_file}.json"
    path.parent.mkdir(parents=True, exist_ok=True)

    data = {}
    if path.exists() and path.stat().st_size > 0:
        data = load_metrics_file(path)
    data.setdefault(domain, []).append(metrics)

    serialized = {
        name: [
            entry.model_dump(mode="json", by_alias=True, exclude_none=True)
            for entry in entries
        ]
        for name, entries in data.items()
    }
    path.write_bytes(orjson.dumps(serialized, option=orjson.OPT_INDENT_2))
    logger.debug("collector.metrics_stored", extra={"path": str(path), "domain": domain})
    return path


def read_domains(domains_file: Path, limit: Optional[int] = None) -> List[str]:
    """Read one domain per line, skipping blank lines, up to ``limit``."""
    domains = [
        line.strip()
        for line in domains_file.read_text(encoding="utf-8").splitlines()
        if line.strip()
    ]
    return domains[:limit] if limit else domains


class MetricsCollector:
    """Drive a runner over domains and persist averaged metrics."""

    def __init__(
        self,
        runner: PageLoadRunner,
        metrics_dir: Path,
        url_resolver: Optional[Callable[[str], Optional[str]]] = None,
        runs_per_domain: int = RUNS_PER_DOMAIN,
    ) -> None:
        self._runner = runner
        self._metrics_dir = metrics_dir
        self._resolve_url = url_resolver or resolve_url
        self._runs_per_domain = runs_per_domain

    def process_domain(
        self,
        domain: str,
        test_env: TestEnvironment,
        output_file: str,
        har_path: Optional[str] = None,
    ) -> Optional[Metrics]:
        """Measure one domain and store its averaged metrics.

        Failures are logged and reported as None so a domain list keeps going.
        """
        try:
            url = self._resolve_url(domain)
            if not url:
                logger.error("collector.no_url", extra={"domain": domain})
                return None

            self._runner.warm_up(url)

            runs = []
            for i in range(self._runs_per_domain):
                logger.info(
                    "collector.run_start",
                    extra={
                        "domain": domain,
                        "run": i + 1,
                        "total_runs": self._runs_per_domain,
                    },
                )
                results = self._runner.run(test_env, url, domain, har_path)
                if results is None:
                    raise RuntimeError(f"No results received on iteration {i + 1}")
                runs.append(extract_metrics(results, url, domain, test_env))

            averaged = compute_average_metrics(runs)
            logger.info(
                "collector.domain_averaged",
                extra={"domain": domain, "metrics": averaged.model_dump(by_alias=True)},
            )
            store_metrics(averaged, domain, output_file, self._metrics_dir)
            return averaged
        except Exception as e:
            logger.error(
                "collector.domain_failed",
                extra={"domain": domain, "error": str(e)},
            )
            return None

    def process_single_domain(
        self,
        domain: str,
        test_env: TestEnvironment,
        output_file: str,
        proxy_server: Optional[str] = None,
        with_extension: bool = False,
        har_path: Optional[str] = None,
    ) -> Optional[Metrics]:
        """Launch the browser, measure one domain, close the browser."""
        self._runner.launch(proxy_server, with_extension)
        try:
            return self.process_domain(domain, test_env, output_file, har_path)
        finally:
            self._runner.close()

    def process_domains(
        self,
        domains_file: Path,
        test_env: TestEnvironment,
        output_file: str,
        limit: Optional[int] = None,
        proxy_server: Optional[str] = None,
        with_extension: bool = False,
        har_path: Optional[str] = None,
    ) -> List[Metrics]:
        """Measure every domain of a list file with one browser session."""
        domains = read_domains(domains_file, limit)
        self._runner.launch(proxy_server, with_extension)
        try:
            collected = []
            for domain in domains:
                metrics = self.process_domain(domain, test_env, output_file, har_path)
                if metrics is not None:
                    collected.append(metrics)
        finally:
            self._runner.close()

        logger.info(
            "collector.domains_done",
            extra={"requested": len(domains), "succeeded": len(collected)},
        )
        return collected
