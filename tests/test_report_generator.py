"""
Tests for report generation from metrics files.
"""

from datetime import datetime

import orjson
import pytest

from adblock_perf.config.models import MetricsFileError
from adblock_perf.domain.models import TestEnvironment
from adblock_perf.domain.reconcile import NoCommonDomainsError
from adblock_perf.domain.statistics import compute_statistics
from adblock_perf.report.artifact import serialize_results, write_report
from adblock_perf.report.generator import (
    determine_test_environment,
    generate_report,
    generate_report_results,
    load_metrics_data,
)


@pytest.fixture
def write_metrics_file(tmp_path, metrics_json):
    """Write a metrics file: environment + domain -> totalRequests."""

    def _write(name, test_env, totals):
        data = {
            domain: [
                metrics_json(
                    url=f"https://{domain}",
                    domain=domain,
                    testEnv=test_env,
                    requests={
                        "totalRequests": total,
                        "hostnames": {domain: total, "analytics.com": 2},
                        "etldPlus1s": {domain: total, "analytics.com": 2},
                    },
                )
            ]
            for domain, total in totals.items()
        }
        path = tmp_path / name
        path.write_bytes(orjson.dumps(data))
        return path

    return _write


# ============================================================================
# determine_test_environment()
# ============================================================================


@pytest.mark.parametrize(
    "test_env,expected",
    [
        ("none", TestEnvironment.NONE),
        ("baseline", TestEnvironment.BASELINE),
        ("dns", TestEnvironment.DNS),
        ("extension", TestEnvironment.EXTENSION),
    ],
)
def test_environment_from_first_entry(make_metrics, test_env, expected):
    data = {"a.com": [make_metrics(testEnv=test_env)]}
    assert determine_test_environment(data) == expected


def test_environment_empty_data_is_baseline():
    assert determine_test_environment({}) == TestEnvironment.BASELINE
    assert determine_test_environment(None) == TestEnvironment.BASELINE


def test_environment_missing_first_entry_is_baseline(make_metrics):
    data = {"a.com": [], "b.com": [make_metrics(testEnv="dns")]}
    assert determine_test_environment(data) == TestEnvironment.BASELINE


def test_environment_empty_name_is_baseline(make_metrics):
    data = {"a.com": [make_metrics(testEnv="")]}
    assert determine_test_environment(data) == TestEnvironment.BASELINE


def test_environment_unknown_name_is_none(make_metrics):
    data = {"a.com": [make_metrics(testEnv="vpn")]}
    assert determine_test_environment(data) == TestEnvironment.NONE


def test_environment_absent_from_file_is_baseline(tmp_path, metrics_json):
    """Records written without a testEnv key are treated as baseline."""
    entry = metrics_json(requests={"totalRequests": 30})
    del entry["testEnv"]
    path = tmp_path / "legacy.json"
    path.write_bytes(orjson.dumps({"a.com": [entry]}))

    (data,) = load_metrics_data([path])
    assert data["a.com"][0].test_env is None
    assert determine_test_environment(data) == TestEnvironment.BASELINE


# ============================================================================
# Loading inputs
# ============================================================================


def test_load_metrics_data_in_order(write_metrics_file):
    first = write_metrics_file("none.json", "none", {"a.com": 30})
    second = write_metrics_file("dns.json", "dns", {"b.com": 30, "c.com": 30})
    loaded = load_metrics_data([first, second])
    assert [list(data) for data in loaded] == [["a.com"], ["b.com", "c.com"]]


def test_load_missing_file_raises(tmp_path):
    with pytest.raises(MetricsFileError, match="Error reading file"):
        load_metrics_data([tmp_path / "missing.json"])


def test_load_invalid_json_raises(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(MetricsFileError, match="Error parsing file"):
        load_metrics_data([path])


def test_load_wrong_shape_raises(tmp_path):
    path = tmp_path / "shape.json"
    path.write_bytes(orjson.dumps({"a.com": {"url": "x"}}))
    with pytest.raises(MetricsFileError, match="Invalid metrics data"):
        load_metrics_data([path])


# ============================================================================
# generate_report_results()
# ============================================================================


def test_results_keyed_by_file_name_over_common_domains(
    write_metrics_file, reference
):
    files = [
        write_metrics_file("none.json", "none", {"a.com": 40, "b.com": 40}),
        write_metrics_file("dns.json", "dns", {"a.com": 30, "b.com": 10}),
    ]
    results = generate_report_results(
        load_metrics_data(files), files, reference
    )

    assert list(results) == ["none.json", "dns.json"]
    assert results["none.json"].type == TestEnvironment.NONE
    assert results["dns.json"].type == TestEnvironment.DNS
    for result in results.values():
        assert result.site_count == 1
        assert list(result.domains_data) == ["a.com"]
        assert result.trackers_websites_data == {"Analytics": 1}
    assert results["none.json"].total_requests == 40
    assert results["dns.json"].total_requests == 30


def test_results_custom_threshold(write_metrics_file, reference):
    files = [write_metrics_file("none.json", "none", {"a.com": 40, "b.com": 10})]
    results = generate_report_results(
        load_metrics_data(files), files, reference, threshold=5
    )
    assert results["none.json"].site_count == 2


def test_results_no_common_domains(write_metrics_file, reference):
    files = [
        write_metrics_file("none.json", "none", {"a.com": 40}),
        write_metrics_file("dns.json", "dns", {"b.com": 40}),
    ]
    with pytest.raises(NoCommonDomainsError):
        generate_report_results(load_metrics_data(files), files, reference)


# ============================================================================
# Artifacts
# ============================================================================


def test_generate_report_writes_html_and_json(tmp_path, write_metrics_file, reference):
    files = [
        write_metrics_file("none.json", "none", {"a.com": 40}),
        write_metrics_file("extension.json", "extension", {"a.com": 25}),
    ]
    out_dir = tmp_path / "report"

    report_path = generate_report(
        files, out_dir, reference=reference, now=datetime(2025, 1, 15, 10, 30, 5)
    )

    assert report_path == out_dir / "report_2025-01-15_10-30-05.html"
    html = report_path.read_text(encoding="utf-8")
    assert "window.reportResults = " in html

    payload = orjson.loads(report_path.with_suffix(".json").read_bytes())
    assert set(payload) == {"none.json", "extension.json"}
    assert payload["extension.json"]["type"] == "extension"
    assert payload["none.json"]["siteCount"] == 1
    assert payload["none.json"]["trackersWebsitesData"] == {"Analytics": 1}


def test_generate_report_uses_bundled_reference(tmp_path, write_metrics_file):
    files = [write_metrics_file("none.json", "none", {"a.com": 40})]
    report_path = generate_report(files, tmp_path, now=datetime(2025, 1, 1))
    assert report_path.name == "report_2025-01-01_00-00-00.html"
    assert report_path.exists()


def test_write_report_escapes_script_end(tmp_path, make_metrics, reference):
    data = {"a.com": [make_metrics(url="https://a.com/</script><b>")]}
    results = {"x.json": compute_statistics(data, reference)}
    html = write_report(results, tmp_path, "r.html").read_text(encoding="utf-8")
    assert "</script><b>" not in html
    assert "<\\/script><b>" in html


def test_serialize_results_by_alias(make_metrics, reference):
    data = {"a.com": [make_metrics()]}
    serialized = serialize_results({"x.json": compute_statistics(data, reference)})
    assert serialized["x.json"]["siteCount"] == 1
    assert "site_count" not in serialized["x.json"]
