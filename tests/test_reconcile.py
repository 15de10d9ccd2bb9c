"""
Tests for cross-file domain reconciliation.
"""

import pytest

from adblock_perf.domain.reconcile import (
    MIN_REQUESTS_THRESHOLD,
    NoCommonDomainsError,
    filter_by_domains,
    find_common_domains,
    reliable_domains,
)


def _data(make_metrics, **requests_by_domain):
    """Build a data set: domain -> one entry per given totalRequests value."""
    return {
        domain.replace("_", "."): [
            make_metrics(
                domain=domain.replace("_", "."), requests={"totalRequests": total}
            )
            for total in totals
        ]
        for domain, totals in requests_by_domain.items()
    }


# ============================================================================
# reliable_domains()
# ============================================================================


def test_threshold_default():
    assert MIN_REQUESTS_THRESHOLD == 20


def test_reliable_domains_threshold_inclusive(make_metrics):
    """15 requests is dropped, exactly 20 is kept."""
    data = _data(make_metrics, low_com=[15], edge_com=[20], high_com=[90])
    assert reliable_domains(data) == {"edge.com", "high.com"}


def test_reliable_domains_uses_mean_over_entries(make_metrics):
    """Reliability is judged on the mean of all entries of a domain."""
    data = _data(make_metrics, mixed_com=[10, 30], low_com=[10, 25])
    assert reliable_domains(data) == {"mixed.com"}


def test_reliable_domains_skips_empty_entry_lists(make_metrics):
    data = {"empty.com": [], **_data(make_metrics, ok_com=[40])}
    assert reliable_domains(data) == {"ok.com"}


def test_reliable_domains_custom_threshold(make_metrics):
    data = _data(make_metrics, a_com=[5], b_com=[15])
    assert reliable_domains(data, threshold=10) == {"b.com"}


# ============================================================================
# find_common_domains()
# ============================================================================


def test_common_domains_intersection(make_metrics):
    """Only domains reliable in every file are compared."""
    baseline = _data(make_metrics, a_com=[50], b_com=[50], c_com=[50])
    dns = _data(make_metrics, a_com=[40], b_com=[10], d_com=[60])
    extension = _data(make_metrics, a_com=[30], b_com=[30], c_com=[30])
    assert find_common_domains([baseline, dns, extension]) == {"a.com"}


def test_common_domains_single_file(make_metrics):
    data = _data(make_metrics, a_com=[50], b_com=[5])
    assert find_common_domains([data]) == {"a.com"}


def test_common_domains_empty_intersection_raises(make_metrics):
    first = _data(make_metrics, a_com=[50])
    second = _data(make_metrics, b_com=[50])
    with pytest.raises(NoCommonDomainsError, match="No common domains"):
        find_common_domains([first, second])


def test_common_domains_all_below_threshold_raises(make_metrics):
    data = _data(make_metrics, a_com=[5], b_com=[19])
    with pytest.raises(NoCommonDomainsError):
        find_common_domains([data])


def test_common_domains_no_inputs_raises():
    with pytest.raises(NoCommonDomainsError):
        find_common_domains([])


# ============================================================================
# filter_by_domains()
# ============================================================================


def test_filter_keeps_order_and_entries(make_metrics):
    data = _data(make_metrics, c_com=[30], a_com=[30, 40], b_com=[30])
    filtered = filter_by_domains(data, {"a.com", "c.com"})
    assert list(filtered) == ["c.com", "a.com"]
    assert filtered["a.com"] is data["a.com"]


def test_filter_ignores_unknown_domains(make_metrics):
    data = _data(make_metrics, a_com=[30])
    assert filter_by_domains(data, {"zzz.com"}) == {}
