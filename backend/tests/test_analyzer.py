import pytest

from uptime_proxy.analyzer import age_text, analyze, annotate_cache, classify, format_number
from uptime_proxy.models import MonitorStatusCode, OverallStatus, StatusSummary, status_label


def _monitor(monitor_id: int, status: int, **extra) -> dict:
    monitor = {
        "id": monitor_id,
        "friendly_name": f"Monitor {monitor_id}",
        "url": f"https://svc{monitor_id}.example.test",
        "status": status,
        "custom_uptime_ranges": "100.000-99.950-99.981",
        "average_response_time": "245.123",
    }
    monitor.update(extra)
    return monitor


def _payload(*statuses: int) -> dict:
    return {"stat": "ok", "monitors": [_monitor(i + 1, status) for i, status in enumerate(statuses)]}


def test_empty_monitor_list_reports_no_monitor_data():
    result = analyze({"stat": "ok", "monitors": []}).model_dump(mode="json")

    assert result["status"] == "error"
    assert result["message"] == "no monitor data"
    assert result["monitors"] == []
    assert result["summary"] == {"total": 0, "up": 0, "down": 0, "paused": 0, "unknown": 0}


@pytest.mark.parametrize("payload", [{}, {"monitors": None}, {"monitors": "nope"}, [], None, {"monitors": [1, "x"]}])
def test_missing_or_garbled_monitor_list_reports_no_monitor_data(payload):
    result = analyze(payload)
    assert result.status is OverallStatus.ERROR
    assert result.message == "no monitor data"


def test_mixed_statuses_are_partial():
    up, down, paused = MonitorStatusCode.UP, MonitorStatusCode.DOWN, MonitorStatusCode.PAUSED
    result = analyze(_payload(up, up, down, paused))

    assert result.summary.model_dump() == {"total": 4, "up": 2, "down": 1, "paused": 1, "unknown": 0}
    assert result.status is OverallStatus.PARTIAL
    assert result.message == "some services down (1/3)"


def test_seems_down_counts_as_down():
    result = analyze(_payload(MonitorStatusCode.UP, MonitorStatusCode.SEEMS_DOWN))
    assert result.summary.down == 1
    assert result.status is OverallStatus.PARTIAL


def test_not_checked_and_unmapped_codes_go_to_unknown_bucket():
    result = analyze(_payload(MonitorStatusCode.UP, MonitorStatusCode.NOT_CHECKED, 7))
    summary = result.summary

    assert summary.total == 3
    assert (summary.up, summary.down, summary.paused, summary.unknown) == (1, 0, 0, 2)
    assert summary.total == summary.up + summary.down + summary.paused + summary.unknown
    assert [m.status_text for m in result.monitors] == ["up", "not checked yet", "unknown"]
    assert result.status is OverallStatus.OK


def test_all_paused_means_no_active_monitors():
    result = analyze(_payload(MonitorStatusCode.PAUSED, MonitorStatusCode.PAUSED))
    assert result.status is OverallStatus.ERROR
    assert result.message == "no active monitors"


def test_all_active_down_is_error():
    result = analyze(_payload(MonitorStatusCode.DOWN, MonitorStatusCode.SEEMS_DOWN, MonitorStatusCode.PAUSED))
    assert result.status is OverallStatus.ERROR
    assert result.message == "all services down"


@pytest.mark.parametrize(
    "counts, expected",
    [
        ({"total": 3, "up": 3}, OverallStatus.OK),
        ({"total": 3, "up": 2, "down": 1}, OverallStatus.PARTIAL),
        ({"total": 3, "down": 2, "paused": 1}, OverallStatus.ERROR),
        ({"total": 2, "paused": 2}, OverallStatus.ERROR),
        ({"total": 0}, OverallStatus.ERROR),
    ],
)
def test_classify_depends_only_on_counts(counts, expected):
    status, _ = classify(StatusSummary(**counts))
    assert status is expected


def test_monitor_fields_are_formatted_for_clients():
    payload = {"monitors": [_monitor(42, MonitorStatusCode.UP, custom_uptime_ranges="100.000-99.950-99.981")]}
    monitor = analyze(payload).monitors[0].model_dump()

    assert monitor == {
        "id": 42,
        "name": "Monitor 42",
        "url": "https://svc42.example.test",
        "status": 2,
        "status_text": "up",
        "uptime_1d": "100%",
        "uptime_7d": "99.95%",
        "uptime_30d": "99.98%",
        "avg_response": "245.12",
    }


def test_monitor_defaults_fill_missing_fields():
    monitor = analyze({"monitors": [{"status": "2"}]}).monitors[0]

    assert monitor.id == 0
    assert monitor.name == "Unknown"
    assert monitor.url == ""
    assert monitor.status == 2
    assert (monitor.uptime_1d, monitor.uptime_7d, monitor.uptime_30d) == ("0%", "0%", "0%")
    assert monitor.avg_response == "0"


def test_short_or_garbled_uptime_ranges_read_as_zero():
    monitor = analyze({"monitors": [_monitor(1, 2, custom_uptime_ranges="98.5-abc")]}).monitors[0]
    assert (monitor.uptime_1d, monitor.uptime_7d, monitor.uptime_30d) == ("98.5%", "0%", "0%")


def test_analyze_is_deterministic_and_does_not_mutate_input():
    payload = _payload(MonitorStatusCode.UP, MonitorStatusCode.DOWN)
    snapshot = repr(payload)

    assert analyze(payload) == analyze(payload)
    assert repr(payload) == snapshot


def test_status_label_never_fails_on_unmapped_codes():
    assert status_label(MonitorStatusCode.NOT_CHECKED) == "not checked yet"
    assert status_label(-5) == "unknown"
    assert status_label(12345) == "unknown"


def test_format_number():
    assert format_number(100.0) == "100"
    assert format_number(99.9) == "99.9"
    assert format_number(0.004) == "0"
    assert format_number(245.126) == "245.13"


def test_age_text():
    assert age_text(0) == "0s ago"
    assert age_text(59) == "59s ago"
    assert age_text(60) == "1 min ago"
    assert age_text(90) == "2 min ago"
    assert age_text(610) == "10 min ago"


def test_annotate_cache_marks_stale_past_threshold():
    base = analyze(_payload(MonitorStatusCode.UP))

    fresh = annotate_cache(base, age_seconds=30, stale_threshold_seconds=600)
    assert fresh.cached is True
    assert fresh.stale is False
    assert fresh.cache.model_dump() == {"age": 30, "age_text": "30s ago", "stale": False}

    old = annotate_cache(base, age_seconds=601, stale_threshold_seconds=600)
    assert old.stale is True
    assert old.cache.stale is True

    fallback = annotate_cache(base, age_seconds=5, stale_threshold_seconds=600, fallback=True)
    assert fallback.stale is True
    assert fallback.cache.stale is False
    assert base.cached is False


def test_non_finite_upstream_numbers_read_as_zero():
    payload = {"monitors": [_monitor(1, "nan", custom_uptime_ranges="inf-nan-50", average_response_time="inf")]}
    monitor = analyze(payload).monitors[0]

    assert monitor.status == 0
    assert monitor.status_text == "paused"
    assert (monitor.uptime_1d, monitor.uptime_7d, monitor.uptime_30d) == ("0%", "0%", "50%")
    assert monitor.avg_response == "0"
