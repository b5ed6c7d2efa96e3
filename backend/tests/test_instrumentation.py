import pytest

from conftest import FakeResponse
from services.instrumentation import LatencyRecorder, endpoint_label, timed


def test_endpoint_label_uses_last_path_segment():
    assert endpoint_label("https://apis.data.go.kr/B551011/KorService2/areaBasedList2?pageNo=1") == "areaBasedList2"
    assert endpoint_label("https://example.com/") == "/"


def test_stats_summarise_window():
    recorder = LatencyRecorder(window=3)
    for elapsed, ok in [(10, True), (20, True), (30, False), (40, True)]:
        recorder.record("areaCode2", elapsed, ok)

    stats = recorder.stats()
    assert stats["count"] == 3
    assert stats["max_ms"] == 40
    assert stats["avg_ms"] == pytest.approx(30.0)
    assert stats["error_rate"] == pytest.approx(1 / 3)
    assert recorder.stats("detailCommon2")["count"] == 0


def test_slow_call_logs_warning(caplog):
    recorder = LatencyRecorder(slow_call_ms=100)
    with caplog.at_level("WARNING", logger="services.instrumentation"):
        recorder.record("detailCommon2", 150, True)
    assert "Slow tour API call" in caplog.text


def test_timed_records_success_and_failure():
    recorder = LatencyRecorder()
    ok_transport = timed(lambda url, **kwargs: FakeResponse(200, {}), recorder)
    bad_transport = timed(lambda url, **kwargs: FakeResponse(500, {}), recorder)

    def broken(url, **kwargs):
        raise ConnectionError("down")

    ok_transport("https://x/KorService2/areaCode2", timeout=1)
    bad_transport("https://x/KorService2/areaCode2")
    with pytest.raises(ConnectionError):
        timed(broken, recorder)("https://x/KorService2/searchKeyword2")

    samples = recorder.samples()
    assert [(s.endpoint, s.ok) for s in samples] == [
        ("areaCode2", True),
        ("areaCode2", False),
        ("searchKeyword2", False),
    ]
    recorder.clear()
    assert recorder.samples() == []
