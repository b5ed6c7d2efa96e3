import pytest
import requests

from conftest import FakeResponse, ScriptedTransport, envelope
from domain.errors import (
    ApiKeyError,
    AuthenticationError,
    HttpStatusError,
    NetworkError,
    ProviderError,
    RateLimitError,
    ServerError,
    ValidationError,
)
from services.tour_api import backoff_delay, fetch_with_retry

URL = "https://apis.example.com/KorService2/areaCode2?serviceKey=KEY"


def test_backoff_delays_double_and_cap():
    assert backoff_delay(1) == 0
    assert [backoff_delay(n) for n in (2, 3, 4)] == [1000, 2000, 4000]
    assert backoff_delay(5) == 5000
    assert backoff_delay(9) == 5000


def test_success_returns_payload_without_sleeping(no_sleep):
    delays, sleep = no_sleep
    payload = envelope([{"code": "1", "name": "서울"}])
    transport = ScriptedTransport(FakeResponse(200, payload))

    assert fetch_with_retry(URL, transport=transport, sleep=sleep) == payload
    assert transport.calls == 1
    assert delays == []


@pytest.mark.parametrize("status", [401, 403])
def test_auth_status_is_not_retried(status, no_sleep):
    delays, sleep = no_sleep
    transport = ScriptedTransport(FakeResponse(status, {}))

    with pytest.raises(ApiKeyError) as excinfo:
        fetch_with_retry(URL, max_retries=3, transport=transport, sleep=sleep)
    assert isinstance(excinfo.value, AuthenticationError)
    assert excinfo.value.http_status == 502
    assert transport.calls == 1
    assert delays == []


def test_server_error_retries_up_to_max_then_raises(no_sleep):
    delays, sleep = no_sleep
    transport = ScriptedTransport(FakeResponse(500, {}, reason="Internal Server Error"))

    with pytest.raises(ServerError) as excinfo:
        fetch_with_retry(URL, max_retries=3, transport=transport, sleep=sleep)
    assert transport.calls == 3
    assert delays == [1.0, 2.0]
    assert excinfo.value.can_retry is True
    assert excinfo.value.status_code == 500


def test_rate_limit_then_success(no_sleep):
    delays, sleep = no_sleep
    payload = envelope([])
    transport = ScriptedTransport(FakeResponse(429, {}), FakeResponse(200, payload))

    assert fetch_with_retry(URL, max_retries=3, transport=transport, sleep=sleep) == payload
    assert transport.calls == 2
    assert delays == [1.0]


def test_rate_limit_exhausted_raises_rate_limit_error(no_sleep):
    _, sleep = no_sleep
    transport = ScriptedTransport(FakeResponse(429, {}))

    with pytest.raises(RateLimitError):
        fetch_with_retry(URL, max_retries=2, transport=transport, sleep=sleep)
    assert transport.calls == 2


def test_other_client_error_fails_fast(no_sleep):
    _, sleep = no_sleep
    transport = ScriptedTransport(FakeResponse(404, {}, reason="Not Found"))

    with pytest.raises(HttpStatusError) as excinfo:
        fetch_with_retry(URL, transport=transport, sleep=sleep)
    assert transport.calls == 1
    assert excinfo.value.status_code == 404


def test_network_error_is_retried(no_sleep):
    _, sleep = no_sleep
    payload = envelope([])
    transport = ScriptedTransport(requests.ConnectionError("boom"), FakeResponse(200, payload))

    assert fetch_with_retry(URL, transport=transport, sleep=sleep) == payload
    assert transport.calls == 2


def test_network_error_exhausted_raises_network_error(no_sleep):
    delays, sleep = no_sleep
    transport = ScriptedTransport(requests.Timeout("slow"))

    with pytest.raises(NetworkError):
        fetch_with_retry(URL, max_retries=4, transport=transport, sleep=sleep)
    assert transport.calls == 4
    assert delays == [1.0, 2.0, 4.0]


@pytest.mark.parametrize(
    "code, error_cls",
    [
        ("SERVICE_KEY_NOT_REGISTERED", ApiKeyError),
        ("SERVICE_KEY_IS_NOT_VALID", ApiKeyError),
        ("NO_MANDATORY_REQUEST_PARAMETERS_ERROR", ValidationError),
    ],
)
def test_terminal_result_codes_inside_200_are_not_retried(code, error_cls, no_sleep):
    _, sleep = no_sleep
    transport = ScriptedTransport(FakeResponse(200, envelope(result_code=code, result_msg="nope")))

    with pytest.raises(error_cls) as excinfo:
        fetch_with_retry(URL, transport=transport, sleep=sleep)
    assert transport.calls == 1
    assert excinfo.value.details["result_code"] == code


def test_unknown_result_code_is_retried_and_keeps_code(no_sleep):
    _, sleep = no_sleep
    transport = ScriptedTransport(FakeResponse(200, envelope(result_code="22", result_msg="LIMITED")))

    with pytest.raises(ProviderError) as excinfo:
        fetch_with_retry(URL, max_retries=2, transport=transport, sleep=sleep)
    assert transport.calls == 2
    assert excinfo.value.result_code == "22"
    assert excinfo.value.result_msg == "LIMITED"


def test_invalid_json_is_treated_as_server_error(no_sleep):
    _, sleep = no_sleep
    transport = ScriptedTransport(FakeResponse(200, None))

    with pytest.raises(ServerError):
        fetch_with_retry(URL, max_retries=2, transport=transport, sleep=sleep)
    assert transport.calls == 2
