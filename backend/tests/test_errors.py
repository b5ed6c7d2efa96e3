import logging

import requests

from domain.errors import (
    AccountNotSyncedError,
    ApiKeyError,
    AuthenticationError,
    DuplicateBookmarkError,
    ErrorType,
    NetworkError,
    ProviderError,
    ServerError,
    USER_MESSAGES,
    ValidationError,
    get_error_info,
    is_retryable,
    log_error,
)


def test_tour_error_defaults_to_korean_message():
    err = NetworkError("connection reset")
    assert err.user_message == USER_MESSAGES[ErrorType.NETWORK]
    assert err.message == "connection reset"
    assert err.can_retry is True


def test_explicit_user_message_wins():
    err = ValidationError("keyword missing", "검색 키워드는 필수입니다.")
    assert err.to_dict() == {"type": "validation", "message": "검색 키워드는 필수입니다.", "can_retry": False}


def test_to_dict_hides_raw_message_unless_debug():
    err = ProviderError("22", "LIMITED NUMBER OF SERVICE REQUESTS EXCEEDS ERROR")
    public = err.to_dict()
    assert "detail" not in public
    assert public["type"] == "api"

    debug = err.to_dict(include_debug=True)
    assert debug["detail"].startswith("API error (22)")
    assert debug["details"]["result_code"] == "22"


def test_http_status_mapping():
    assert DuplicateBookmarkError("dup").http_status == 409
    assert AccountNotSyncedError("missing").http_status == 403
    assert ServerError("bad gateway", status_code=502).http_status == 502
    assert AuthenticationError("no user").http_status == 401
    assert ApiKeyError("key rejected").http_status == 502
    assert ApiKeyError("key rejected").to_dict()["type"] == "authentication"


def test_get_error_info_classifies_foreign_errors():
    info = get_error_info(requests.ConnectionError("dns"))
    assert info.type is ErrorType.NETWORK
    assert info.can_retry

    info = get_error_info(KeyError("x"))
    assert info.type is ErrorType.UNKNOWN
    assert not info.can_retry
    assert info.user_message == USER_MESSAGES[ErrorType.UNKNOWN]


def test_is_retryable():
    assert is_retryable(ServerError("x", status_code=500))
    assert not is_retryable(DuplicateBookmarkError("x"))


def test_log_error_logs_once_with_context(caplog):
    with caplog.at_level(logging.ERROR, logger="domain.errors"):
        info = log_error(NetworkError("timeout"), context="areaCode2")
    assert info.type is ErrorType.NETWORK
    assert len(caplog.records) == 1
    assert "[areaCode2] network error: timeout" in caplog.records[0].getMessage()
