"""
Error taxonomy shared by the tour API client, the bookmark gateway and the HTTP layer.

Every error carries a Korean user-facing message and a retry flag; the raw
message is kept for diagnostic logging only.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)


class ErrorType(str, Enum):
    """Category of a failure, used for retry decisions and HTTP mapping."""
    NETWORK = "network"
    RATE_LIMIT = "rate_limit"
    SERVER = "server"
    API = "api"
    AUTH = "authentication"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    DUPLICATE = "duplicate"
    NOT_SYNCED = "not_synced"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


USER_MESSAGES: Dict[ErrorType, str] = {
    ErrorType.NETWORK: "네트워크 연결에 문제가 있습니다. 인터넷 연결을 확인하고 다시 시도해주세요.",
    ErrorType.RATE_LIMIT: "API 호출 제한에 도달했습니다. 잠시 후 다시 시도해주세요.",
    ErrorType.SERVER: "서버에 일시적인 문제가 발생했습니다. 잠시 후 다시 시도해주세요.",
    ErrorType.API: "데이터를 불러오는 중 오류가 발생했습니다. 잠시 후 다시 시도해주세요.",
    ErrorType.AUTH: "인증에 실패했습니다. 다시 로그인해주세요.",
    ErrorType.VALIDATION: "입력한 정보를 확인해주세요. 필수 항목이 누락되었거나 형식이 올바르지 않습니다.",
    ErrorType.NOT_FOUND: "요청하신 정보를 찾을 수 없습니다.",
    ErrorType.DUPLICATE: "이미 북마크한 관광지입니다.",
    ErrorType.NOT_SYNCED: "사용자 정보를 찾을 수 없습니다. 먼저 로그인해주세요.",
    ErrorType.CONFIGURATION: "서비스 설정에 문제가 있습니다. 관리자에게 문의해주세요.",
    ErrorType.UNKNOWN: "예상치 못한 오류가 발생했습니다. 잠시 후 다시 시도해주세요.",
}


class TourError(Exception):
    """Base error. Subclasses pin the type, retry flag and HTTP status."""

    error_type: ErrorType = ErrorType.UNKNOWN
    can_retry: bool = False
    http_status: int = 500

    def __init__(
        self,
        message: str,
        user_message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.user_message = user_message or USER_MESSAGES[self.error_type]
        self.details = details or {}

    def to_dict(self, include_debug: bool = False) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.error_type.value,
            "message": self.user_message,
            "can_retry": self.can_retry,
        }
        if include_debug:
            data["detail"] = self.message
            if self.details:
                data["details"] = self.details
        return data


class NetworkError(TourError):
    error_type = ErrorType.NETWORK
    can_retry = True
    http_status = 503


class RateLimitError(TourError):
    error_type = ErrorType.RATE_LIMIT
    can_retry = True
    http_status = 429


class ServerError(TourError):
    error_type = ErrorType.SERVER
    can_retry = True
    http_status = 502

    def __init__(self, message: str, status_code: int, **kwargs):
        super().__init__(message, **kwargs)
        self.status_code = status_code


class ProviderError(TourError):
    """Non-success result code inside an otherwise successful response."""
    error_type = ErrorType.API
    can_retry = True
    http_status = 502

    def __init__(self, result_code: str, result_msg: str):
        super().__init__(
            f"API error ({result_code}): {result_msg}",
            details={"result_code": result_code, "result_msg": result_msg},
        )
        self.result_code = result_code
        self.result_msg = result_msg


class HttpStatusError(TourError):
    """Unexpected non-2xx status that is neither auth, rate limit nor server side."""
    error_type = ErrorType.API
    can_retry = False
    http_status = 502

    def __init__(self, message: str, status_code: int, **kwargs):
        super().__init__(message, **kwargs)
        self.status_code = status_code


class AuthenticationError(TourError):
    error_type = ErrorType.AUTH
    http_status = 401


class ApiKeyError(AuthenticationError):
    """The server's own tour API key was rejected upstream; not a user sign-in problem."""
    http_status = 502


class ValidationError(TourError):
    error_type = ErrorType.VALIDATION
    http_status = 400


class NotFoundError(TourError):
    error_type = ErrorType.NOT_FOUND
    http_status = 404


class DuplicateBookmarkError(TourError):
    error_type = ErrorType.DUPLICATE
    http_status = 409


class AccountNotSyncedError(TourError):
    error_type = ErrorType.NOT_SYNCED
    http_status = 403


class ConfigurationError(TourError):
    error_type = ErrorType.CONFIGURATION
    http_status = 500


@dataclass
class ErrorInfo:
    type: ErrorType
    message: str
    user_message: str
    can_retry: bool
    original_error: Optional[BaseException] = None


def get_error_info(error: BaseException) -> ErrorInfo:
    """Classify any exception into an ErrorInfo with a user-facing message."""
    if isinstance(error, TourError):
        return ErrorInfo(
            type=error.error_type,
            message=error.message,
            user_message=error.user_message,
            can_retry=error.can_retry,
            original_error=error,
        )
    if isinstance(error, requests.RequestException):
        return ErrorInfo(
            type=ErrorType.NETWORK,
            message=str(error),
            user_message=USER_MESSAGES[ErrorType.NETWORK],
            can_retry=True,
            original_error=error,
        )
    return ErrorInfo(
        type=ErrorType.UNKNOWN,
        message=str(error),
        user_message=USER_MESSAGES[ErrorType.UNKNOWN],
        can_retry=False,
        original_error=error,
    )


def is_retryable(error: BaseException) -> bool:
    return get_error_info(error).can_retry


def log_error(error: BaseException, context: Optional[str] = None, debug: bool = False) -> ErrorInfo:
    """Log an error once with its classification; traceback only in debug builds."""
    info = get_error_info(error)
    prefix = f"[{context}] " if context else ""
    if debug:
        logger.error(
            "%s%s error: %s (user message: %s)",
            prefix,
            info.type.value,
            info.message,
            info.user_message,
            exc_info=error,
        )
    else:
        logger.error("%s%s error: %s", prefix, info.type.value, info.message)
    return info
