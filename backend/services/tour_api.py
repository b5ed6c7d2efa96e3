"""
Client for the Korea Tourism Organization KorService2 API.

Three layers, used by every endpoint:
- request building: default params + service key + caller params, None values dropped
- retry with exponential backoff: 1s, 2s, 4s, capped at 5s
- result envelope validation: response.header.resultCode must be "0000"
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Mapping, Optional
from urllib.parse import urlencode

import requests

from domain.errors import (
    ApiKeyError,
    ConfigurationError,
    HttpStatusError,
    NetworkError,
    ProviderError,
    RateLimitError,
    ServerError,
    TourError,
    ValidationError,
)
from domain.models import AreaCode, PagedResult, Place, PlaceDetail, PlaceImage, PlaceIntro
from services.instrumentation import LatencyRecorder, timed
from settings import settings

logger = logging.getLogger(__name__)

DEFAULT_PARAMS = {
    "MobileOS": "ETC",
    "_type": "json",
}
REQUEST_HEADERS = {"Accept": "application/json"}

SUCCESS_CODE = "0000"
BASE_DELAY_MS = 1000
MAX_DELAY_MS = 5000

_session = requests.Session()


def build_query_params(
    service_key: str,
    params: Optional[Mapping[str, Any]] = None,
    mobile_app: str = "MyTrip",
) -> Dict[str, str]:
    """Merge defaults, the service key and caller params; None values are omitted."""
    query: Dict[str, str] = {**DEFAULT_PARAMS, "MobileApp": mobile_app, "serviceKey": service_key}
    for key, value in (params or {}).items():
        if value is None:
            continue
        query[key] = str(value)
    return query


def build_url(
    base_url: str,
    endpoint: str,
    service_key: str,
    params: Optional[Mapping[str, Any]] = None,
    mobile_app: str = "MyTrip",
) -> str:
    query = build_query_params(service_key, params, mobile_app=mobile_app)
    return f"{base_url.rstrip('/')}/{endpoint.lstrip('/')}?{urlencode(query)}"


def backoff_delay(attempt: int) -> int:
    """Delay in ms before the given attempt (1-based). No delay before the first one."""
    if attempt < 2:
        return 0
    return min(BASE_DELAY_MS * 2 ** (attempt - 2), MAX_DELAY_MS)


_TERMINAL_RESULT_CODES = {
    "SERVICE_KEY_NOT_REGISTERED": (ApiKeyError, "API 키가 등록되지 않았습니다."),
    "SERVICE_KEY_IS_NOT_VALID": (ApiKeyError, "유효하지 않은 API 키입니다."),
    "NO_MANDATORY_REQUEST_PARAMETERS_ERROR": (ValidationError, "필수 파라미터 오류가 발생했습니다."),
}


def validate_envelope(payload: Any) -> Any:
    """
    Check the provider result envelope and return the payload unchanged on success.

    Known key/parameter problems raise terminal errors; any other non-success
    code raises a retryable ProviderError carrying the original code and message.
    """
    if not isinstance(payload, dict):
        return payload
    response = payload.get("response")
    header = response.get("header") if isinstance(response, dict) else None
    if not isinstance(header, dict):
        return payload

    result_code = str(header.get("resultCode", SUCCESS_CODE))
    result_msg = str(header.get("resultMsg", ""))
    if result_code == SUCCESS_CODE:
        return payload

    terminal = _TERMINAL_RESULT_CODES.get(result_code)
    if terminal:
        error_cls, user_message = terminal
        raise error_cls(
            f"{result_code}: {result_msg}",
            user_message,
            details={"result_code": result_code, "result_msg": result_msg},
        )
    raise ProviderError(result_code, result_msg)


def normalize_items(payload: Any) -> List[Dict[str, Any]]:
    """
    Extract response.body.items.item as a list.

    The provider returns a bare object for single results and an empty string
    (or nothing) for no results.
    """
    try:
        items = payload["response"]["body"]["items"]
    except (KeyError, TypeError):
        return []
    if not isinstance(items, dict):
        return []
    item = items.get("item")
    if item is None:
        return []
    if isinstance(item, dict):
        return [item]
    if isinstance(item, list):
        return [i for i in item if isinstance(i, dict)]
    return []


def _check_status(response: requests.Response, attempt: int, max_retries: int) -> None:
    status = response.status_code
    if 200 <= status < 300:
        return
    if status in (401, 403):
        raise ApiKeyError(
            f"API authentication failed ({status})",
            "API 인증에 실패했습니다. 관리자에게 문의해주세요.",
        )
    if status == 429:
        raise RateLimitError(f"API rate limit exceeded (attempt {attempt}/{max_retries})")
    if status >= 500:
        raise ServerError(f"Server error ({status}) (attempt {attempt}/{max_retries})", status_code=status)
    raise HttpStatusError(f"HTTP error ({status}): {response.reason}", status_code=status)


def fetch_with_retry(
    url: str,
    max_retries: int = 3,
    *,
    transport: Optional[Callable[..., requests.Response]] = None,
    timeout: float = 10.0,
    sleep: Callable[[float], None] = time.sleep,
) -> Any:
    """
    GET `url` and return the validated JSON payload.

    Network, rate-limit, server and generic provider errors are retried up to
    `max_retries` attempts in total; everything else is raised immediately.
    After the last attempt the last error is raised.
    """
    get = transport or _session.get
    attempts = max(1, max_retries)
    last_error: Optional[TourError] = None

    for attempt in range(1, attempts + 1):
        if attempt > 1:
            delay_ms = backoff_delay(attempt)
            logger.warning(
                "Retrying tour API call in %dms (attempt %d/%d): %s",
                delay_ms,
                attempt,
                attempts,
                last_error.message if last_error else "",
            )
            sleep(delay_ms / 1000.0)
        try:
            try:
                response = get(url, headers=REQUEST_HEADERS, timeout=timeout)
            except requests.RequestException as exc:
                raise NetworkError(f"Network request failed: {exc}") from exc
            _check_status(response, attempt, attempts)
            try:
                payload = response.json()
            except ValueError as exc:
                raise ServerError(
                    f"Invalid JSON in response ({response.status_code})",
                    status_code=response.status_code,
                ) from exc
            return validate_envelope(payload)
        except TourError as exc:
            if not exc.can_retry:
                raise
            last_error = exc

    if last_error is None:
        last_error = NetworkError("API call failed")
    logger.error("Tour API call failed after %d attempts: %s", attempts, last_error.message)
    raise last_error


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _require(value: Optional[str], name: str, user_message: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{name} is required", user_message)
    return str(value).strip()


class TourApiClient:
    """Typed access to the six read-only KorService2 endpoints."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        mobile_app: Optional[str] = None,
        max_retries: Optional[int] = None,
        timeout: Optional[float] = None,
        transport: Optional[Callable[..., requests.Response]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.api_key = api_key if api_key is not None else settings.TOUR_API_KEY
        self.base_url = (base_url or settings.TOUR_API_BASE_URL).rstrip("/")
        self.mobile_app = mobile_app or settings.TOUR_API_MOBILE_APP
        self.max_retries = max_retries if max_retries is not None else settings.TOUR_API_MAX_RETRIES
        self.timeout = timeout if timeout is not None else settings.TOUR_API_TIMEOUT
        self.transport = transport
        self.sleep = sleep

    def _service_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError("TOUR_API_KEY is not configured")
        return self.api_key

    def build_url(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> str:
        return build_url(self.base_url, endpoint, self._service_key(), params, mobile_app=self.mobile_app)

    def _get(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        url = self.build_url(endpoint, params)
        return fetch_with_retry(
            url,
            self.max_retries,
            transport=self.transport,
            timeout=self.timeout,
            sleep=self.sleep,
        )

    def _paged(self, payload: Any, page_no: int, num_of_rows: int) -> PagedResult[Place]:
        body: Dict[str, Any] = {}
        if isinstance(payload, dict):
            body = (payload.get("response") or {}).get("body") or {}
        if not isinstance(body, dict):
            body = {}
        places = [Place.from_item(item) for item in normalize_items(payload)]
        return PagedResult(
            items=places,
            page_no=_as_int(body.get("pageNo"), page_no),
            num_of_rows=_as_int(body.get("numOfRows"), num_of_rows),
            total_count=_as_int(body.get("totalCount"), len(places)),
        )

    def area_codes(self, parent_area_code: Optional[str] = None, num_of_rows: int = 100) -> List[AreaCode]:
        """Province list, or districts of `parent_area_code` when given."""
        payload = self._get(
            "/areaCode2",
            {"areaCode": parent_area_code or None, "numOfRows": num_of_rows},
        )
        return [
            AreaCode(code=str(item.get("code", "")), name=str(item.get("name", "")))
            for item in normalize_items(payload)
        ]

    def area_based_list(
        self,
        area_code: Optional[str] = None,
        content_type_id: Optional[str] = None,
        page_no: int = 1,
        num_of_rows: int = 20,
        sigungu_code: Optional[str] = None,
        cat1: Optional[str] = None,
        cat2: Optional[str] = None,
        cat3: Optional[str] = None,
    ) -> PagedResult[Place]:
        params = {
            "numOfRows": num_of_rows,
            "pageNo": page_no,
            "areaCode": area_code or None,
            "contentTypeId": content_type_id or None,
            "sigunguCode": sigungu_code or None,
            "cat1": cat1 or None,
            "cat2": cat2 or None,
            "cat3": cat3 or None,
        }
        return self._paged(self._get("/areaBasedList2", params), page_no, num_of_rows)

    def search_keyword(
        self,
        keyword: str,
        area_code: Optional[str] = None,
        content_type_id: Optional[str] = None,
        page_no: int = 1,
        num_of_rows: int = 20,
        arrange: Optional[str] = None,
        cat1: Optional[str] = None,
        cat2: Optional[str] = None,
        cat3: Optional[str] = None,
        list_yn: str = "Y",
    ) -> PagedResult[Place]:
        keyword = _require(keyword, "keyword", "검색 키워드는 필수입니다.")
        params = {
            "keyword": keyword,
            "numOfRows": num_of_rows,
            "pageNo": page_no,
            "listYN": list_yn,
            "areaCode": area_code or None,
            "contentTypeId": content_type_id or None,
            "arrange": arrange or None,
            "cat1": cat1 or None,
            "cat2": cat2 or None,
            "cat3": cat3 or None,
        }
        return self._paged(self._get("/searchKeyword2", params), page_no, num_of_rows)

    def detail_common(self, content_id: str) -> Optional[PlaceDetail]:
        """Common detail for a place, or None when the provider has no such content."""
        content_id = _require(content_id, "contentId", "contentId는 필수입니다.")
        items = normalize_items(self._get("/detailCommon2", {"contentId": content_id}))
        if not items:
            return None
        return PlaceDetail.from_item(items[0])

    def detail_intro(self, content_id: str, content_type_id: str) -> Optional[PlaceIntro]:
        content_id = _require(content_id, "contentId", "contentId는 필수입니다.")
        content_type_id = _require(content_type_id, "contentTypeId", "contentTypeId는 필수입니다.")
        items = normalize_items(
            self._get("/detailIntro2", {"contentId": content_id, "contentTypeId": content_type_id})
        )
        if not items:
            return None
        return PlaceIntro.from_item(items[0], content_id=content_id, content_type_id=content_type_id)

    def detail_images(self, content_id: str) -> List[PlaceImage]:
        content_id = _require(content_id, "contentId", "contentId는 필수입니다.")
        items = normalize_items(self._get("/detailImage2", {"contentId": content_id}))
        return [PlaceImage.from_item(item, content_id=content_id) for item in items]


default_latency_recorder = LatencyRecorder(slow_call_ms=settings.SLOW_CALL_MS)

_default_tour_client: Optional[TourApiClient] = None


def get_default_tour_client() -> TourApiClient:
    global _default_tour_client
    if _default_tour_client is None:
        _default_tour_client = TourApiClient(transport=timed(_session.get, default_latency_recorder))
    return _default_tour_client
