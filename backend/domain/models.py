"""
Core domain models for the tourism backend.
These are framework-agnostic and can be used across all services.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar
import math
import uuid

# Regional fixed-point coordinates are integers scaled by 10^7.
COORDINATE_SCALE = 10_000_000


def to_decimal_degrees(value: Optional[str]) -> Optional[float]:
    """Convert a fixed-point coordinate string ("1270976969") to degrees (127.0976969)."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        raw = float(text)
    except ValueError:
        return None
    # Some responses already carry decimal degrees
    if abs(raw) <= 180:
        return raw
    return raw / COORDINATE_SCALE


class SortOption(str, Enum):
    """Ordering of place lists."""
    LATEST = "latest"
    NAME = "name"
    REGION = "region"  # by addr1


@dataclass(frozen=True)
class ContentTypeInfo:
    id: str
    name: str
    label: Optional[str] = None


CONTENT_TYPES: Dict[str, ContentTypeInfo] = {
    "12": ContentTypeInfo("12", "관광지", "Tourist Spot"),
    "14": ContentTypeInfo("14", "문화시설", "Cultural Facility"),
    "15": ContentTypeInfo("15", "축제/행사", "Festival/Event"),
    "25": ContentTypeInfo("25", "여행코스", "Tour Course"),
    "28": ContentTypeInfo("28", "레포츠", "Leports"),
    "32": ContentTypeInfo("32", "숙박", "Accommodation"),
    "38": ContentTypeInfo("38", "쇼핑", "Shopping"),
    "39": ContentTypeInfo("39", "음식점", "Restaurant"),
}


def is_valid_content_type_id(value: Optional[str]) -> bool:
    return value is not None and value in CONTENT_TYPES


def get_content_type_name(content_type_id: str) -> Optional[str]:
    info = CONTENT_TYPES.get(content_type_id)
    return info.name if info else None


@dataclass(frozen=True)
class AreaCode:
    code: str
    name: str


# Province-level codes; the full tree is available from the area code endpoint.
AREA_CODES: Dict[str, AreaCode] = {
    code: AreaCode(code, name)
    for code, name in [
        ("1", "서울"),
        ("2", "인천"),
        ("3", "대전"),
        ("4", "대구"),
        ("5", "광주"),
        ("6", "부산"),
        ("7", "울산"),
        ("8", "세종특별자치시"),
        ("31", "경기도"),
        ("32", "강원도"),
        ("33", "충청북도"),
        ("34", "충청남도"),
        ("35", "경상북도"),
        ("36", "경상남도"),
        ("37", "전라북도"),
        ("38", "전라남도"),
        ("39", "제주도"),
    ]
}


def get_area_name(area_code: str) -> Optional[str]:
    area = AREA_CODES.get(area_code)
    return area.name if area else None


@dataclass
class Place:
    """
    A tourist place as returned by list and search endpoints.

    Coordinates stay in their raw fixed-point form; use `longitude`/`latitude`
    for decimal degrees. `modified_time` (YYYYMMDDHHmmss) is the "latest" sort key.
    """
    content_id: str
    content_type_id: str
    title: str
    addr1: str = ""
    addr2: Optional[str] = None
    area_code: str = ""
    mapx: Optional[str] = None
    mapy: Optional[str] = None
    first_image: Optional[str] = None
    first_image2: Optional[str] = None
    tel: Optional[str] = None
    cat1: Optional[str] = None
    cat2: Optional[str] = None
    cat3: Optional[str] = None
    modified_time: str = ""

    @property
    def longitude(self) -> Optional[float]:
        return to_decimal_degrees(self.mapx)

    @property
    def latitude(self) -> Optional[float]:
        return to_decimal_degrees(self.mapy)

    @property
    def content_type_name(self) -> Optional[str]:
        return get_content_type_name(self.content_type_id)

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "Place":
        return cls(**_place_fields(item))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content_id": self.content_id,
            "content_type_id": self.content_type_id,
            "content_type_name": self.content_type_name,
            "title": self.title,
            "addr1": self.addr1,
            "addr2": self.addr2,
            "area_code": self.area_code,
            "longitude": self.longitude,
            "latitude": self.latitude,
            "first_image": self.first_image,
            "first_image2": self.first_image2,
            "tel": self.tel,
            "cat1": self.cat1,
            "cat2": self.cat2,
            "cat3": self.cat3,
            "modified_time": self.modified_time,
        }


def _opt(item: Dict[str, Any], key: str) -> Optional[str]:
    value = item.get(key)
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def _place_fields(item: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "content_id": str(item.get("contentid", "")),
        "content_type_id": str(item.get("contenttypeid", "")),
        "title": str(item.get("title", "")),
        "addr1": str(item.get("addr1") or ""),
        "addr2": _opt(item, "addr2"),
        "area_code": str(item.get("areacode") or ""),
        "mapx": _opt(item, "mapx"),
        "mapy": _opt(item, "mapy"),
        "first_image": _opt(item, "firstimage"),
        "first_image2": _opt(item, "firstimage2"),
        "tel": _opt(item, "tel"),
        "cat1": _opt(item, "cat1"),
        "cat2": _opt(item, "cat2"),
        "cat3": _opt(item, "cat3"),
        "modified_time": str(item.get("modifiedtime") or ""),
    }


@dataclass
class PlaceDetail(Place):
    """Common detail of a place: Place plus overview and contact fields."""
    zipcode: Optional[str] = None
    homepage: Optional[str] = None
    overview: Optional[str] = None
    copyright_code: Optional[str] = None

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "PlaceDetail":
        return cls(
            **_place_fields(item),
            zipcode=_opt(item, "zipcode"),
            homepage=_opt(item, "homepage"),
            overview=_opt(item, "overview"),
            copyright_code=_opt(item, "cpyrhtDivCd"),
        )

    def to_place(self) -> Place:
        return Place(
            content_id=self.content_id,
            content_type_id=self.content_type_id,
            title=self.title,
            addr1=self.addr1,
            addr2=self.addr2,
            area_code=self.area_code,
            mapx=self.mapx,
            mapy=self.mapy,
            first_image=self.first_image,
            first_image2=self.first_image2,
            tel=self.tel,
            cat1=self.cat1,
            cat2=self.cat2,
            cat3=self.cat3,
            modified_time=self.modified_time,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "zipcode": self.zipcode,
                "homepage": self.homepage,
                "overview": self.overview,
                "copyright_code": self.copyright_code,
            }
        )
        return data


# Canonical operational field -> keys it may appear under, in priority order.
INTRO_FIELD_ALIASES: Dict[str, List[str]] = {
    "usetime": ["usetime", "opentime", "usetimeculture"],
    "restdate": ["restdate", "restdateculture", "restdatefood"],
    "usefee": ["usefee", "usetimeleports", "usetimefestival"],
    "parking": ["parking"],
    "accomcount": ["accomcount", "accomcountculture", "accomcountlodging"],
    "expguide": ["expguide", "expagerange", "expguideculture"],
    "infocenter": ["infocenter"],
    "chkbabycarriage": ["chkbabycarriage", "chkbabycarriageculture"],
    "chkpet": ["chkpet", "chkpetculture"],
}


@dataclass
class PlaceIntro:
    """
    Type-specific operational info. Field names vary by content type, so the
    payload is kept as an open map and read through INTRO_FIELD_ALIASES.
    """
    content_id: str
    content_type_id: str
    fields: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_item(cls, item: Dict[str, Any], content_id: str = "", content_type_id: str = "") -> "PlaceIntro":
        fields = {str(k): str(v) for k, v in item.items() if v is not None}
        return cls(
            content_id=str(item.get("contentid") or content_id),
            content_type_id=str(item.get("contenttypeid") or content_type_id),
            fields=fields,
        )

    def get_field(self, name: str) -> Optional[str]:
        """Resolve a canonical field through its aliases; blank values don't count."""
        for key in INTRO_FIELD_ALIASES.get(name, [name]):
            value = self.fields.get(key)
            if value and value.strip():
                return value
        return None

    def summary(self) -> Dict[str, str]:
        result: Dict[str, str] = {}
        for name in INTRO_FIELD_ALIASES:
            value = self.get_field(name)
            if value:
                result[name] = value
        return result

    @property
    def has_any_info(self) -> bool:
        return bool(self.summary())


@dataclass
class PlaceImage:
    content_id: str
    serial_num: str
    origin_url: Optional[str] = None
    small_url: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def from_item(cls, item: Dict[str, Any], content_id: str = "") -> "PlaceImage":
        return cls(
            content_id=str(item.get("contentid") or content_id),
            serial_num=str(item.get("serialnum") or ""),
            origin_url=_opt(item, "originimgurl"),
            small_url=_opt(item, "smallimageurl"),
            name=_opt(item, "imgname"),
        )


T = TypeVar("T")


@dataclass
class PagedResult(Generic[T]):
    items: List[T]
    page_no: int
    num_of_rows: int
    total_count: int

    @property
    def total_pages(self) -> int:
        if not self.total_count or not self.num_of_rows:
            return 0
        return math.ceil(self.total_count / self.num_of_rows)


@dataclass
class User:
    """Internal user mirrored from the external identity provider."""
    id: str
    external_id: str
    name: str
    created_at: datetime = field(default_factory=datetime.utcnow)

    @staticmethod
    def generate_id() -> str:
        return str(uuid.uuid4())


@dataclass
class Bookmark:
    """
    A (user, content) pair. Immutable once created; identified by the pair,
    which is unique in storage.
    """
    id: str
    user_id: str
    content_id: str
    created_at: datetime = field(default_factory=datetime.utcnow)

    @staticmethod
    def generate_id() -> str:
        return str(uuid.uuid4())


@dataclass
class PlaceBundle:
    """Everything shown on a place page: detail plus optional intro and images."""
    detail: PlaceDetail
    intro: Optional[PlaceIntro] = None
    images: List[PlaceImage] = field(default_factory=list)


@dataclass
class BookmarkedPlace:
    bookmark: Bookmark
    place: Place
