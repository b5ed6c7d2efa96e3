"""
Place browsing routes: area codes, area list, keyword search and the place page.
"""
import logging
from typing import Dict, List, Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from domain.errors import NotFoundError, ValidationError
from domain.models import Place, PlaceDetail, PlaceImage, PagedResult, SortOption, is_valid_content_type_id
from services.places import load_place_page, sort_places
from services.tour_api import TourApiClient, get_default_tour_client

router = APIRouter()
logger = logging.getLogger(__name__)


class AreaResponse(BaseModel):
    code: str
    name: str


class PlaceResponse(BaseModel):
    content_id: str
    content_type_id: str
    content_type_name: Optional[str] = None
    title: str
    addr1: str
    addr2: Optional[str] = None
    area_code: str = ""
    longitude: Optional[float] = None
    latitude: Optional[float] = None
    first_image: Optional[str] = None
    first_image2: Optional[str] = None
    tel: Optional[str] = None
    cat1: Optional[str] = None
    cat2: Optional[str] = None
    cat3: Optional[str] = None
    modified_time: str = ""


class PlaceListResponse(BaseModel):
    items: List[PlaceResponse]
    page: int
    size: int
    total_count: int
    total_pages: int


class PlaceDetailResponse(PlaceResponse):
    zipcode: Optional[str] = None
    homepage: Optional[str] = None
    overview: Optional[str] = None
    copyright_code: Optional[str] = None


class PlaceImageResponse(BaseModel):
    serial_num: str
    origin_url: Optional[str] = None
    small_url: Optional[str] = None
    name: Optional[str] = None


class PlacePageResponse(BaseModel):
    detail: PlaceDetailResponse
    intro: Dict[str, str] = {}
    intro_fields: Dict[str, str] = {}
    images: List[PlaceImageResponse] = []


def place_to_response(place: Place) -> PlaceResponse:
    return PlaceResponse(**place.to_dict())


def image_to_response(image: PlaceImage) -> PlaceImageResponse:
    return PlaceImageResponse(
        serial_num=image.serial_num,
        origin_url=image.origin_url,
        small_url=image.small_url,
        name=image.name,
    )


def paged_to_response(result: PagedResult, sort: SortOption) -> PlaceListResponse:
    return PlaceListResponse(
        items=[place_to_response(p) for p in sort_places(result.items, sort)],
        page=result.page_no,
        size=result.num_of_rows,
        total_count=result.total_count,
        total_pages=result.total_pages,
    )


def get_tour_client() -> TourApiClient:
    return get_default_tour_client()


def _check_content_type(content_type_id: Optional[str]) -> Optional[str]:
    if content_type_id and not is_valid_content_type_id(content_type_id):
        raise ValidationError(f"Invalid content type id: {content_type_id}")
    return content_type_id or None


@router.get("/areas", response_model=List[AreaResponse])
def list_areas(parent: Optional[str] = None, client: TourApiClient = Depends(get_tour_client)):
    """Province list, or the districts of `parent`."""
    return [AreaResponse(code=a.code, name=a.name) for a in client.area_codes(parent)]


@router.get("/places", response_model=PlaceListResponse)
def list_places(
    area_code: Optional[str] = None,
    content_type_id: Optional[str] = None,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    sort: SortOption = SortOption.LATEST,
    client: TourApiClient = Depends(get_tour_client),
):
    result = client.area_based_list(
        area_code=area_code,
        content_type_id=_check_content_type(content_type_id),
        page_no=page,
        num_of_rows=size,
    )
    return paged_to_response(result, sort)


@router.get("/places/search", response_model=PlaceListResponse)
def search_places(
    keyword: str,
    area_code: Optional[str] = None,
    content_type_id: Optional[str] = None,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    arrange: Optional[str] = None,
    sort: SortOption = SortOption.LATEST,
    client: TourApiClient = Depends(get_tour_client),
):
    result = client.search_keyword(
        keyword,
        area_code=area_code,
        content_type_id=_check_content_type(content_type_id),
        page_no=page,
        num_of_rows=size,
        arrange=arrange,
    )
    return paged_to_response(result, sort)


@router.get("/places/{content_id}", response_model=PlacePageResponse)
def get_place(content_id: str, client: TourApiClient = Depends(get_tour_client)):
    """Detail, operational info and gallery for one place."""
    bundle = load_place_page(client, content_id)
    if bundle is None:
        raise NotFoundError(f"Place {content_id} not found", "관광지 정보를 찾을 수 없습니다.")
    detail: PlaceDetail = bundle.detail
    return PlacePageResponse(
        detail=PlaceDetailResponse(**detail.to_dict()),
        intro=bundle.intro.summary() if bundle.intro else {},
        intro_fields=bundle.intro.fields if bundle.intro else {},
        images=[image_to_response(i) for i in bundle.images],
    )
