from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import require_admin
from app.core.config import AppSettings, get_settings
from app.db.session import Database, get_database, get_session
from app.models.common import DataResponse, ListResponse
from app.models.stores import StoreCreate, StoreOut, StorePatch, StoreSearchRequest, StoreSearchResponse
from app.services.store_search import StoreSearchService
from app.services.stores import StoreService

router = APIRouter(prefix="/stores", tags=["stores"])


def get_store_search_service(
    database: Database = Depends(get_database),
    settings: AppSettings = Depends(get_settings),
) -> StoreSearchService:
    return StoreSearchService.from_database(database, settings)


def get_store_service(session: Session = Depends(get_session)) -> StoreService:
    return StoreService(session)


@router.get("/nearby", response_model=StoreSearchResponse)
async def nearby_stores(
    latitude: str | None = Query(None, description="Origin latitude in decimal degrees."),
    longitude: str | None = Query(None, description="Origin longitude in decimal degrees."),
    max_distance: str | None = Query(None, alias="maxDistance", description="Radius in meters."),
    min_rating: str | None = Query(None, alias="minRating"),
    limit: str | None = Query(None),
    service: StoreSearchService = Depends(get_store_search_service),
) -> StoreSearchResponse:
    # raw strings: unparseable optional values fall back to defaults instead of failing
    return await service.nearby(
        latitude=latitude,
        longitude=longitude,
        max_distance=max_distance,
        min_rating=min_rating,
        limit=limit,
    )


@router.post("/search", response_model=StoreSearchResponse)
async def search_stores(
    payload: StoreSearchRequest,
    service: StoreSearchService = Depends(get_store_search_service),
) -> StoreSearchResponse:
    return await service.search(payload)


@router.get("", response_model=ListResponse[StoreOut])
def list_stores(service: StoreService = Depends(get_store_service)) -> ListResponse[StoreOut]:
    stores = service.list_stores()
    return ListResponse[StoreOut](data=[StoreOut.model_validate(store) for store in stores])


@router.get("/{store_id}", response_model=DataResponse[StoreOut])
def get_store(store_id: str, service: StoreService = Depends(get_store_service)) -> DataResponse[StoreOut]:
    return DataResponse[StoreOut](data=StoreOut.model_validate(service.get_store(store_id)))


@router.post(
    "",
    response_model=DataResponse[StoreOut],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_store(payload: StoreCreate, service: StoreService = Depends(get_store_service)) -> DataResponse[StoreOut]:
    return DataResponse[StoreOut](data=StoreOut.model_validate(service.create_store(payload)))


@router.patch("/{store_id}", response_model=DataResponse[StoreOut], dependencies=[Depends(require_admin)])
def update_store(
    store_id: str,
    payload: StorePatch,
    service: StoreService = Depends(get_store_service),
) -> DataResponse[StoreOut]:
    return DataResponse[StoreOut](data=StoreOut.model_validate(service.update_store(store_id, payload)))
