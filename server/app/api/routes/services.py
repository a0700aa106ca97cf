from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import require_admin
from app.db.session import get_session
from app.models.common import DataResponse, ListResponse, MessageResponse
from app.models.services import ServiceCreate, ServiceOut, ServicePatch
from app.services.catalog import CatalogService

router = APIRouter(prefix="/services", tags=["services"])


def get_catalog_service(session: Session = Depends(get_session)) -> CatalogService:
    return CatalogService(session)


@router.get("", response_model=ListResponse[ServiceOut])
def list_services(service: CatalogService = Depends(get_catalog_service)) -> ListResponse[ServiceOut]:
    return ListResponse[ServiceOut](data=[ServiceOut.model_validate(item) for item in service.list_services()])


@router.get("/{service_id}", response_model=DataResponse[ServiceOut])
def get_service(service_id: str, service: CatalogService = Depends(get_catalog_service)) -> DataResponse[ServiceOut]:
    return DataResponse[ServiceOut](data=ServiceOut.model_validate(service.get_service(service_id)))


@router.post(
    "",
    response_model=DataResponse[ServiceOut],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_service(
    payload: ServiceCreate,
    service: CatalogService = Depends(get_catalog_service),
) -> DataResponse[ServiceOut]:
    return DataResponse[ServiceOut](data=ServiceOut.model_validate(service.create_service(payload)))


@router.put("/{service_id}", response_model=DataResponse[ServiceOut], dependencies=[Depends(require_admin)])
def update_service(
    service_id: str,
    payload: ServicePatch,
    service: CatalogService = Depends(get_catalog_service),
) -> DataResponse[ServiceOut]:
    return DataResponse[ServiceOut](data=ServiceOut.model_validate(service.update_service(service_id, payload)))


@router.delete("/{service_id}", response_model=MessageResponse, dependencies=[Depends(require_admin)])
def delete_service(service_id: str, service: CatalogService = Depends(get_catalog_service)) -> MessageResponse:
    service.delete_service(service_id)
    return MessageResponse(message="Service deleted successfully")
