from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.config import AppSettings, get_settings
from app.db.session import get_session
from app.models.common import DataResponse
from app.models.payments import (
    OrderCreated,
    PaymentLinkCreated,
    PaymentOut,
    PaymentRequest,
    PaymentVerifyRequest,
    PaymentVerifyResponse,
)
from app.services.payments import PaymentService

router = APIRouter(prefix="/payments", tags=["payments"])


def get_payment_service(
    session: Session = Depends(get_session),
    settings: AppSettings = Depends(get_settings),
) -> PaymentService:
    return PaymentService.from_session(session, settings)


@router.post("/orders", response_model=OrderCreated, status_code=status.HTTP_201_CREATED)
def create_order(payload: PaymentRequest, service: PaymentService = Depends(get_payment_service)) -> OrderCreated:
    return service.create_order(payload)


@router.post("/links", response_model=PaymentLinkCreated, status_code=status.HTTP_201_CREATED)
def create_payment_link(
    payload: PaymentRequest,
    service: PaymentService = Depends(get_payment_service),
) -> PaymentLinkCreated:
    return service.create_link(payload)


@router.post("/verify", response_model=PaymentVerifyResponse)
def verify_payment(
    payload: PaymentVerifyRequest,
    service: PaymentService = Depends(get_payment_service),
) -> PaymentVerifyResponse:
    return PaymentVerifyResponse(data=service.verify(payload))


@router.get("/{payment_id}", response_model=DataResponse[PaymentOut])
def get_payment(payment_id: str, service: PaymentService = Depends(get_payment_service)) -> DataResponse[PaymentOut]:
    return DataResponse[PaymentOut](data=PaymentOut.model_validate(service.get_payment(payment_id)))
