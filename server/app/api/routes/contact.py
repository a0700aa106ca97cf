from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.db.session import get_session
from app.models.contact import ContactCreate, ContactCreatedResponse, ContactOut
from app.services.contact import ContactService

router = APIRouter(prefix="/contact", tags=["contact"])


def get_contact_service(session: Session = Depends(get_session)) -> ContactService:
    return ContactService(session)


@router.post("", response_model=ContactCreatedResponse, status_code=status.HTTP_201_CREATED)
def submit_contact(
    payload: ContactCreate,
    service: ContactService = Depends(get_contact_service),
) -> ContactCreatedResponse:
    message = service.submit(payload)
    return ContactCreatedResponse(contact_id=message.id, data=ContactOut.model_validate(message))
