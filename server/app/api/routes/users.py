from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.core.security import TokenClaims
from app.db.session import get_session
from app.models.bookings import BookingOut
from app.models.common import DataResponse, ListResponse
from app.models.users import (
    AddressCreate,
    AddressPatch,
    PaymentMethodCreate,
    PaymentMethodPatch,
    ProfilePatch,
    UserProfile,
)
from app.services.users import UserProfileService

router = APIRouter(prefix="/user", tags=["user"])


def get_profile_service(session: Session = Depends(get_session)) -> UserProfileService:
    return UserProfileService(session)


def _profile(user) -> DataResponse[UserProfile]:
    return DataResponse[UserProfile](data=UserProfile.model_validate(user))


@router.get("/profile", response_model=DataResponse[UserProfile])
def get_profile(
    user: TokenClaims = Depends(get_current_user),
    service: UserProfileService = Depends(get_profile_service),
) -> DataResponse[UserProfile]:
    return _profile(service.get_user(user.user_id))


@router.put("/profile", response_model=DataResponse[UserProfile])
def update_profile(
    payload: ProfilePatch,
    user: TokenClaims = Depends(get_current_user),
    service: UserProfileService = Depends(get_profile_service),
) -> DataResponse[UserProfile]:
    return _profile(service.update_profile(user.user_id, payload))


@router.get("/bookings", response_model=ListResponse[BookingOut])
def list_my_bookings(
    user: TokenClaims = Depends(get_current_user),
    service: UserProfileService = Depends(get_profile_service),
) -> ListResponse[BookingOut]:
    bookings = service.list_bookings(user.user_id)
    return ListResponse[BookingOut](data=[BookingOut.model_validate(booking) for booking in bookings])


@router.post("/addresses", response_model=DataResponse[UserProfile], status_code=status.HTTP_201_CREATED)
def add_address(
    payload: AddressCreate,
    user: TokenClaims = Depends(get_current_user),
    service: UserProfileService = Depends(get_profile_service),
) -> DataResponse[UserProfile]:
    return _profile(service.add_address(user.user_id, payload))


@router.put("/addresses", response_model=DataResponse[UserProfile])
def update_address(
    payload: AddressPatch,
    user: TokenClaims = Depends(get_current_user),
    service: UserProfileService = Depends(get_profile_service),
) -> DataResponse[UserProfile]:
    return _profile(service.update_address(user.user_id, payload))


@router.delete("/addresses", response_model=DataResponse[UserProfile])
def delete_address(
    address_id: str = Query(..., alias="addressId", min_length=1),
    user: TokenClaims = Depends(get_current_user),
    service: UserProfileService = Depends(get_profile_service),
) -> DataResponse[UserProfile]:
    return _profile(service.delete_address(user.user_id, address_id))


@router.post("/payment-methods", response_model=DataResponse[UserProfile], status_code=status.HTTP_201_CREATED)
def add_payment_method(
    payload: PaymentMethodCreate,
    user: TokenClaims = Depends(get_current_user),
    service: UserProfileService = Depends(get_profile_service),
) -> DataResponse[UserProfile]:
    return _profile(service.add_payment_method(user.user_id, payload))


@router.put("/payment-methods", response_model=DataResponse[UserProfile])
def update_payment_method(
    payload: PaymentMethodPatch,
    user: TokenClaims = Depends(get_current_user),
    service: UserProfileService = Depends(get_profile_service),
) -> DataResponse[UserProfile]:
    return _profile(service.update_payment_method(user.user_id, payload))


@router.delete("/payment-methods", response_model=DataResponse[UserProfile])
def delete_payment_method(
    payment_method_id: str = Query(..., alias="paymentMethodId", min_length=1),
    user: TokenClaims = Depends(get_current_user),
    service: UserProfileService = Depends(get_profile_service),
) -> DataResponse[UserProfile]:
    return _profile(service.delete_payment_method(user.user_id, payment_method_id))
