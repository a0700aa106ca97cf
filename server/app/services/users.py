from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import AppSettings, get_settings
from app.core.exceptions import AuthenticationError, ConflictError, NotFoundError, UpstreamError, ValidationError
from app.core.security import TokenClaims, create_access_token, hash_password, verify_password
from app.db.models import Address, Booking, PaymentMethod, User
from app.models.users import (
    AddressCreate,
    AddressPatch,
    LoginRequest,
    PaymentMethodCreate,
    PaymentMethodPatch,
    ProfilePatch,
    RegisterRequest,
)

logger = logging.getLogger("app.users")

MIN_PASSWORD_LENGTH = 6


@dataclass
class LoginResult:
    user: User
    token: str


@dataclass
class AccountService:
    """Credential accounts: registration and password login."""

    session: Session
    settings: AppSettings

    @classmethod
    def from_session(cls, session: Session, settings: AppSettings | None = None) -> "AccountService":
        return cls(session=session, settings=settings or get_settings())

    def register(self, payload: RegisterRequest) -> User:
        if payload.password != payload.confirm_password:
            raise ValidationError("Passwords do not match")
        if len(payload.password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        if self._find_by_email(payload.email) is not None:
            raise ConflictError("Email already registered")

        user = User(
            name=payload.name,
            email=payload.email,
            password_hash=hash_password(payload.password),
            role="user",
        )
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise ConflictError("Email already registered") from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise UpstreamError("Failed to register user") from exc
        logger.info("user.registered", extra={"user_id": user.id})
        return user

    def login(self, payload: LoginRequest) -> LoginResult:
        user = self._find_by_email(payload.email.strip().lower())
        if user is None or not verify_password(payload.password, user.password_hash):
            raise AuthenticationError("Invalid email or password")
        token = create_access_token(
            TokenClaims(user_id=user.id, email=user.email, role=user.role),
            self.settings,
        )
        return LoginResult(user=user, token=token)

    def _find_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email)
        try:
            return self.session.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise UpstreamError("Failed to look up user") from exc


@dataclass
class UserProfileService:
    """Profile, saved addresses and saved payment methods of one signed-in user."""

    session: Session

    def get_user(self, user_id: str) -> User:
        user = self.session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def update_profile(self, user_id: str, patch: ProfilePatch) -> User:
        user = self.get_user(user_id)
        changes = patch.model_dump(exclude_unset=True)
        for key, value in changes.items():
            if value is None and not User.__table__.c[key].nullable:
                raise ValidationError(f"{key} cannot be cleared.", details={"field": key})
        if changes.get("preferences") is not None:
            changes["preferences"] = patch.preferences.model_dump(by_alias=True)  # type: ignore[union-attr]
        for key, value in changes.items():
            setattr(user, key, value)
        self._commit("Failed to update profile")
        return user

    def list_bookings(self, user_id: str) -> list[Booking]:
        user = self.get_user(user_id)
        stmt = (
            select(Booking)
            .where(Booking.email == user.email.lower())
            .order_by(Booking.created_at.desc())
        )
        return list(self.session.execute(stmt).scalars())

    # -- addresses ---------------------------------------------------------

    def add_address(self, user_id: str, payload: AddressCreate) -> User:
        user = self.get_user(user_id)
        if payload.is_default:
            self._clear_default(Address, user.id)
        user.addresses.append(Address(**payload.model_dump()))
        self._commit("Failed to add address")
        return user

    def update_address(self, user_id: str, patch: AddressPatch) -> User:
        user = self.get_user(user_id)
        address = self._owned(Address, user.id, patch.address_id, "User or address not found")
        changes = patch.model_dump(exclude_unset=True, exclude={"address_id"})
        if changes.get("is_default"):
            self._clear_default(Address, user.id)
        for key, value in changes.items():
            if value is not None:
                setattr(address, key, value)
        self._commit("Failed to update address")
        return user

    def delete_address(self, user_id: str, address_id: str) -> User:
        user = self.get_user(user_id)
        address = self._owned(Address, user.id, address_id, "User or address not found")
        user.addresses.remove(address)
        self._commit("Failed to delete address")
        return user

    # -- payment methods ---------------------------------------------------

    def add_payment_method(self, user_id: str, payload: PaymentMethodCreate) -> User:
        user = self.get_user(user_id)
        if payload.is_default:
            self._clear_default(PaymentMethod, user.id)
        digits = "".join(ch for ch in (payload.card_number or "") if ch.isdigit())
        method = PaymentMethod(
            type=payload.type,
            card_last4=digits[-4:] if digits else None,
            card_holder=payload.card_holder,
            expiry_month=payload.expiry_month,
            expiry_year=payload.expiry_year,
            card_brand=payload.card_brand,
            upi_id=payload.upi_id,
            wallet_provider=payload.wallet_provider,
            wallet_id=payload.wallet_id,
            is_default=payload.is_default,
            is_active=True,
        )
        user.payment_methods.append(method)
        self._commit("Failed to add payment method")
        return user

    def update_payment_method(self, user_id: str, patch: PaymentMethodPatch) -> User:
        user = self.get_user(user_id)
        method = self._owned(
            PaymentMethod, user.id, patch.payment_method_id, "User or payment method not found"
        )
        if patch.is_default:
            self._clear_default(PaymentMethod, user.id)
        if patch.is_default is not None:
            method.is_default = patch.is_default
        if patch.is_active is not None:
            method.is_active = patch.is_active
        self._commit("Failed to update payment method")
        return user

    def delete_payment_method(self, user_id: str, payment_method_id: str) -> User:
        user = self.get_user(user_id)
        method = self._owned(PaymentMethod, user.id, payment_method_id, "User or payment method not found")
        user.payment_methods.remove(method)
        self._commit("Failed to delete payment method")
        return user

    # -- helpers -----------------------------------------------------------

    def _owned(self, model, user_id: str, record_id: str, message: str):
        record = self.session.get(model, record_id)
        if record is None or record.user_id != user_id:
            raise NotFoundError(message)
        return record

    def _clear_default(self, model, user_id: str) -> None:
        self.session.execute(
            update(model)
            .where(model.user_id == user_id, model.is_default.is_(True))
            .values(is_default=False)
            .execution_options(synchronize_session="fetch")
        )

    def _commit(self, message: str) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise UpstreamError(message) from exc
