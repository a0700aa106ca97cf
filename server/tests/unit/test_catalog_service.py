from __future__ import annotations

import pytest

from app.core.exceptions import NotFoundError, ValidationError
from app.models.services import ServiceCreate, ServicePatch
from app.services.catalog import CatalogService


@pytest.fixture
def catalog(session) -> CatalogService:
    return CatalogService(session)


def test_create_keeps_only_supplied_prices(catalog) -> None:
    service = catalog.create_service(
        ServiceCreate.model_validate({"name": " Interior Spa ", "price": 599, "prices": {"sedan": 699, "suv": 799}})
    )

    assert service.name == "Interior Spa"
    assert service.prices == {"sedan": 699, "suv": 799}


def test_patch_merges_prices_key_by_key(catalog) -> None:
    service = catalog.create_service(
        ServiceCreate.model_validate({"name": "Interior Spa", "price": 599, "prices": {"sedan": 699, "suv": 799}})
    )

    updated = catalog.update_service(
        service.id, ServicePatch.model_validate({"prices": {"suv": 849, "luxury": 999}, "durationMin": 45})
    )

    assert updated.prices == {"sedan": 699, "suv": 849, "luxury": 999}
    assert updated.duration_min == 45
    assert updated.name == "Interior Spa"


def test_patch_cannot_clear_name(catalog) -> None:
    service = catalog.create_service(ServiceCreate(name="Basic", price=199))

    with pytest.raises(ValidationError):
        catalog.update_service(service.id, ServicePatch.model_validate({"name": None}))


def test_delete_then_get_is_not_found(catalog) -> None:
    service = catalog.create_service(ServiceCreate(name="Basic", price=199))

    catalog.delete_service(service.id)

    with pytest.raises(NotFoundError):
        catalog.get_service(service.id)
    with pytest.raises(NotFoundError):
        catalog.delete_service(service.id)


def test_list_returns_every_service(catalog) -> None:
    first = catalog.create_service(ServiceCreate(name="First", price=1))
    second = catalog.create_service(ServiceCreate(name="Second", price=2))

    names = [service.name for service in catalog.list_services()]

    assert set(names) == {first.name, second.name}
    assert len(names) == 2
