"""Properties API router."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from leasehold.core.pagination import PageParams, page_params
from leasehold.core.responses import PageData, SuccessResponse, ok
from leasehold.core.validation import body_openapi, validated_body
from leasehold.features.properties.dtos import (
    CreatePropertyRequest,
    KindName,
    PropertyResponse,
    UpdatePropertyRequest,
)
from leasehold.features.properties.entities import PropertyKind
from leasehold.features.properties.repository import PropertyFilter
from leasehold.features.properties.service import PropertyService
from leasehold.features.registry import Services, get_services

router = APIRouter(prefix="/properties", tags=["properties"])


def get_property_service(services: Services = Depends(get_services)) -> PropertyService:
    """Dependency injection for the property service."""
    return services.properties


@router.get("", response_model=SuccessResponse[PageData[PropertyResponse]])
async def list_properties(
    page: PageParams = Depends(page_params),
    owner_id: UUID | None = Query(None, description="Filter by owner"),
    city: str | None = Query(None, max_length=100, description="Filter by city"),
    kind: KindName | None = Query(None, description="Filter by kind"),
    service: PropertyService = Depends(get_property_service),
) -> SuccessResponse[PageData[PropertyResponse]]:
    filters = PropertyFilter(
        owner_id=owner_id,
        city=city,
        kind=PropertyKind(kind) if kind else None,
    )
    properties, total = await service.list_by_filter(filters, page.limit, page.offset)
    return ok(
        PageData[PropertyResponse](
            items=[PropertyResponse.from_entity(p) for p in properties],
            total=total,
            limit=page.limit,
            offset=page.offset,
        )
    )


@router.post(
    "",
    response_model=SuccessResponse[PropertyResponse],
    status_code=status.HTTP_201_CREATED,
    openapi_extra=body_openapi(CreatePropertyRequest),
)
async def create_property(
    body: CreatePropertyRequest = Depends(validated_body(CreatePropertyRequest)),
    service: PropertyService = Depends(get_property_service),
) -> SuccessResponse[PropertyResponse]:
    """Register a property for an existing owner."""
    prop = await service.create(body.to_input())
    return ok(PropertyResponse.from_entity(prop), "Property created")


@router.get("/{property_id}", response_model=SuccessResponse[PropertyResponse])
async def get_property(
    property_id: UUID,
    service: PropertyService = Depends(get_property_service),
) -> SuccessResponse[PropertyResponse]:
    return ok(PropertyResponse.from_entity(await service.get(property_id)))


@router.patch(
    "/{property_id}",
    response_model=SuccessResponse[PropertyResponse],
    openapi_extra=body_openapi(UpdatePropertyRequest),
)
async def update_property(
    property_id: UUID,
    body: UpdatePropertyRequest = Depends(validated_body(UpdatePropertyRequest)),
    service: PropertyService = Depends(get_property_service),
) -> SuccessResponse[PropertyResponse]:
    """Update a property. ``null`` clears ``bedrooms`` and ``description``."""
    prop = await service.update(property_id, body.to_input())
    return ok(PropertyResponse.from_entity(prop), "Property updated")


@router.delete(
    "/{property_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response
)
async def delete_property(
    property_id: UUID,
    service: PropertyService = Depends(get_property_service),
) -> Response:
    await service.delete(property_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
