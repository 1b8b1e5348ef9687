"""Leases API router."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from leasehold.core.pagination import PageParams, page_params
from leasehold.core.responses import PageData, SuccessResponse, ok
from leasehold.core.validation import body_openapi, validated_body
from leasehold.features.leases.dtos import (
    LeaseResponse,
    LeaseStatusName,
    SignedLeaseResponse,
    SignLeaseRequest,
    UpdateLeaseRequest,
)
from leasehold.features.leases.entities import LeaseStatus
from leasehold.features.leases.repository import LeaseFilter
from leasehold.features.leases.service import LeaseService
from leasehold.features.payments.dtos import PaymentResponse
from leasehold.features.payments.router import get_payment_service
from leasehold.features.payments.service import PaymentService
from leasehold.features.registry import Services, get_services

router = APIRouter(prefix="/leases", tags=["leases"])


def get_lease_service(services: Services = Depends(get_services)) -> LeaseService:
    """Dependency injection for the lease service."""
    return services.leases


@router.get("", response_model=SuccessResponse[PageData[LeaseResponse]])
async def list_leases(
    page: PageParams = Depends(page_params),
    property_id: UUID | None = Query(None, description="Filter by property"),
    tenant_id: UUID | None = Query(None, description="Filter by tenant"),
    lease_status: LeaseStatusName | None = Query(
        None, alias="status", description="Filter by status"
    ),
    service: LeaseService = Depends(get_lease_service),
) -> SuccessResponse[PageData[LeaseResponse]]:
    filters = LeaseFilter(
        property_id=property_id,
        tenant_id=tenant_id,
        status=LeaseStatus(lease_status) if lease_status else None,
    )
    leases, total = await service.list_by_filter(filters, page.limit, page.offset)
    return ok(
        PageData[LeaseResponse](
            items=[LeaseResponse.from_entity(lease) for lease in leases],
            total=total,
            limit=page.limit,
            offset=page.offset,
        )
    )


@router.post(
    "",
    response_model=SuccessResponse[SignedLeaseResponse],
    status_code=status.HTTP_201_CREATED,
    openapi_extra=body_openapi(SignLeaseRequest),
)
async def sign_lease(
    body: SignLeaseRequest = Depends(validated_body(SignLeaseRequest)),
    service: LeaseService = Depends(get_lease_service),
) -> SuccessResponse[SignedLeaseResponse]:
    """Sign a lease and create its monthly payment schedule.

    The lease and every scheduled payment are written in one transaction.
    """
    signed = await service.sign(body.to_input())
    return ok(SignedLeaseResponse.from_signed(signed), "Lease signed")


@router.get("/{lease_id}", response_model=SuccessResponse[LeaseResponse])
async def get_lease(
    lease_id: UUID,
    service: LeaseService = Depends(get_lease_service),
) -> SuccessResponse[LeaseResponse]:
    return ok(LeaseResponse.from_entity(await service.get(lease_id)))


@router.patch(
    "/{lease_id}",
    response_model=SuccessResponse[LeaseResponse],
    openapi_extra=body_openapi(UpdateLeaseRequest),
)
async def update_lease(
    lease_id: UUID,
    body: UpdateLeaseRequest = Depends(validated_body(UpdateLeaseRequest)),
    service: LeaseService = Depends(get_lease_service),
) -> SuccessResponse[LeaseResponse]:
    """Update lease terms or move it through its lifecycle.

    Allowed status changes: pending to active or cancelled, active to ended.
    """
    lease = await service.update(lease_id, body.to_input())
    return ok(LeaseResponse.from_entity(lease), "Lease updated")


@router.delete(
    "/{lease_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response
)
async def delete_lease(
    lease_id: UUID,
    service: LeaseService = Depends(get_lease_service),
) -> Response:
    await service.delete(lease_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{lease_id}/payments", response_model=SuccessResponse[list[PaymentResponse]])
async def list_lease_payments(
    lease_id: UUID,
    service: PaymentService = Depends(get_payment_service),
) -> SuccessResponse[list[PaymentResponse]]:
    """Payment schedule of a lease, earliest due date first."""
    payments = await service.list_for_lease(lease_id)
    return ok([PaymentResponse.from_entity(p) for p in payments])
