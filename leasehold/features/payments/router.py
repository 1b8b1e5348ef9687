"""Payments API router."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from leasehold.core.pagination import PageParams, page_params
from leasehold.core.responses import PageData, SuccessResponse, ok
from leasehold.features.payments.dtos import PaymentResponse, PaymentStatusName
from leasehold.features.payments.entities import PaymentStatus
from leasehold.features.payments.repository import PaymentFilter
from leasehold.features.payments.service import PaymentService
from leasehold.features.registry import Services, get_services

router = APIRouter(prefix="/payments", tags=["payments"])


def get_payment_service(services: Services = Depends(get_services)) -> PaymentService:
    """Dependency injection for the payment service."""
    return services.payments


@router.get("", response_model=SuccessResponse[PageData[PaymentResponse]])
async def list_payments(
    page: PageParams = Depends(page_params),
    lease_id: UUID | None = Query(None, description="Filter by lease"),
    status: PaymentStatusName | None = Query(None, description="Filter by status"),
    service: PaymentService = Depends(get_payment_service),
) -> SuccessResponse[PageData[PaymentResponse]]:
    filters = PaymentFilter(
        lease_id=lease_id,
        status=PaymentStatus(status) if status else None,
    )
    payments, total = await service.list_by_filter(filters, page.limit, page.offset)
    return ok(
        PageData[PaymentResponse](
            items=[PaymentResponse.from_entity(p) for p in payments],
            total=total,
            limit=page.limit,
            offset=page.offset,
        )
    )


@router.get("/{payment_id}", response_model=SuccessResponse[PaymentResponse])
async def get_payment(
    payment_id: UUID,
    service: PaymentService = Depends(get_payment_service),
) -> SuccessResponse[PaymentResponse]:
    return ok(PaymentResponse.from_entity(await service.get(payment_id)))


@router.post("/{payment_id}/pay", response_model=SuccessResponse[PaymentResponse])
async def pay(
    payment_id: UUID,
    service: PaymentService = Depends(get_payment_service),
) -> SuccessResponse[PaymentResponse]:
    """Mark a due payment as paid. Paying twice is a conflict."""
    payment = await service.mark_paid(payment_id)
    return ok(PaymentResponse.from_entity(payment), "Payment recorded")
