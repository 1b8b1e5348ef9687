"""Users API router."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from leasehold.core.pagination import PageParams, page_params
from leasehold.core.responses import PageData, SuccessResponse, ok
from leasehold.core.validation import body_openapi, validated_body
from leasehold.features.registry import Services, get_services
from leasehold.features.users.dtos import (
    CreateUserRequest,
    ReplaceUserRequest,
    RoleName,
    UpdateUserRequest,
    UserResponse,
)
from leasehold.features.users.entities import UserRole
from leasehold.features.users.repository import UserFilter
from leasehold.features.users.service import UserService

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(services: Services = Depends(get_services)) -> UserService:
    """Dependency injection for the user service."""
    return services.users


@router.get("", response_model=SuccessResponse[PageData[UserResponse]])
async def list_users(
    page: PageParams = Depends(page_params),
    role: RoleName | None = Query(None, description="Filter by role"),
    search: str | None = Query(
        None, max_length=100, description="Case-insensitive match on name or email"
    ),
    service: UserService = Depends(get_user_service),
) -> SuccessResponse[PageData[UserResponse]]:
    """List users, newest first."""
    filters = UserFilter(role=UserRole(role) if role else None, search=search)
    users, total = await service.list_by_filter(filters, page.limit, page.offset)
    return ok(
        PageData[UserResponse](
            items=[UserResponse.from_entity(u) for u in users],
            total=total,
            limit=page.limit,
            offset=page.offset,
        )
    )


@router.post(
    "",
    response_model=SuccessResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
    openapi_extra=body_openapi(CreateUserRequest),
)
async def create_user(
    body: CreateUserRequest = Depends(validated_body(CreateUserRequest)),
    service: UserService = Depends(get_user_service),
) -> SuccessResponse[UserResponse]:
    user = await service.create(body.to_input())
    return ok(UserResponse.from_entity(user), "User created")


@router.get("/{user_id}", response_model=SuccessResponse[UserResponse])
async def get_user(
    user_id: UUID,
    service: UserService = Depends(get_user_service),
) -> SuccessResponse[UserResponse]:
    return ok(UserResponse.from_entity(await service.get(user_id)))


@router.put(
    "/{user_id}",
    response_model=SuccessResponse[UserResponse],
    openapi_extra=body_openapi(ReplaceUserRequest),
)
async def replace_user(
    user_id: UUID,
    body: ReplaceUserRequest = Depends(validated_body(ReplaceUserRequest)),
    service: UserService = Depends(get_user_service),
) -> SuccessResponse[UserResponse]:
    """Replace a user's name and role. The email cannot be changed."""
    user = await service.update(user_id, body.to_input())
    return ok(UserResponse.from_entity(user), "User updated")


@router.patch(
    "/{user_id}",
    response_model=SuccessResponse[UserResponse],
    openapi_extra=body_openapi(UpdateUserRequest),
)
async def update_user(
    user_id: UUID,
    body: UpdateUserRequest = Depends(validated_body(UpdateUserRequest)),
    service: UserService = Depends(get_user_service),
) -> SuccessResponse[UserResponse]:
    user = await service.update(user_id, body.to_input())
    return ok(UserResponse.from_entity(user), "User updated")


@router.delete(
    "/{user_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response
)
async def delete_user(
    user_id: UUID,
    service: UserService = Depends(get_user_service),
) -> Response:
    """Delete a user that no longer owns properties or holds leases."""
    await service.delete(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
