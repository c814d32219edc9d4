"""
Admin API endpoints for moderation, user and property oversight and dashboard stats.
All routes require the admin role.
"""

from fastapi import APIRouter, Depends, Query, Response, status
from typing import Optional
from uuid import UUID

from house_hunt.config import settings
from house_hunt.models.property import OccupancyStatus
from house_hunt.models.user import UserRole
from house_hunt.services.admin import AdminService
from house_hunt.services.policies import Actor
from house_hunt.services.query_builder import parse_pagination
from house_hunt.schemas.admin import StatsResponse, ModerationResponse
from house_hunt.schemas.property import PropertyListResponse
from house_hunt.schemas.user import AdminUserResponse, UserListResponse, UserResponse
from house_hunt.schemas.error import get_error_responses
from house_hunt.utils.dependencies import get_admin_service, get_current_admin


router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    responses=get_error_responses(401, 403)
)


def _admin_pagination(page: Optional[str], limit: Optional[str]):
    return parse_pagination(page, limit, default_limit=settings.admin_page_size)


@router.get("/stats", response_model=StatsResponse, summary="Dashboard statistics")
async def get_stats(
    actor: Actor = Depends(get_current_admin),
    admin_service: AdminService = Depends(get_admin_service)
) -> StatsResponse:
    return StatsResponse.model_validate(await admin_service.get_stats())


@router.get("/users", response_model=UserListResponse, summary="List users")
async def list_users(
    role: Optional[UserRole] = Query(None, description="Filter by role"),
    search: Optional[str] = Query(None, max_length=100, description="Substring of name or email"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    actor: Actor = Depends(get_current_admin),
    admin_service: AdminService = Depends(get_admin_service)
) -> UserListResponse:
    page_number, page_size = _admin_pagination(page, limit)
    users, total = await admin_service.list_users(
        role=role,
        search=(search or "").strip() or None,
        skip=(page_number - 1) * page_size,
        limit=page_size
    )
    return UserListResponse.from_page(users, page_number, page_size, total)


@router.get(
    "/users/{user_id}",
    response_model=AdminUserResponse,
    summary="Get user details",
    responses=get_error_responses(404)
)
async def get_user(
    user_id: UUID,
    actor: Actor = Depends(get_current_admin),
    admin_service: AdminService = Depends(get_admin_service)
) -> AdminUserResponse:
    user, properties_count = await admin_service.get_user_details(user_id)
    details = user.to_dict()
    if user.role == UserRole.OWNER:
        details["properties_count"] = properties_count
    return AdminUserResponse.model_validate(details)


@router.put(
    "/users/{user_id}/block",
    response_model=ModerationResponse,
    summary="Toggle a user's blocked state",
    description="Blocking unpublishes every property the user owns. Unblocking republishes nothing.",
    responses=get_error_responses(404)
)
async def toggle_user_block(
    user_id: UUID,
    actor: Actor = Depends(get_current_admin),
    admin_service: AdminService = Depends(get_admin_service)
) -> ModerationResponse:
    """
    Raises:
        ForbiddenError: If an admin targets their own account
        UserNotFoundError: If the user does not exist
    """
    user, affected = await admin_service.toggle_block(user_id, actor)
    return ModerationResponse(
        message=f"User {'blocked' if user.is_blocked else 'unblocked'} successfully",
        user=UserResponse.model_validate(user.to_dict()),
        affected_properties=affected
    )


@router.delete(
    "/users/{user_id}",
    response_model=ModerationResponse,
    summary="Soft-delete a user and their properties",
    responses=get_error_responses(404)
)
async def delete_user(
    user_id: UUID,
    actor: Actor = Depends(get_current_admin),
    admin_service: AdminService = Depends(get_admin_service)
) -> ModerationResponse:
    user, affected = await admin_service.delete_user(user_id, actor)
    return ModerationResponse(
        message="User deleted successfully",
        user=UserResponse.model_validate(user.to_dict()),
        affected_properties=affected
    )


@router.get("/properties", response_model=PropertyListResponse, summary="List all properties")
async def list_properties(
    status_filter: Optional[str] = Query(None, alias="status", pattern="^(published|unpublished)$"),
    occupancy_status: Optional[OccupancyStatus] = Query(None, alias="occupancyStatus"),
    search: Optional[str] = Query(None, max_length=100, description="Substring of title or city"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    actor: Actor = Depends(get_current_admin),
    admin_service: AdminService = Depends(get_admin_service)
) -> PropertyListResponse:
    """
    Every non-deleted property regardless of publication, occupancy or owner state.
    """
    page_number, page_size = _admin_pagination(page, limit)
    properties, total = await admin_service.list_properties(
        status=status_filter,
        occupancy_status=occupancy_status,
        search=search,
        skip=(page_number - 1) * page_size,
        limit=page_size
    )
    return PropertyListResponse.from_page(properties, page_number, page_size, total)


@router.delete(
    "/properties/{property_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Soft-delete a property",
    responses=get_error_responses(404)
)
async def delete_property(
    property_id: UUID,
    actor: Actor = Depends(get_current_admin),
    admin_service: AdminService = Depends(get_admin_service)
) -> Response:
    await admin_service.delete_property(property_id, actor)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
