"""
Public owner pages: the visible listings of a single owner.
"""

from fastapi import APIRouter, Depends, Request, status
from uuid import UUID

from house_hunt.services.property import PropertyService
from house_hunt.schemas.property import PropertyListResponse
from house_hunt.schemas.error import get_error_responses
from house_hunt.utils.dependencies import get_property_service


router = APIRouter(prefix="/owners", tags=["Owners"])


@router.get(
    "/{owner_id}/properties",
    response_model=PropertyListResponse,
    status_code=status.HTTP_200_OK,
    summary="List an owner's visible properties",
    description="Accepts the same query parameters as GET /properties.",
    responses=get_error_responses(404, 422)
)
async def list_owner_properties(
    owner_id: UUID,
    request: Request,
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyListResponse:
    """
    Raises:
        NotFoundError: If the user is missing, deleted or not an owner
    """
    properties, plan, total = await property_service.list_owner_properties(owner_id, request.query_params)
    return PropertyListResponse.from_page(properties, plan.page, plan.limit, total)
