"""
Property API endpoints: public search and detail, owner listing management and image uploads.
"""

from fastapi import APIRouter, Depends, File, Request, Response, UploadFile, status
from typing import List
from uuid import UUID

from house_hunt.services.image import ImageService
from house_hunt.services.policies import Actor
from house_hunt.services.property import PropertyService
from house_hunt.services.query_builder import parse_pagination
from house_hunt.schemas.property import (
    PropertyCreate,
    PropertyUpdate,
    OccupancyUpdate,
    PropertyResponse,
    PropertyListResponse
)
from house_hunt.schemas.error import get_crud_error_responses, get_error_responses
from house_hunt.utils.dependencies import (
    get_current_actor,
    get_current_owner,
    get_image_service,
    get_property_service
)


router = APIRouter(prefix="/properties", tags=["Properties"])


@router.get(
    "",
    response_model=PropertyListResponse,
    status_code=status.HTTP_200_OK,
    summary="Search publicly visible properties",
    description=(
        "Query parameters: q, city, minPrice, maxPrice, minSize, maxSize, "
        "bedrooms (comma list), parking, balcony, amenities (comma list, all required), "
        "lat, lng, radius (meters), sort (price_asc|price_desc|newest), page, limit. "
        "Invalid values are ignored."
    )
)
async def list_properties(
    request: Request,
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyListResponse:
    properties, plan, total = await property_service.search_properties(request.query_params)
    return PropertyListResponse.from_page(properties, plan.page, plan.limit, total)


@router.get(
    "/mine",
    response_model=PropertyListResponse,
    status_code=status.HTTP_200_OK,
    summary="List the current owner's properties",
    responses=get_error_responses(401, 403)
)
async def list_my_properties(
    request: Request,
    actor: Actor = Depends(get_current_owner),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyListResponse:
    """
    Owner dashboard: every non-deleted listing of the caller, published or not.
    """
    page, limit = parse_pagination(request.query_params.get("page"), request.query_params.get("limit"))
    properties, total = await property_service.list_my_properties(actor, skip=(page - 1) * limit, limit=limit)
    return PropertyListResponse.from_page(properties, page, limit, total)


@router.get(
    "/{property_id}",
    response_model=PropertyResponse,
    status_code=status.HTTP_200_OK,
    summary="Get property by ID",
    responses=get_error_responses(404, 422)
)
async def get_property(
    property_id: UUID,
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    """
    Get a publicly visible property.

    Raises:
        PropertyNotFoundError: If the property is missing or not publicly visible
    """
    property_obj = await property_service.get_public_property(property_id)
    return PropertyResponse.model_validate(property_obj.to_dict())


@router.post(
    "",
    response_model=PropertyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create new property",
    description="Create a new property listing. Requires an owner account in good standing.",
    responses=get_crud_error_responses()
)
async def create_property(
    property_data: PropertyCreate,
    actor: Actor = Depends(get_current_actor),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    """
    Create a new property listing.

    Args:
        property_data: Property creation data
        actor: Current authenticated identity
        property_service: Property service instance

    Returns:
        Created property with details

    Raises:
        ForbiddenError: If the caller may not create properties
        ValidationError: If property data is invalid
    """
    property_obj = await property_service.create_property(property_data, actor)
    return PropertyResponse.model_validate(property_obj.to_dict())


@router.put(
    "/{property_id}",
    response_model=PropertyResponse,
    status_code=status.HTTP_200_OK,
    summary="Update property",
    responses=get_crud_error_responses()
)
async def update_property(
    property_id: UUID,
    property_data: PropertyUpdate,
    actor: Actor = Depends(get_current_actor),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.update_property(property_id, property_data, actor)
    return PropertyResponse.model_validate(property_obj.to_dict())


@router.delete(
    "/{property_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete property",
    description="Soft-delete a property. Allowed for its owner or an admin.",
    responses=get_error_responses(401, 403, 404)
)
async def delete_property(
    property_id: UUID,
    actor: Actor = Depends(get_current_actor),
    property_service: PropertyService = Depends(get_property_service)
) -> Response:
    await property_service.delete_property(property_id, actor)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{property_id}/publish",
    response_model=PropertyResponse,
    status_code=status.HTTP_200_OK,
    summary="Toggle publication",
    responses=get_error_responses(401, 403, 404)
)
async def toggle_publish(
    property_id: UUID,
    actor: Actor = Depends(get_current_actor),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.toggle_publish(property_id, actor)
    return PropertyResponse.model_validate(property_obj.to_dict())


@router.put(
    "/{property_id}/occupancy",
    response_model=PropertyResponse,
    status_code=status.HTTP_200_OK,
    summary="Set occupancy status",
    description="Accepts only 'available' or 'occupied'.",
    responses=get_crud_error_responses()
)
async def set_occupancy(
    property_id: UUID,
    occupancy_data: OccupancyUpdate,
    actor: Actor = Depends(get_current_actor),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.set_occupancy(property_id, occupancy_data.occupancy_status, actor)
    return PropertyResponse.model_validate(property_obj.to_dict())


@router.post(
    "/{property_id}/images",
    response_model=PropertyResponse,
    status_code=status.HTTP_200_OK,
    summary="Upload property images",
    description="Multipart upload of JPEG, PNG or WebP files, appended to the gallery in order.",
    responses=get_crud_error_responses()
)
async def upload_images(
    property_id: UUID,
    files: List[UploadFile] = File(..., description="Image files"),
    actor: Actor = Depends(get_current_actor),
    property_service: PropertyService = Depends(get_property_service),
    image_service: ImageService = Depends(get_image_service)
) -> PropertyResponse:
    """
    Store uploaded images and attach them to the property.

    Raises:
        ValidationError: If any file is not an accepted image
        ImageLimitExceededError: If the gallery would exceed its limit
    """
    property_obj = await property_service.add_images(property_id, files, actor, image_service)
    return PropertyResponse.model_validate(property_obj.to_dict())
