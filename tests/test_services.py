"""
Tests for service classes.
Tests business logic, authentication, authorization and the moderation cascade.
"""

import json
import pytest
from unittest.mock import AsyncMock, patch
import uuid
from decimal import Decimal
from sqlalchemy.exc import IntegrityError

from house_hunt.models.user import User, UserRole
from house_hunt.models.property import Property, OccupancyStatus
from house_hunt.repositories.property import PropertyRepository
from house_hunt.repositories.user import UserRepository
from house_hunt.schemas.property import PropertyCreate, PropertyUpdate
from house_hunt.schemas.user import SignupRequest, ProfileUpdate
from house_hunt.services.admin import AdminService
from house_hunt.services.auth import AuthService
from house_hunt.services.error_handler import ErrorHandlerService
from house_hunt.services.property import PropertyService
from house_hunt.utils.auth import create_access_token, create_refresh_token
from house_hunt.utils.exceptions import (
    BlockedUserError,
    DuplicateResourceError,
    ForbiddenError,
    InsufficientPermissionsError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    PropertyNotFoundError,
    ImageLimitExceededError,
    UserNotFoundError,
    ValidationError,
)
from tests.conftest import PropertyFactory, TEST_PASSWORD, actor_for


def property_payload(**overrides) -> PropertyCreate:
    data = {
        "title": "Two bedroom flat",
        "description": "Quiet two bedroom flat close to the market",
        "address": "4 Lake Road",
        "city": "Pune",
        "price": Decimal("1200"),
        "size": 900,
        "bedrooms": 2,
        "amenities": "wifi, gym",
    }
    data.update(overrides)
    return PropertyCreate(**data)


class TestAuthService:
    """Test AuthService functionality."""

    @pytest.mark.asyncio
    async def test_signup_defaults_to_tenant(self, auth_service: AuthService):
        user, access_token, refresh_token = await auth_service.signup(SignupRequest(
            name="Nina New", email="nina@househunt.io", password="longpassword1"
        ))

        assert user.role == UserRole.TENANT
        assert access_token and refresh_token

    @pytest.mark.asyncio
    async def test_signup_rejects_admin_role(self, auth_service: AuthService):
        with pytest.raises(ForbiddenError):
            await auth_service.signup(SignupRequest(
                name="Sneaky", email="sneaky@househunt.io", password="longpassword1", role=UserRole.ADMIN
            ))

    @pytest.mark.asyncio
    async def test_signup_duplicate_email(self, auth_service: AuthService, test_owner: User):
        with pytest.raises(DuplicateResourceError):
            await auth_service.signup(SignupRequest(
                name="Copy Cat", email=test_owner.email, password="longpassword1"
            ))

    @pytest.mark.asyncio
    async def test_signup_losing_unique_email_race_is_a_conflict(self, auth_service: AuthService, test_owner: User):
        with patch.object(auth_service.user_repo, "email_exists", new=AsyncMock(return_value=False)):
            with pytest.raises(DuplicateResourceError) as exc_info:
                await auth_service.signup(SignupRequest(
                    name="Racing Twin", email=test_owner.email, password="longpassword1"
                ))

        assert exc_info.value.status_code == 409
        assert (await auth_service.authenticate_user(test_owner.email, TEST_PASSWORD)).id == test_owner.id

    @pytest.mark.asyncio
    async def test_login(self, auth_service: AuthService, test_owner: User):
        user, access_token, refresh_token = await auth_service.login(test_owner.email, TEST_PASSWORD)

        assert user.id == test_owner.id
        assert (await auth_service.get_current_user(access_token)).id == test_owner.id

    @pytest.mark.asyncio
    async def test_login_invalid_credentials(self, auth_service: AuthService, test_owner: User):
        with pytest.raises(InvalidCredentialsError):
            await auth_service.login(test_owner.email, "wrongpassword")

    @pytest.mark.asyncio
    async def test_login_empty_email(self, auth_service: AuthService):
        with pytest.raises(ValidationError, match="Email is required"):
            await auth_service.authenticate_user("", "password")

    @pytest.mark.asyncio
    async def test_refresh_token_cannot_authenticate_requests(self, auth_service: AuthService, test_owner: User):
        refresh_token = create_refresh_token(user_id=test_owner.id, email=test_owner.email)

        with pytest.raises(InvalidTokenError):
            await auth_service.get_current_user(refresh_token)

        access_token = await auth_service.refresh_access_token(refresh_token)
        assert (await auth_service.get_current_user(access_token)).id == test_owner.id

    @pytest.mark.asyncio
    async def test_tokens_of_deleted_user_are_rejected(
        self,
        auth_service: AuthService,
        user_repository: UserRepository,
        test_owner: User
    ):
        _, access_token, _ = await auth_service.login(test_owner.email, TEST_PASSWORD)
        await user_repository.soft_delete_with_properties(test_owner.id)

        with pytest.raises(InvalidTokenError):
            await auth_service.get_current_user(access_token)

    @pytest.mark.asyncio
    async def test_update_profile(self, auth_service: AuthService, test_tenant: User):
        updated = await auth_service.update_profile(
            test_tenant, ProfileUpdate(phone="9876543210", contact_info="Evenings only")
        )

        assert updated.phone == "9876543210"
        assert updated.contact_info == "Evenings only"
        assert updated.name == test_tenant.name

    @pytest.mark.asyncio
    async def test_update_profile_requires_a_field(self, auth_service: AuthService, test_tenant: User):
        with pytest.raises(ValidationError):
            await auth_service.update_profile(test_tenant, ProfileUpdate())

    @pytest.mark.asyncio
    async def test_token_for_unknown_user_is_rejected(self, auth_service: AuthService):
        access_token = create_access_token(user_id=uuid.uuid4(), email="ghost@househunt.io", role=UserRole.OWNER)

        with pytest.raises(InvalidTokenError, match="no longer exists"):
            await auth_service.get_current_user(access_token)


class TestPropertyService:
    """Listing lifecycle and authorization."""

    @pytest.mark.asyncio
    async def test_owner_creates_property(self, property_service: PropertyService, test_owner: User):
        prop = await property_service.create_property(property_payload(), actor_for(test_owner))

        assert prop.owner_id == test_owner.id
        assert prop.is_published is True
        assert prop.occupancy_status == OccupancyStatus.AVAILABLE
        assert sorted(prop.amenity_names) == ["gym", "wifi"]

    @pytest.mark.asyncio
    async def test_tenant_and_admin_cannot_create(
        self,
        property_service: PropertyService,
        test_tenant: User,
        test_admin: User
    ):
        for user in (test_tenant, test_admin):
            with pytest.raises(InsufficientPermissionsError):
                await property_service.create_property(property_payload(), actor_for(user))

    @pytest.mark.asyncio
    async def test_blocked_owner_cannot_create(
        self,
        property_service: PropertyService,
        user_repository: UserRepository,
        test_owner: User
    ):
        await user_repository.set_blocked(test_owner.id, True)
        blocked = await user_repository.get_by_id(test_owner.id)

        with pytest.raises(BlockedUserError):
            await property_service.create_property(property_payload(), actor_for(blocked))

    @pytest.mark.asyncio
    async def test_too_many_images(self, property_service: PropertyService, test_owner: User):
        images = [f"/uploads/{index}.png" for index in range(11)]

        with pytest.raises(ImageLimitExceededError):
            await property_service.create_property(property_payload(images=images), actor_for(test_owner))

    @pytest.mark.asyncio
    async def test_update_by_other_owner_is_forbidden(
        self,
        property_service: PropertyService,
        test_property: Property,
        other_owner: User
    ):
        with pytest.raises(ForbiddenError):
            await property_service.update_property(
                test_property.id, PropertyUpdate(title="Hijacked title"), actor_for(other_owner)
            )

    @pytest.mark.asyncio
    async def test_update_missing_property(self, property_service: PropertyService, test_owner: User):
        with pytest.raises(PropertyNotFoundError):
            await property_service.update_property(
                uuid.uuid4(), PropertyUpdate(title="Nowhere to be found"), actor_for(test_owner)
            )

    @pytest.mark.asyncio
    async def test_update_requires_a_field(
        self,
        property_service: PropertyService,
        test_property: Property,
        test_owner: User
    ):
        with pytest.raises(ValidationError):
            await property_service.update_property(test_property.id, PropertyUpdate(), actor_for(test_owner))

    @pytest.mark.asyncio
    async def test_toggle_publish_and_occupancy(
        self,
        property_service: PropertyService,
        test_property: Property,
        test_owner: User
    ):
        actor = actor_for(test_owner)

        unpublished = await property_service.toggle_publish(test_property.id, actor)
        assert unpublished.is_published is False
        with pytest.raises(PropertyNotFoundError):
            await property_service.get_public_property(test_property.id)

        republished = await property_service.toggle_publish(test_property.id, actor)
        assert republished.is_published is True

        occupied = await property_service.set_occupancy(test_property.id, OccupancyStatus.OCCUPIED, actor)
        assert occupied.occupancy_status == OccupancyStatus.OCCUPIED
        with pytest.raises(PropertyNotFoundError):
            await property_service.get_public_property(test_property.id)

    @pytest.mark.asyncio
    async def test_admin_may_delete_any_property(
        self,
        property_service: PropertyService,
        test_property: Property,
        test_admin: User
    ):
        await property_service.delete_property(test_property.id, actor_for(test_admin))

        with pytest.raises(PropertyNotFoundError):
            await property_service.delete_property(test_property.id, actor_for(test_admin))

    @pytest.mark.asyncio
    async def test_tenant_cannot_delete(
        self,
        property_service: PropertyService,
        test_property: Property,
        test_tenant: User
    ):
        with pytest.raises(ForbiddenError):
            await property_service.delete_property(test_property.id, actor_for(test_tenant))

    @pytest.mark.asyncio
    async def test_owner_page_requires_owner_account(
        self,
        property_service: PropertyService,
        test_property: Property,
        test_owner: User,
        test_tenant: User
    ):
        properties, plan, total = await property_service.list_owner_properties(test_owner.id, {})
        assert total == 1
        assert properties[0].id == test_property.id

        with pytest.raises(NotFoundError):
            await property_service.list_owner_properties(test_tenant.id, {})
        with pytest.raises(NotFoundError):
            await property_service.list_owner_properties(uuid.uuid4(), {})


class TestAdminService:
    """Moderation cascade and admin self-protection."""

    @pytest.mark.asyncio
    async def test_block_cascades_to_listings(
        self,
        admin_service: AdminService,
        property_repository: PropertyRepository,
        test_admin: User,
        test_owner: User
    ):
        first = await PropertyFactory.create_property(property_repository, test_owner.id)
        await PropertyFactory.create_property(property_repository, test_owner.id)
        await PropertyFactory.create_property(property_repository, test_owner.id, is_published=False)

        user, affected = await admin_service.block_user(test_owner.id, actor_for(test_admin))

        assert user.is_blocked is True
        assert affected == 2
        reloaded = await property_repository.get_property(first.id)
        assert reloaded.is_published is False

    @pytest.mark.asyncio
    async def test_blocking_twice_is_a_no_op(
        self,
        admin_service: AdminService,
        property_repository: PropertyRepository,
        test_admin: User,
        test_owner: User
    ):
        await PropertyFactory.create_property(property_repository, test_owner.id)
        await admin_service.block_user(test_owner.id, actor_for(test_admin))

        user, affected = await admin_service.block_user(test_owner.id, actor_for(test_admin))

        assert user.is_blocked is True
        assert affected == 0

    @pytest.mark.asyncio
    async def test_unblock_does_not_republish(
        self,
        admin_service: AdminService,
        property_repository: PropertyRepository,
        test_admin: User,
        test_owner: User
    ):
        prop = await PropertyFactory.create_property(property_repository, test_owner.id)
        admin = actor_for(test_admin)

        await admin_service.toggle_block(test_owner.id, admin)
        user, _ = await admin_service.toggle_block(test_owner.id, admin)

        assert user.is_blocked is False
        assert (await property_repository.get_property(prop.id)).is_published is False

    @pytest.mark.asyncio
    async def test_delete_user_cascades(
        self,
        admin_service: AdminService,
        property_repository: PropertyRepository,
        test_admin: User,
        test_owner: User
    ):
        prop = await PropertyFactory.create_property(property_repository, test_owner.id)

        user, affected = await admin_service.delete_user(test_owner.id, actor_for(test_admin))

        assert user.is_deleted is True
        assert affected == 1
        assert await property_repository.get_property(prop.id) is None
        with pytest.raises(UserNotFoundError):
            await admin_service.delete_user(test_owner.id, actor_for(test_admin))

    @pytest.mark.asyncio
    async def test_admin_cannot_moderate_self(self, admin_service: AdminService, test_admin: User):
        admin = actor_for(test_admin)

        with pytest.raises(ForbiddenError, match="your own account"):
            await admin_service.toggle_block(test_admin.id, admin)
        with pytest.raises(ForbiddenError, match="your own account"):
            await admin_service.delete_user(test_admin.id, admin)

    @pytest.mark.asyncio
    async def test_owner_cannot_moderate(self, admin_service: AdminService, test_owner: User, test_tenant: User):
        with pytest.raises(InsufficientPermissionsError):
            await admin_service.block_user(test_tenant.id, actor_for(test_owner))

    @pytest.mark.asyncio
    async def test_admin_deletes_blocked_owners_listing(
        self,
        admin_service: AdminService,
        property_repository: PropertyRepository,
        test_admin: User,
        test_owner: User
    ):
        prop = await PropertyFactory.create_property(property_repository, test_owner.id)
        await admin_service.block_user(test_owner.id, actor_for(test_admin))

        await admin_service.delete_property(prop.id, actor_for(test_admin))

        assert await property_repository.get_property(prop.id) is None

    @pytest.mark.asyncio
    async def test_user_details_counts_owner_listings(
        self,
        admin_service: AdminService,
        property_repository: PropertyRepository,
        test_owner: User
    ):
        await PropertyFactory.create_property(property_repository, test_owner.id)
        await PropertyFactory.create_property(property_repository, test_owner.id, is_published=False)

        user, count = await admin_service.get_user_details(test_owner.id)

        assert user.id == test_owner.id
        assert count == 2

    @pytest.mark.asyncio
    async def test_list_properties_by_status(
        self,
        admin_service: AdminService,
        property_repository: PropertyRepository,
        test_owner: User
    ):
        await PropertyFactory.create_property(property_repository, test_owner.id)
        await PropertyFactory.create_property(property_repository, test_owner.id, is_published=False)

        _, published = await admin_service.list_properties("published", None, None, 0, 20)
        _, unpublished = await admin_service.list_properties("unpublished", None, None, 0, 20)
        _, everything = await admin_service.list_properties(None, None, None, 0, 20)

        assert (published, unpublished, everything) == (1, 1, 2)


class TestErrorHandlerService:
    """Error envelope rendering."""

    def test_envelope_always_carries_request_id(self):
        envelope = ErrorHandlerService.format_error_response("NOT_FOUND", "Property not found")

        error = envelope["error"]
        assert error["code"] == "NOT_FOUND"
        assert len(error["request_id"]) == 8
        assert error["timestamp"].endswith("Z")
        assert "details" not in error

    def test_api_exception_keeps_status_and_code(self):
        response = ErrorHandlerService.handle_api_exception(BlockedUserError())

        assert response.status_code == 403
        assert json.loads(response.body)["error"]["code"] == "ACCOUNT_BLOCKED"

    def test_integrity_error_messages(self):
        duplicate = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: users.email"))
        unknown = IntegrityError("INSERT", {}, Exception("something else"))

        assert ErrorHandlerService.describe_integrity_error(duplicate) == "An account with this email already exists"
        assert ErrorHandlerService.describe_integrity_error(unknown) == "Data integrity constraint violation"

        response = ErrorHandlerService.handle_database_error(duplicate)
        assert response.status_code == 409
        assert json.loads(response.body)["error"]["code"] == "CONFLICT"
