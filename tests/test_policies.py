"""
Tests for the visibility and authorization policies.
"""

import uuid
import pytest

from house_hunt.models.property import Property, OccupancyStatus
from house_hunt.models.user import User, UserRole
from house_hunt.services.policies import (
    Actor,
    PropertyAction,
    UserAction,
    can_manage_user,
    can_mutate,
    ensure_can_manage_user,
    ensure_can_mutate,
    is_publicly_visible,
)
from house_hunt.utils.exceptions import BlockedUserError, ForbiddenError, InsufficientPermissionsError


def make_owner(blocked: bool = False, deleted: bool = False) -> User:
    return User(id=uuid.uuid4(), role=UserRole.OWNER, is_blocked=blocked, is_deleted=deleted)


def make_property(owner: User, **overrides) -> Property:
    values = {
        "id": uuid.uuid4(),
        "owner_id": owner.id,
        "is_published": True,
        "occupancy_status": OccupancyStatus.AVAILABLE,
        "is_deleted": False,
    }
    values.update(overrides)
    return Property(**values)


class TestVisibility:
    """Public visibility rule."""

    def test_published_available_listing_is_visible(self):
        owner = make_owner()
        assert is_publicly_visible(make_property(owner), owner)

    @pytest.mark.parametrize("overrides", [
        {"is_published": False},
        {"occupancy_status": OccupancyStatus.OCCUPIED},
        {"is_deleted": True},
    ])
    def test_listing_state_hides(self, overrides):
        owner = make_owner()
        assert not is_publicly_visible(make_property(owner, **overrides), owner)

    def test_blocked_owner_hides(self):
        owner = make_owner(blocked=True)
        assert not is_publicly_visible(make_property(owner), owner)

    def test_deleted_owner_hides(self):
        owner = make_owner(deleted=True)
        assert not is_publicly_visible(make_property(owner), owner)


class TestPropertyPolicy:
    """Who may mutate which property."""

    def setup_method(self):
        self.owner_user = make_owner()
        self.owner = Actor(id=self.owner_user.id, role=UserRole.OWNER)
        self.other_owner = Actor(id=uuid.uuid4(), role=UserRole.OWNER)
        self.tenant = Actor(id=uuid.uuid4(), role=UserRole.TENANT)
        self.admin = Actor(id=uuid.uuid4(), role=UserRole.ADMIN)
        self.prop = make_property(self.owner_user)

    def test_create(self):
        assert can_mutate(self.owner, None, PropertyAction.CREATE)
        assert not can_mutate(self.tenant, None, PropertyAction.CREATE)
        assert not can_mutate(self.admin, None, PropertyAction.CREATE)

    def test_blocked_owner_cannot_create(self):
        blocked = Actor(id=uuid.uuid4(), role=UserRole.OWNER, is_blocked=True)

        assert not can_mutate(blocked, None, PropertyAction.CREATE)
        with pytest.raises(BlockedUserError):
            ensure_can_mutate(blocked, None, PropertyAction.CREATE)

    @pytest.mark.parametrize("action", [
        PropertyAction.UPDATE,
        PropertyAction.PUBLISH_TOGGLE,
        PropertyAction.OCCUPANCY_TOGGLE,
        PropertyAction.UPLOAD_IMAGES,
    ])
    def test_owner_only_actions(self, action):
        assert can_mutate(self.owner, self.prop, action)
        assert not can_mutate(self.other_owner, self.prop, action)
        assert not can_mutate(self.tenant, self.prop, action)
        assert not can_mutate(self.admin, self.prop, action)

    def test_blocked_owner_cannot_update_own_listing(self):
        blocked = Actor(id=self.owner.id, role=UserRole.OWNER, is_blocked=True)

        with pytest.raises(BlockedUserError):
            ensure_can_mutate(blocked, self.prop, PropertyAction.UPDATE)

    def test_delete_allowed_for_owner_and_admin(self):
        blocked = Actor(id=self.owner.id, role=UserRole.OWNER, is_blocked=True)

        assert can_mutate(self.owner, self.prop, PropertyAction.DELETE)
        assert can_mutate(blocked, self.prop, PropertyAction.DELETE)
        assert can_mutate(self.admin, self.prop, PropertyAction.DELETE)
        assert not can_mutate(self.other_owner, self.prop, PropertyAction.DELETE)
        assert not can_mutate(self.tenant, self.prop, PropertyAction.DELETE)

    def test_tenant_update_raises_forbidden(self):
        with pytest.raises(InsufficientPermissionsError) as exc_info:
            ensure_can_mutate(self.tenant, self.prop, PropertyAction.UPDATE)

        assert exc_info.value.status_code == 403


class TestUserPolicy:
    """Who may block or delete accounts."""

    def test_admin_can_manage_others(self):
        admin = Actor(id=uuid.uuid4(), role=UserRole.ADMIN)

        assert can_manage_user(admin, uuid.uuid4(), UserAction.BLOCK)
        assert can_manage_user(admin, uuid.uuid4(), UserAction.DELETE)

    def test_admin_cannot_target_self(self):
        admin = Actor(id=uuid.uuid4(), role=UserRole.ADMIN)

        assert not can_manage_user(admin, admin.id, UserAction.BLOCK)
        with pytest.raises(ForbiddenError, match="your own account"):
            ensure_can_manage_user(admin, admin.id, UserAction.DELETE)

    def test_non_admin_is_refused(self):
        owner = Actor(id=uuid.uuid4(), role=UserRole.OWNER)

        with pytest.raises(InsufficientPermissionsError):
            ensure_can_manage_user(owner, uuid.uuid4(), UserAction.BLOCK)
