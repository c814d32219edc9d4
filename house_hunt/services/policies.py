"""
Visibility and authorization policies.

Both are pure functions over an ``Actor`` (the request-scoped identity) and the
records involved, so routers and services share a single definition of who may
see and change what.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional
from house_hunt.models.property import OccupancyStatus, Property
from house_hunt.models.user import User, UserRole
from house_hunt.utils.exceptions import BlockedUserError, InsufficientPermissionsError, SelfModerationError
import uuid


@dataclass(frozen=True)
class Actor:
    """Authenticated identity the policies are evaluated against."""

    id: uuid.UUID
    role: UserRole
    is_blocked: bool = False

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        return cls(id=user.id, role=user.role, is_blocked=user.is_blocked)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_owner(self) -> bool:
        return self.role == UserRole.OWNER


class PropertyAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    PUBLISH_TOGGLE = "publish_toggle"
    OCCUPANCY_TOGGLE = "occupancy_toggle"
    UPLOAD_IMAGES = "upload_images"


class UserAction(str, Enum):
    BLOCK = "block"
    DELETE = "delete"


# Actions reserved for the owner of record who is in good standing
OWNER_ONLY_ACTIONS = {
    PropertyAction.UPDATE,
    PropertyAction.PUBLISH_TOGGLE,
    PropertyAction.OCCUPANCY_TOGGLE,
    PropertyAction.UPLOAD_IMAGES,
}


def is_publicly_visible(prop: Property, owner: Optional[User] = None) -> bool:
    """
    Decide whether a property may appear in public results.

    Args:
        prop: Property to check
        owner: Owner record; defaults to ``prop.owner``

    Returns:
        True only for published, available, non-deleted listings of an owner
        who is neither blocked nor deleted
    """
    owner = owner if owner is not None else prop.owner
    if owner is None:
        return False

    return (
        prop.is_published
        and prop.occupancy_status == OccupancyStatus.AVAILABLE
        and not prop.is_deleted
        and not owner.is_blocked
        and not owner.is_deleted
    )


def can_mutate(actor: Actor, prop: Optional[Property], action: PropertyAction) -> bool:
    """
    Decide whether the actor may perform ``action`` on ``prop``.

    Args:
        actor: Request-scoped identity
        prop: Target property (None for CREATE)
        action: Requested mutation

    Returns:
        True if the mutation is allowed
    """
    if action == PropertyAction.CREATE:
        return actor.is_owner and not actor.is_blocked

    if prop is None:
        return False

    is_owner_of_record = actor.is_owner and prop.owner_id == actor.id

    if action == PropertyAction.DELETE:
        return is_owner_of_record or actor.is_admin

    if action in OWNER_ONLY_ACTIONS:
        return is_owner_of_record and not actor.is_blocked

    return False


def ensure_can_mutate(actor: Actor, prop: Optional[Property], action: PropertyAction) -> None:
    """
    Raise the error describing why ``can_mutate`` refused the action.

    Raises:
        BlockedUserError: If the actor is a blocked owner
        InsufficientPermissionsError: If the actor lacks the role or ownership
    """
    if can_mutate(actor, prop, action):
        return

    if actor.is_owner and actor.is_blocked and action != PropertyAction.DELETE:
        if action == PropertyAction.CREATE or (prop is not None and prop.owner_id == actor.id):
            raise BlockedUserError()

    if action == PropertyAction.CREATE:
        raise InsufficientPermissionsError("create properties")

    raise InsufficientPermissionsError(f"{action.value.replace('_', ' ')} this property")


def can_manage_user(actor: Actor, target_id: uuid.UUID, action: UserAction) -> bool:
    """Admins may block or delete any account except their own."""
    return actor.is_admin and actor.id != target_id


def ensure_can_manage_user(actor: Actor, target_id: uuid.UUID, action: UserAction) -> None:
    """
    Raise when ``can_manage_user`` refuses the action.

    Raises:
        InsufficientPermissionsError: If the actor is not an admin
        SelfModerationError: If an admin targets their own account
    """
    if can_manage_user(actor, target_id, action):
        return

    if not actor.is_admin:
        raise InsufficientPermissionsError(f"{action.value} users")

    raise SelfModerationError(action.value)
