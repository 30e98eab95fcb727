# campus_booking/authorization.py
"""
Authorization Gate.

``authorize`` is a pure function of the acting user, the action and the
target resource/booking. Rules are evaluated in order:

1. Admins are allowed every administrative action.
2. Booking creation is denied when the resource is not Active, when the
   resource restricts roles and the user's role is not listed, when the
   user lacks the capability flag the resource demands, or when the
   requested duration exceeds the resource's maximum.
3. Cancelling or viewing a booking is allowed to its owner and to Admins.
4. Anything else is denied.
"""
import enum
from dataclasses import dataclass
from typing import Optional

from campus_booking.errors import AuthorizationError, ResourceUnavailable
from campus_booking.models import ResourceStatus, Role


class Action(str, enum.Enum):
    CREATE_BOOKING = "create_booking"
    CANCEL_BOOKING = "cancel_booking"
    VIEW_BOOKING = "view_booking"
    VIEW_USER_BOOKINGS = "view_user_bookings"
    # Administrative
    MANAGE_CATALOG = "manage_catalog"
    MANAGE_USERS = "manage_users"
    VIEW_ALL_BOOKINGS = "view_all_bookings"
    APPROVE_BOOKING = "approve_booking"


ADMIN_ACTIONS = frozenset({
    Action.MANAGE_CATALOG,
    Action.MANAGE_USERS,
    Action.VIEW_ALL_BOOKINGS,
    Action.APPROVE_BOOKING,
})

OWNER_ACTIONS = frozenset({Action.CANCEL_BOOKING, Action.VIEW_BOOKING})


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str = ""
    code: str = ""

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)


def deny(reason: str, code: str = "denied") -> Decision:
    return Decision(False, reason, code)


def raise_for_decision(decision: Decision) -> None:
    """Turn a Deny into the matching error; an Allow passes through."""
    if decision:
        return
    if decision.code == "resource_unavailable":
        raise ResourceUnavailable(decision.reason)
    raise AuthorizationError(decision.reason)


def _role(user) -> Role:
    return Role(user.role)


def _check_booking_rules(user, resource, duration_hours: Optional[float]) -> Decision:
    if resource is None:
        return deny("No resource given")

    if ResourceStatus(resource.status) != ResourceStatus.ACTIVE:
        return deny(
            f"{resource.name} is not accepting bookings (status: {ResourceStatus(resource.status).value})",
            code="resource_unavailable",
        )

    role = _role(user)
    allowed_roles = {Role(r) for r in (resource.allowed_roles or [])}
    if allowed_roles and role not in allowed_roles:
        names = ", ".join(sorted(r.value for r in allowed_roles))
        return deny(f"{resource.name} can only be booked by: {names}")

    flag = resource.required_permission
    if flag and role != Role.ADMIN and not getattr(user, flag, False):
        return deny(f"Your account is not permitted to book {resource.name} ({flag})")

    limit = resource.max_duration_hours
    if limit is not None and duration_hours is not None and duration_hours > limit:
        return deny(f"{resource.name} can be booked for at most {limit:g} hours")

    return ALLOW


def authorize(
    user,
    action: Action,
    resource=None,
    *,
    booking=None,
    duration_hours: Optional[float] = None,
    subject_user_id: Optional[int] = None,
) -> Decision:
    """
    Decide whether ``user`` may perform ``action``.

    ``resource`` is the catalog entry for booking creation, ``booking`` the
    target of cancel/view, and ``subject_user_id`` the owner whose bookings
    are being listed.
    """
    if user is None:
        return deny("Not authenticated")

    role = _role(user)

    if action in ADMIN_ACTIONS:
        if role == Role.ADMIN:
            return ALLOW
        return deny("You do not have permission to perform this action (Admin Only).")

    if action == Action.CREATE_BOOKING:
        return _check_booking_rules(user, resource, duration_hours)

    if action in OWNER_ACTIONS:
        if booking is None:
            return deny("No booking given")
        if booking.user_id == user.id or role == Role.ADMIN:
            return ALLOW
        return deny("Only the booking's owner or an Admin may do this")

    if action == Action.VIEW_USER_BOOKINGS:
        if subject_user_id == user.id or role == Role.ADMIN:
            return ALLOW
        return deny("You can only view your own bookings")

    return deny("Action not permitted")
