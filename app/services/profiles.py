# app/services/profiles.py
import logging
import uuid
from typing import Optional

from sqlalchemy import asc, desc
from sqlalchemy.orm import Session

from app.core.errors import NotFound, PermissionDenied, ValidationError, storage_errors
from app.core.policies import Caller, SystemStats, authorize, authorize_update, visible
from app.models.enums import PolicyAction, UserRole
from app.models.profile import Profile
from app.models.rating import Rating
from app.models.store import Store
from app.utils.validation_functions import validate_address, validate_email, validate_name, validate_role

logger = logging.getLogger(__name__)

PROFILE_SORT_FIELDS = ["name", "email", "address", "role", "created_at"]
SELF_EDITABLE_FIELDS = {"name", "address"}
ADMIN_EDITABLE_FIELDS = {"name", "email", "address", "role"}


def list_profiles(
    db: Session,
    caller: Caller,
    name: Optional[str] = None,
    email: Optional[str] = None,
    address: Optional[str] = None,
    role: Optional[str] = None,
    sort_by: str = "name",
    sort_order: str = "asc",
):
    query = visible(db, caller, Profile)

    if name:
        query = query.filter(Profile.name.ilike(f"%{name}%"))
    if email:
        query = query.filter(Profile.email.ilike(f"%{email}%"))
    if address:
        query = query.filter(Profile.address.ilike(f"%{address}%"))
    if role:
        if not validate_role(role):
            raise ValidationError("role", "Role must be one of admin, normal_user, store_owner")
        query = query.filter(Profile.role == UserRole(role))

    if sort_by not in PROFILE_SORT_FIELDS:
        sort_by = "name"
    sort_column = getattr(Profile, sort_by)
    if sort_order.lower() == "desc":
        query = query.order_by(desc(sort_column))
    else:
        query = query.order_by(asc(sort_column))

    with storage_errors(db):
        return query.all()


def get_profile(db: Session, caller: Caller, profile_id: uuid.UUID) -> Profile:
    with storage_errors(db):
        profile = visible(db, caller, Profile).filter(Profile.id == profile_id).first()
    if not profile:
        raise NotFound("User not found")
    return profile


def get_own_profile(db: Session, caller: Caller) -> Profile:
    if caller.profile_id is None:
        raise NotFound("Profile not found")
    return get_profile(db, caller, caller.profile_id)


def _validate_profile_changes(changes: dict) -> dict:
    cleaned = {}
    if "name" in changes:
        if not validate_name(changes["name"]):
            raise ValidationError("name", "Name must be between 20 and 60 characters")
        cleaned["name"] = changes["name"]
    if "address" in changes:
        if not validate_address(changes["address"]):
            raise ValidationError("address", "Address must be at most 400 characters")
        cleaned["address"] = changes["address"]
    if "email" in changes:
        if not validate_email(changes["email"]):
            raise ValidationError("email", "Invalid email address")
        cleaned["email"] = changes["email"].strip().lower()
    if "role" in changes:
        if not validate_role(changes["role"]):
            raise ValidationError("role", "Role must be one of admin, normal_user, store_owner")
        cleaned["role"] = UserRole(changes["role"])
    return cleaned


def update_profile(db: Session, caller: Caller, profile_id: uuid.UUID, changes: dict) -> Profile:
    # Rows the caller cannot read cannot be updated either
    with storage_errors(db):
        profile = visible(db, caller, Profile).filter(Profile.id == profile_id).first()
    if not profile:
        if caller.is_admin:
            raise NotFound("User not found")
        raise PermissionDenied("You do not have permission to update this profile")

    editable = ADMIN_EDITABLE_FIELDS if caller.is_admin else SELF_EDITABLE_FIELDS
    forbidden = set(changes) & (ADMIN_EDITABLE_FIELDS - editable)
    if forbidden:
        raise PermissionDenied(f"You are not allowed to change: {', '.join(sorted(forbidden))}")

    cleaned = _validate_profile_changes({key: value for key, value in changes.items() if key in editable})
    if not cleaned:
        return profile

    authorize_update(caller, profile, cleaned)
    with storage_errors(db):
        db.commit()
        db.refresh(profile)
    logger.info("Profile %s updated by account %s: %s", profile.id, caller.account_id, sorted(cleaned))
    return profile


def get_stats(db: Session, caller: Caller) -> dict:
    """Totals shown on the administrator dashboard."""
    authorize(caller, PolicyAction.select, SystemStats())
    with storage_errors(db):
        return {
            "total_users": visible(db, caller, Profile).count(),
            "total_stores": visible(db, caller, Store).count(),
            "total_ratings": visible(db, caller, Rating).count(),
        }
