# app/services/accounts.py
"""Authentication boundary: account registration, login and removal."""
import logging
import uuid
from typing import Optional

from sqlalchemy.orm import Session

from app.core.errors import AuthenticationError, NotFound, PermissionDenied, ValidationError, storage_errors
from app.core.policies import Caller, authorize, visible
from app.models.enums import PolicyAction, UserRole
from app.models.profile import Profile
from app.models.user import User
from app.services import provisioning  # noqa: F401  registers the profile hook
from app.utils.auth import verify_password
from app.utils.helpers import hash_password, mask_email
from app.utils.validation_functions import (
    validate_address,
    validate_email,
    validate_name,
    validate_password_strength,
    validate_role,
)

logger = logging.getLogger(__name__)


def _normalize_email(email) -> str:
    if not validate_email(email):
        raise ValidationError("email", "Invalid email address")
    return email.strip().lower()


def register_account(db: Session, email: str, password: str, metadata: Optional[dict] = None) -> Profile:
    """Create an account; its profile is provisioned in the same transaction."""
    email = _normalize_email(email)
    if not validate_password_strength(password):
        raise ValidationError(
            "password",
            "Password must be 8-16 characters with at least one uppercase letter and one special character",
        )
    with storage_errors(db):
        taken = db.query(User.id).filter(User.email == email).first()
    if taken:
        raise ValidationError("email", "Email already registered")

    user = User(
        email=email,
        hashed_password=hash_password(password),
        raw_user_meta_data=dict(metadata or {}),
    )
    with storage_errors(db):
        db.add(user)
        db.commit()
        profile = db.query(Profile).filter(Profile.user_id == user.id).one()
    logger.info("Registered account %s as %s", mask_email(email), profile.role.value)
    return profile


def sign_up(db: Session, email: str, password: str, name: Optional[str] = None, address: Optional[str] = None) -> Profile:
    """Public self-registration. Always yields a normal_user profile."""
    metadata = {}
    if name is not None:
        if not validate_name(name):
            raise ValidationError("name", "Name must be between 20 and 60 characters")
        metadata["name"] = name
    if address is not None:
        if not validate_address(address):
            raise ValidationError("address", "Address must be at most 400 characters")
        metadata["address"] = address
    metadata["role"] = UserRole.normal_user.value
    return register_account(db, email, password, metadata)


def create_user_account(
    db: Session,
    caller: Caller,
    name: str,
    email: str,
    password: str,
    role: str = UserRole.normal_user.value,
    address: Optional[str] = None,
) -> Profile:
    """Admin-only account creation with an explicit role."""
    authorize(caller, PolicyAction.insert, Profile(name=name, email=email, address=address))
    if not validate_name(name):
        raise ValidationError("name", "Name must be between 20 and 60 characters")
    if not validate_address(address):
        raise ValidationError("address", "Address must be at most 400 characters")
    if not validate_role(role):
        raise ValidationError("role", "Role must be one of admin, normal_user, store_owner")

    metadata = {"name": name, "role": role}
    if address is not None:
        metadata["address"] = address
    return register_account(db, email, password, metadata)


def authenticate(db: Session, email: str, password: str) -> User:
    if not isinstance(email, str) or not isinstance(password, str) or not email or not password:
        raise ValidationError("credentials", "Email and password are required")
    with storage_errors(db):
        user = db.query(User).filter(User.email == str(email).strip().lower()).first()
    if not user or not verify_password(password, user.hashed_password):
        raise AuthenticationError("Invalid credentials")
    return user


def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
    if not isinstance(current_password, str) or not isinstance(new_password, str) or not current_password or not new_password:
        raise ValidationError("password", "Current password and new password are required")
    if not verify_password(current_password, user.hashed_password):
        raise AuthenticationError("Current password is incorrect")
    if not validate_password_strength(new_password):
        raise ValidationError("new_password", "New password is too weak")
    if hash_password(new_password) == user.hashed_password:
        raise ValidationError("new_password", "New password must be different from current password")

    user.hashed_password = hash_password(new_password)
    with storage_errors(db):
        db.commit()


def delete_account(db: Session, caller: Caller, profile_id: uuid.UUID) -> None:
    """Remove an account. The database cascades to its profile, stores and ratings."""
    with storage_errors(db):
        profile = visible(db, caller, Profile).filter(Profile.id == profile_id).first()
        user = db.get(User, profile.user_id) if profile else None
    if not user:
        if caller.is_admin:
            raise NotFound("User not found")
        raise PermissionDenied("You do not have permission to delete this user")

    authorize(caller, PolicyAction.delete, user)
    if user.id == caller.account_id:
        raise ValidationError("id", "Administrators cannot delete their own account")

    user_id = user.id
    with storage_errors(db):
        db.delete(user)
        db.commit()
    db.expire_all()
    logger.info("Deleted account %s (profile %s)", user_id, profile_id)
