# app/utils/validation_functions.py
import re
from app.core.config import (
    ADDRESS_MAX_LENGTH,
    NAME_MAX_LENGTH,
    NAME_MIN_LENGTH,
    PASSWORD_MAX_LENGTH,
    PASSWORD_MIN_LENGTH,
    RATING_MAX,
    RATING_MIN,
)
from app.models.enums import UserRole

SPECIAL_CHARACTERS = r'[!@#$%^&*(),.?":{}|<>]'


def validate_email(email) -> bool:
    if not isinstance(email, str):
        return False
    pattern = r'^[\w\.\+-]+@[\w\.-]+\.\w+$'
    return re.match(pattern, email) is not None


def validate_name(name) -> bool:
    """Profile and store names: 20 to 60 characters."""
    return isinstance(name, str) and NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH


def validate_address(address, required: bool = False) -> bool:
    """
    Profile addresses are optional and may be empty.
    Store addresses are required and must be non-empty.
    Both are capped at 400 characters.
    """
    if address is None:
        return not required
    if not isinstance(address, str):
        return False
    if required and len(address) < 1:
        return False
    return len(address) <= ADDRESS_MAX_LENGTH


def validate_rating_value(value) -> bool:
    # bool is an int subclass; True must not count as a rating of 1
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return RATING_MIN <= value <= RATING_MAX


def validate_password_strength(password) -> bool:
    """
    Password rules:
    - 8 to 16 characters
    - At least one uppercase letter
    - At least one special character
    """
    if not isinstance(password, str):
        return False
    if not PASSWORD_MIN_LENGTH <= len(password) <= PASSWORD_MAX_LENGTH:
        return False
    if not re.search(r'[A-Z]', password):
        return False
    if not re.search(SPECIAL_CHARACTERS, password):
        return False
    return True


def validate_role(role) -> bool:
    """
    Checks if the provided role exists in the UserRole enum.
    Returns True if valid, False otherwise.
    """
    return isinstance(role, str) and role in UserRole._value2member_map_


def parse_role(role, default: UserRole = UserRole.normal_user) -> UserRole:
    if isinstance(role, UserRole):
        return role
    if validate_role(role):
        return UserRole(role)
    return default
