# app/core/errors.py
import logging
from contextlib import contextmanager

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm import Session

from app.utils.error_codes import ERROR_CODES

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = 500
    code = ERROR_CODES["SERVER_ERROR"]

    def __init__(self, message: str, details=None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(AppError):
    status_code = 400
    code = ERROR_CODES["VALIDATION_ERROR"]

    def __init__(self, field: str, message: str):
        super().__init__(message, details={"field": field})
        self.field = field


class AuthenticationError(AppError):
    status_code = 401
    code = ERROR_CODES["UNAUTHORIZED"]


class PermissionDenied(AppError):
    status_code = 403
    code = ERROR_CODES["FORBIDDEN"]


class NotFound(AppError):
    status_code = 404
    code = ERROR_CODES["NOT_FOUND"]


class TransientStorageError(AppError):
    status_code = 503
    code = ERROR_CODES["SERVICE_UNAVAILABLE"]

    def __init__(self, message: str = "Storage is temporarily unavailable, please try again"):
        super().__init__(message)


# constraint name -> (field, message)
CONSTRAINT_MESSAGES = {
    "ck_profiles_name_length": ("name", "Name must be between 20 and 60 characters"),
    "ck_profiles_address_length": ("address", "Address must be at most 400 characters"),
    "ck_stores_name_length": ("name", "Name must be between 20 and 60 characters"),
    "ck_stores_address_length": ("address", "Address must be between 1 and 400 characters"),
    "ck_ratings_rating_range": ("rating", "Rating must be between 1 and 5"),
    "uq_ratings_user_store": ("store_id", "You have already rated this store"),
    # SQLite reports unique violations by column list instead of name
    "ratings.user_id, ratings.store_id": ("store_id", "You have already rated this store"),
    "users.email": ("email", "Email already registered"),
    "users_email_key": ("email", "Email already registered"),
    "profiles.user_id": ("user_id", "A profile already exists for this account"),
    "profiles_user_id_key": ("user_id", "A profile already exists for this account"),
}


def is_duplicate_rating(exc: IntegrityError) -> bool:
    text = str(exc.orig)
    return "uq_ratings_user_store" in text or "ratings.user_id, ratings.store_id" in text


def integrity_to_validation(exc: IntegrityError) -> ValidationError:
    text = str(exc.orig)
    for marker, (field, message) in CONSTRAINT_MESSAGES.items():
        if marker in text:
            return ValidationError(field, message)
    if "FOREIGN KEY" in text or "foreign key" in text:
        return ValidationError("reference", "Referenced record does not exist")
    return ValidationError("unknown", "Constraint violated")


@contextmanager
def storage_errors(db: Session):
    """Translate storage failures raised inside the block into AppErrors.

    The session is rolled back before the translated error propagates.
    """
    try:
        yield
    except IntegrityError as exc:
        db.rollback()
        error = integrity_to_validation(exc)
        logger.info("Write rejected by constraint on %s: %s", error.field, error.message)
        raise error from exc
    except OperationalError as exc:
        db.rollback()
        logger.error("Storage unavailable: %s", exc.orig)
        raise TransientStorageError() from exc
    except DBAPIError as exc:
        db.rollback()
        if exc.connection_invalidated:
            logger.error("Storage connection lost: %s", exc.orig)
            raise TransientStorageError() from exc
        raise
