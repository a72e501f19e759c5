# app/services/ratings.py
import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import NotFound, ValidationError, is_duplicate_rating, storage_errors
from app.core.policies import Caller, authorize, authorize_update, visible
from app.models.enums import PolicyAction
from app.models.profile import Profile
from app.models.rating import Rating
from app.models.store import Store
from app.utils.validation_functions import validate_rating_value

logger = logging.getLogger(__name__)


def _check_score(score) -> int:
    if not validate_rating_value(score):
        raise ValidationError("rating", "Rating must be a whole number between 1 and 5")
    return score


def _get_store(db: Session, caller: Caller, store_id: uuid.UUID) -> Store:
    with storage_errors(db):
        store = visible(db, caller, Store).filter(Store.id == store_id).first()
    if not store:
        raise NotFound("Store not found")
    return store


def _get_rating(db: Session, caller: Caller, rating_id: uuid.UUID) -> Rating:
    with storage_errors(db):
        rating = visible(db, caller, Rating).filter(Rating.id == rating_id).first()
    if not rating:
        raise NotFound("Rating not found")
    return rating


def _own_rating_for(db: Session, caller: Caller, store_id: uuid.UUID):
    if caller.profile_id is None:
        return None
    with storage_errors(db):
        return visible(db, caller, Rating).filter(
            Rating.user_id == caller.profile_id,
            Rating.store_id == store_id
        ).first()


def _apply_score(db: Session, caller: Caller, rating: Rating, score: int) -> Rating:
    authorize_update(caller, rating, {"rating": score})
    with storage_errors(db):
        db.commit()
        db.refresh(rating)
    return rating


def list_own_ratings(db: Session, caller: Caller):
    if caller.profile_id is None:
        return []
    with storage_errors(db):
        return (
            visible(db, caller, Rating)
            .filter(Rating.user_id == caller.profile_id)
            .order_by(Rating.created_at.desc())
            .all()
        )


def list_ratings_for_store(db: Session, caller: Caller, store_id: uuid.UUID) -> list:
    """Ratings of one store, newest first, with the rater's display name and email."""
    store = _get_store(db, caller, store_id)
    with storage_errors(db):
        rows = (
            visible(db, caller, Rating)
            .join(Profile, Profile.id == Rating.user_id)
            .filter(Rating.store_id == store.id)
            .with_entities(Rating, Profile.name, Profile.email)
            .order_by(Rating.created_at.desc())
            .all()
        )
    return [
        {"rating": rating, "rater_name": name, "rater_email": email}
        for rating, name, email in rows
    ]


def create_rating(db: Session, caller: Caller, store_id: uuid.UUID, score) -> Rating:
    """Insert a new rating. A second rating for the same store is rejected."""
    score = _check_score(score)
    store = _get_store(db, caller, store_id)

    rating = Rating(user_id=caller.profile_id, store_id=store.id, rating=score)
    authorize(caller, PolicyAction.insert, rating)
    with storage_errors(db):
        db.add(rating)
        db.commit()
        db.refresh(rating)
    logger.info("Rating %s created for store %s", rating.id, store.id)
    return rating


def upsert_rating(db: Session, caller: Caller, store_id: uuid.UUID, score) -> Rating:
    """Rate a store, replacing the caller's previous rating for it.

    The insert runs in a savepoint. If a concurrent request inserted the
    same (rater, store) pair first, the unique constraint rejects ours and
    the existing row is updated instead; the insert is never retried.
    """
    score = _check_score(score)
    store = _get_store(db, caller, store_id)

    existing = _own_rating_for(db, caller, store.id)
    if existing is not None:
        rating = _apply_score(db, caller, existing, score)
        logger.info("Rating %s updated to %s", rating.id, score)
        return rating

    rating = Rating(user_id=caller.profile_id, store_id=store.id, rating=score)
    authorize(caller, PolicyAction.insert, rating)
    with storage_errors(db):
        try:
            with db.begin_nested():
                db.add(rating)
        except IntegrityError as exc:
            # anything but the (rater, store) pair is translated by storage_errors
            if not is_duplicate_rating(exc):
                raise
            duplicate = True
        else:
            duplicate = False

    if duplicate:
        logger.info("Concurrent rating for store %s by %s, updating instead", store.id, caller.profile_id)
        existing = _own_rating_for(db, caller, store.id)
        if existing is None:
            db.rollback()
            raise ValidationError("store_id", "You have already rated this store")
        return _apply_score(db, caller, existing, score)

    with storage_errors(db):
        db.commit()
        db.refresh(rating)
    logger.info("Rating %s created for store %s", rating.id, store.id)
    return rating


def update_rating(db: Session, caller: Caller, rating_id: uuid.UUID, score) -> Rating:
    score = _check_score(score)
    rating = _get_rating(db, caller, rating_id)
    return _apply_score(db, caller, rating, score)


def delete_rating(db: Session, caller: Caller, rating_id: uuid.UUID) -> None:
    rating = _get_rating(db, caller, rating_id)
    authorize(caller, PolicyAction.delete, rating)
    with storage_errors(db):
        db.delete(rating)
        db.commit()
    logger.info("Rating %s deleted by account %s", rating_id, caller.account_id)
