# app/services/stores.py
import logging
import uuid
from typing import Optional

from sqlalchemy import asc, desc, or_, select
from sqlalchemy.orm import Session

from app.core.errors import NotFound, ValidationError, storage_errors
from app.core.policies import Caller, authorize, authorize_update, read_clause, visible
from app.models.enums import PolicyAction
from app.models.profile import Profile
from app.models.store import Store
from app.models.store_rating import store_ratings_subquery
from app.utils.validation_functions import validate_address, validate_email, validate_name

logger = logging.getLogger(__name__)

STORE_SORT_FIELDS = ["name", "email", "address", "average_rating", "total_ratings", "created_at"]


def _summaries(caller: Caller):
    """Select over the store_ratings projection limited to readable stores."""
    summary = store_ratings_subquery()
    readable = select(Store.id).where(read_clause(caller, Store))
    return summary, select(summary).where(summary.c.id.in_(readable))


def list_stores_with_summary(
    db: Session,
    caller: Caller,
    name: Optional[str] = None,
    email: Optional[str] = None,
    address: Optional[str] = None,
    search: Optional[str] = None,
    owner_id: Optional[uuid.UUID] = None,
    sort_by: str = "name",
    sort_order: str = "asc",
):
    summary, query = _summaries(caller)

    if name:
        query = query.where(summary.c.name.ilike(f"%{name}%"))
    if email:
        query = query.where(summary.c.email.ilike(f"%{email}%"))
    if address:
        query = query.where(summary.c.address.ilike(f"%{address}%"))
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(summary.c.name.ilike(pattern), summary.c.address.ilike(pattern)))
    if owner_id:
        query = query.where(summary.c.owner_id == owner_id)

    if sort_by not in STORE_SORT_FIELDS:
        sort_by = "name"
    sort_column = summary.c[sort_by]
    if sort_order.lower() == "desc":
        query = query.order_by(desc(sort_column), asc(summary.c.name))
    else:
        query = query.order_by(asc(sort_column), asc(summary.c.name))

    with storage_errors(db):
        return db.execute(query).all()


def get_store_with_summary(db: Session, caller: Caller, store_id: uuid.UUID):
    summary, query = _summaries(caller)
    with storage_errors(db):
        row = db.execute(query.where(summary.c.id == store_id)).first()
    if row is None:
        raise NotFound("Store not found")
    return row


def get_own_store_with_summary(db: Session, caller: Caller):
    """The store owned by the caller. Owners without a store get NotFound."""
    if caller.profile_id is None:
        raise NotFound("You don't have a store associated with your account")
    summary, query = _summaries(caller)
    with storage_errors(db):
        row = db.execute(
            query.where(summary.c.owner_id == caller.profile_id).order_by(summary.c.created_at)
        ).first()
    if row is None:
        raise NotFound("You don't have a store associated with your account")
    return row


def _resolve_owner(db: Session, caller: Caller, owner_id: Optional[uuid.UUID], owner_email: Optional[str]) -> Profile:
    query = visible(db, caller, Profile)
    if owner_id:
        query = query.filter(Profile.id == owner_id)
    elif owner_email:
        query = query.filter(Profile.email == owner_email.strip().lower())
    else:
        raise ValidationError("owner", "Store owner is required")
    with storage_errors(db):
        owner = query.first()
    if not owner:
        raise NotFound("Store owner not found")
    return owner


def create_store(
    db: Session,
    caller: Caller,
    name: str,
    email: str,
    address: str,
    owner_id: Optional[uuid.UUID] = None,
    owner_email: Optional[str] = None,
) -> Store:
    store = Store(name=name, email=email, address=address)
    authorize(caller, PolicyAction.insert, store)

    if not validate_name(name):
        raise ValidationError("name", "Name must be between 20 and 60 characters")
    if not validate_email(email):
        raise ValidationError("email", "Invalid email address")
    if not validate_address(address, required=True):
        raise ValidationError("address", "Address must be between 1 and 400 characters")
    store.email = email.strip().lower()

    owner = _resolve_owner(db, caller, owner_id, owner_email)
    store.owner_id = owner.id

    with storage_errors(db):
        db.add(store)
        db.commit()
        db.refresh(store)
    logger.info("Store %s created for owner %s", store.id, owner.id)
    return store


def update_store(db: Session, caller: Caller, store_id: uuid.UUID, changes: dict) -> Store:
    with storage_errors(db):
        store = visible(db, caller, Store).filter(Store.id == store_id).first()
    if not store:
        raise NotFound("Store not found")
    # the current row must admit the caller before any input is looked at
    authorize(caller, PolicyAction.update, store)

    cleaned = {}
    if "name" in changes:
        if not validate_name(changes["name"]):
            raise ValidationError("name", "Name must be between 20 and 60 characters")
        cleaned["name"] = changes["name"]
    if "email" in changes:
        if not validate_email(changes["email"]):
            raise ValidationError("email", "Invalid email address")
        cleaned["email"] = changes["email"].strip().lower()
    if "address" in changes:
        if not validate_address(changes["address"], required=True):
            raise ValidationError("address", "Address must be between 1 and 400 characters")
        cleaned["address"] = changes["address"]
    if "owner_id" in changes:
        try:
            cleaned["owner_id"] = uuid.UUID(str(changes["owner_id"]))
        except ValueError:
            raise ValidationError("owner_id", "Invalid owner id")

    if not cleaned:
        return store

    authorize_update(caller, store, cleaned)
    with storage_errors(db):
        db.commit()
        db.refresh(store)
    logger.info("Store %s updated by account %s: %s", store.id, caller.account_id, sorted(cleaned))
    return store
