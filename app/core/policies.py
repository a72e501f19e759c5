# app/core/policies.py
"""Row-level access policies.

Every read and write in ``app.services`` goes through this module. Each
(model, action) pair carries a list of permissive policies; a row is
admitted when any of them admits it. Pairs without policies admit nothing.

Reads are narrowed with :func:`visible`, which adds the policies' SQL
clauses to the query, so rejected rows are simply absent. Writes are
checked with :func:`authorize`, which raises :class:`PermissionDenied`.

The caller's own role comes from :func:`resolve_caller`, a single direct
lookup of the caller's profile row. It never consults the policies, so
the admin checks below do not recurse through the Profile policies.
"""
import logging
import uuid
from dataclasses import dataclass
from types import SimpleNamespace
from typing import Callable, Dict, List, Optional, Tuple

from sqlalchemy import false, or_, select, true
from sqlalchemy.orm import Session

from app.core.errors import PermissionDenied, storage_errors
from app.models.enums import PolicyAction, UserRole
from app.models.profile import Profile
from app.models.rating import Rating
from app.models.store import Store
from app.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Caller:
    account_id: Optional[uuid.UUID] = None
    profile_id: Optional[uuid.UUID] = None
    role: Optional[UserRole] = None

    @property
    def is_authenticated(self) -> bool:
        return self.account_id is not None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin


ANONYMOUS = Caller()


def resolve_caller(db: Session, account_id: Optional[uuid.UUID]) -> Caller:
    if account_id is None:
        return ANONYMOUS
    with storage_errors(db):
        row = db.execute(
            select(Profile.id, Profile.role).where(Profile.user_id == account_id)
        ).first()
    if row is None:
        return Caller(account_id=account_id)
    return Caller(account_id=account_id, profile_id=row.id, role=row.role)


@dataclass(frozen=True)
class Policy:
    name: str
    check: Callable[[Caller, object], bool]
    # SQL form of ``check`` for filtering reads; None for insert-only policies
    clause: Optional[Callable[[Caller], object]] = None


def _is_admin(caller: Caller, row=None) -> bool:
    return caller.is_admin


def _admin_clause(caller: Caller):
    return true() if caller.is_admin else false()


def _owns_profile(caller: Caller, row) -> bool:
    return caller.account_id is not None and row.user_id == caller.account_id


def _owns_profile_clause(caller: Caller):
    if caller.account_id is None:
        return false()
    return Profile.user_id == caller.account_id


def _owns_store(caller: Caller, row) -> bool:
    return caller.profile_id is not None and row.owner_id == caller.profile_id


def _authored_rating(caller: Caller, row) -> bool:
    return caller.profile_id is not None and row.user_id == caller.profile_id


def _authored_rating_clause(caller: Caller):
    if caller.profile_id is None:
        return false()
    return Rating.user_id == caller.profile_id


def _public(caller: Caller, row=None) -> bool:
    return True


class SystemStats:
    """Policy target for the administrator dashboard totals."""

    __tablename__ = "system_stats"
    policy_label = "system statistics"


POLICIES: Dict[Tuple[type, PolicyAction], List[Policy]] = {
    (Profile, PolicyAction.select): [
        Policy("Users can view their own profile", _owns_profile, _owns_profile_clause),
        Policy("Admins can view all profiles", _is_admin, _admin_clause),
    ],
    (Profile, PolicyAction.insert): [
        Policy("Admins can insert profiles", _is_admin),
    ],
    (Profile, PolicyAction.update): [
        Policy("Users can update their own profile", _owns_profile, _owns_profile_clause),
        Policy("Admins can update all profiles", _is_admin, _admin_clause),
    ],
    (Store, PolicyAction.select): [
        Policy("Everyone can view stores", _public, lambda caller: true()),
    ],
    (Store, PolicyAction.insert): [
        Policy("Admins can insert stores", _is_admin),
    ],
    (Store, PolicyAction.update): [
        Policy("Store owners can update their own stores", _owns_store),
        Policy("Admins can update all stores", _is_admin, _admin_clause),
    ],
    (Rating, PolicyAction.select): [
        Policy("Users can view all ratings", _public, lambda caller: true()),
    ],
    (Rating, PolicyAction.insert): [
        Policy("Users can insert their own ratings", _authored_rating),
    ],
    (Rating, PolicyAction.update): [
        Policy("Users can update their own ratings", _authored_rating, _authored_rating_clause),
    ],
    (Rating, PolicyAction.delete): [
        Policy("Users can delete their own ratings", _authored_rating, _authored_rating_clause),
    ],
    # account removal cascades to the profile, its stores and ratings
    (User, PolicyAction.delete): [
        Policy("Admins can delete accounts", _is_admin),
    ],
    (SystemStats, PolicyAction.select): [
        Policy("Admins can view system statistics", _is_admin),
    ],
}


def is_allowed(caller: Caller, action: PolicyAction, row, model: Optional[type] = None) -> bool:
    policies = POLICIES.get((model or type(row), action), [])
    return any(policy.check(caller, row) for policy in policies)


def _deny(caller: Caller, action: PolicyAction, model: type):
    table = model.__tablename__
    label = getattr(model, "policy_label", f"this {table[:-1]}")
    logger.warning(
        "Denied %s on %s for account %s (role=%s)",
        action.value, table, caller.account_id,
        caller.role.value if caller.role else None,
    )
    raise PermissionDenied(f"You do not have permission to {action.value} {label}")


def authorize(caller: Caller, action: PolicyAction, row) -> None:
    if not is_allowed(caller, action, row):
        _deny(caller, action, type(row))


def read_clause(caller: Caller, model: type):
    policies = POLICIES.get((model, PolicyAction.select), [])
    clauses = [policy.clause(caller) for policy in policies if policy.clause is not None]
    if not clauses:
        return false()
    return or_(*clauses)


def visible(db: Session, caller: Caller, model: type):
    """ORM query over ``model`` narrowed to the rows ``caller`` may read."""
    return db.query(model).filter(read_clause(caller, model))


def authorize_update(caller: Caller, row, changes: dict) -> None:
    """Check an update against the row before and after ``changes``.

    Mirrors PostgreSQL: the existing row must satisfy USING and the new row
    must satisfy WITH CHECK. ``row`` is only mutated when both pass.
    """
    authorize(caller, PolicyAction.update, row)
    model = type(row)
    proposed = SimpleNamespace(
        **{column.key: getattr(row, column.key) for column in model.__table__.columns}
    )
    for key, value in changes.items():
        setattr(proposed, key, value)
    if not is_allowed(caller, PolicyAction.update, proposed, model=model):
        _deny(caller, PolicyAction.update, model)
    for key, value in changes.items():
        setattr(row, key, value)
