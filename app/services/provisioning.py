# app/services/provisioning.py
"""Profile provisioning for newly registered accounts.

``handle_new_user`` fires inside the flush that inserts a ``users`` row,
so the profile is written in the same transaction as the account. It
bypasses the access policies (a brand new account has no profile to
satisfy them) and only ever inserts one ``profiles`` row keyed by the
triggering account's id.
"""
import logging
import uuid

from sqlalchemy import event, insert, select
from sqlalchemy.engine import Connection

from app.core.config import DEFAULT_PROFILE_NAME
from app.models.profile import Profile
from app.models.user import User
from app.utils.validation_functions import parse_role

logger = logging.getLogger(__name__)

profiles = Profile.__table__


def provision_profile(connection: Connection, account_id: uuid.UUID, email: str, metadata: dict = None) -> uuid.UUID:
    """Create the profile for ``account_id`` unless it already has one.

    Safe against duplicate delivery of the same new-account event: the
    second call returns the existing profile id.
    """
    existing = connection.execute(
        select(profiles.c.id).where(profiles.c.user_id == account_id)
    ).scalar()
    if existing is not None:
        logger.info("Profile already provisioned for account %s", account_id)
        return existing

    metadata = metadata or {}
    name = metadata.get("name")
    if name is None:
        name = DEFAULT_PROFILE_NAME

    profile_id = uuid.uuid4()
    connection.execute(
        insert(profiles).values(
            id=profile_id,
            user_id=account_id,
            name=str(name),
            email=email,
            address=metadata.get("address"),
            role=parse_role(metadata.get("role")),
        )
    )
    logger.info("Provisioned profile %s for account %s", profile_id, account_id)
    return profile_id


@event.listens_for(User, "after_insert")
def handle_new_user(mapper, connection, target):
    provision_profile(connection, target.id, target.email, target.raw_user_meta_data)
