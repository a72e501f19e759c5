# app/db/init_db.py
import logging

from app.db.base import Base
from app.db.get_db import engine

# Imported for their side effects: table registration, the store_ratings
# view DDL and the profile provisioning hook.
from app.models import user, profile, store, rating, store_rating  # noqa: F401
from app.services import provisioning  # noqa: F401

logger = logging.getLogger(__name__)


def init_db(bind=None):
    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    logger.info("Database schema ready")


def drop_db(bind=None):
    Base.metadata.drop_all(bind=bind or engine)
