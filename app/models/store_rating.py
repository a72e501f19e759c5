# app/models/store_rating.py
"""Per-store rating summary.

``store_ratings`` is a read-only projection of stores left-joined to their
ratings. It is never written and never cached: every query recomputes the
average and the count from the ``ratings`` rows. The same select is
installed as the ``store_ratings`` database view when the schema is
created so SQL clients see identical numbers.
"""
from sqlalchemy import Float, event, func, select, text
from app.db.base import Base
from app.models.rating import Rating
from app.models.store import Store

STORE_RATINGS_VIEW = "store_ratings"

store_ratings = (
    select(
        Store.id,
        Store.owner_id,
        Store.name,
        Store.email,
        Store.address,
        Store.created_at,
        Store.updated_at,
        func.coalesce(func.avg(Rating.rating), 0, type_=Float).label("average_rating"),
        func.count(Rating.id).label("total_ratings"),
    )
    .select_from(Store)
    .outerjoin(Rating, Store.id == Rating.store_id)
    .group_by(
        Store.id,
        Store.owner_id,
        Store.name,
        Store.email,
        Store.address,
        Store.created_at,
        Store.updated_at,
    )
)


def store_ratings_subquery():
    return store_ratings.subquery(STORE_RATINGS_VIEW)


@event.listens_for(Base.metadata, "after_create")
def create_store_ratings_view(target, connection, **kw):
    body = store_ratings.compile(dialect=connection.dialect, compile_kwargs={"literal_binds": True})
    if connection.dialect.name == "postgresql":
        ddl = f"CREATE OR REPLACE VIEW {STORE_RATINGS_VIEW} AS {body}"
    else:
        ddl = f"CREATE VIEW IF NOT EXISTS {STORE_RATINGS_VIEW} AS {body}"
    connection.execute(text(ddl))


@event.listens_for(Base.metadata, "before_drop")
def drop_store_ratings_view(target, connection, **kw):
    connection.execute(text(f"DROP VIEW IF EXISTS {STORE_RATINGS_VIEW}"))
