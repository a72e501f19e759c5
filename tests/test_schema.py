import uuid
from datetime import datetime

import pytest
from sqlalchemy import delete, inspect, text, update
from sqlalchemy.exc import IntegrityError

from app.models.enums import UserRole
from app.models.profile import Profile
from app.models.rating import Rating
from app.models.store import Store
from app.models.user import User
from app.services import profiles, ratings, stores
from tests.factories import make_account, make_store


def _profile_row(db, **overrides):
    user = User(email=f"{uuid.uuid4().hex[:8]}@example.com", hashed_password="x", raw_user_meta_data={})
    db.add(user)
    db.flush()
    # the provisioning hook already created a profile; replace its fields directly
    profile = db.query(Profile).filter(Profile.user_id == user.id).one()
    for key, value in overrides.items():
        setattr(profile, key, value)
    return profile


@pytest.mark.parametrize("name", ["x" * 19, "x" * 61])
def test_profile_name_length_is_checked_by_storage(db, name):
    _profile_row(db, name=name)
    with pytest.raises(IntegrityError):
        db.flush()
    db.rollback()


@pytest.mark.parametrize("name", ["x" * 20, "x" * 60])
def test_profile_name_length_bounds_are_inclusive(db, name):
    profile = _profile_row(db, name=name)
    db.flush()
    assert profile.name == name


def test_profile_address_may_be_empty_but_not_too_long(db):
    profile = _profile_row(db, address="")
    db.flush()
    assert profile.address == ""

    profile.address = "a" * 401
    with pytest.raises(IntegrityError):
        db.flush()
    db.rollback()


def test_store_address_must_be_non_empty(db, admin, owner):
    db.add(Store(owner_id=owner.profile_id, name="Corner Grocery Store Number 1", email="s@example.com", address=""))
    with pytest.raises(IntegrityError):
        db.flush()
    db.rollback()


def test_store_owner_must_exist(db):
    db.add(Store(owner_id=uuid.uuid4(), name="Corner Grocery Store Number 1", email="s@example.com", address="1 Road"))
    with pytest.raises(IntegrityError):
        db.flush()
    db.rollback()


@pytest.mark.parametrize("score", [0, 6, -1])
def test_rating_range_is_checked_by_storage(db, admin, owner, user, score):
    store = make_store(db, admin, owner)
    db.add(Rating(user_id=user.profile_id, store_id=store.id, rating=score))
    with pytest.raises(IntegrityError):
        db.flush()
    db.rollback()


def test_rating_pair_is_unique_in_storage(db, admin, owner, user):
    store = make_store(db, admin, owner)
    db.add(Rating(user_id=user.profile_id, store_id=store.id, rating=3))
    db.flush()
    db.add(Rating(user_id=user.profile_id, store_id=store.id, rating=4))
    with pytest.raises(IntegrityError):
        db.flush()
    db.rollback()


def test_deleting_profile_cascades_to_stores_and_ratings(db, admin, owner, user):
    store_id = make_store(db, admin, owner).id
    other_store_id = make_store(db, admin, admin, name="Another Fine Store For Testing").id
    db.add_all([
        Rating(user_id=owner.profile_id, store_id=other_store_id, rating=2),
        Rating(user_id=user.profile_id, store_id=store_id, rating=5),
    ])
    db.commit()

    db.execute(delete(Profile).where(Profile.id == owner.profile_id))
    db.commit()

    assert db.query(Store).filter(Store.owner_id == owner.profile_id).count() == 0
    assert db.query(Rating).filter(Rating.store_id == store_id).count() == 0
    assert db.query(Rating).filter(Rating.user_id == owner.profile_id).count() == 0
    assert db.query(Store).filter(Store.id == other_store_id).count() == 1


def test_deleting_account_cascades_to_profile(db, user):
    db.query(User).filter(User.id == user.account_id).delete(synchronize_session=False)
    db.commit()
    assert db.query(Profile).filter(Profile.id == user.profile_id).count() == 0


def test_indexes_cover_foreign_keys_and_role(db):
    inspector = inspect(db.get_bind())
    profile_indexes = {index["name"] for index in inspector.get_indexes("profiles")}
    store_indexes = {index["name"] for index in inspector.get_indexes("stores")}
    rating_indexes = {index["name"] for index in inspector.get_indexes("ratings")}

    assert {"idx_profiles_user_id", "idx_profiles_role"} <= profile_indexes
    assert "idx_stores_owner_id" in store_indexes
    assert {"idx_ratings_user_id", "idx_ratings_store_id", "idx_ratings_user_store"} <= rating_indexes


def test_store_ratings_view_is_installed(db, admin, owner, user):
    store = make_store(db, admin, owner)
    make_store(db, admin, owner, name="Quiet Store Without Any Ratings")
    db.add(Rating(user_id=user.profile_id, store_id=store.id, rating=4))
    db.add(Rating(user_id=admin.profile_id, store_id=store.id, rating=1))
    db.commit()

    rows = db.execute(
        text("SELECT name, average_rating, total_ratings FROM store_ratings ORDER BY name")
    ).all()
    assert [(row.name, float(row.average_rating), row.total_ratings) for row in rows] == [
        ("Corner Grocery Store Number 1", 2.5, 2),
        ("Quiet Store Without Any Ratings", 0.0, 0),
    ]


def test_role_defaults_to_normal_user(db):
    caller = make_account(db, "plain@example.com", role="not-a-role")
    assert caller.role == UserRole.normal_user


def _backdate(db, model, row_id, when=datetime(2000, 1, 1)):
    db.execute(update(model).where(model.id == row_id).values(updated_at=when))
    db.commit()
    return when


def test_updates_refresh_updated_at(db, admin, owner, user):
    store = make_store(db, admin, owner)
    rating = ratings.upsert_rating(db, user, store.id, 2)

    cutoff = _backdate(db, Profile, user.profile_id)
    _backdate(db, Store, store.id)
    _backdate(db, Rating, rating.id)

    profile = profiles.update_profile(db, user, user.profile_id, {"address": "21 Elm Street"})
    store = stores.update_store(db, owner, store.id, {"address": "13 Market Street"})
    rating = ratings.upsert_rating(db, user, store.id, 5)

    for row in (profile, store, rating):
        assert row.updated_at > cutoff
