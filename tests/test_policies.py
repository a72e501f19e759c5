import uuid

import pytest

from app.core.errors import NotFound, PermissionDenied, ValidationError
from app.core.policies import ANONYMOUS, Caller, SystemStats, authorize, is_allowed, resolve_caller, visible
from app.models.enums import PolicyAction, UserRole
from app.models.profile import Profile
from app.models.rating import Rating
from app.models.store import Store
from app.models.user import User
from app.services import accounts, profiles, ratings, stores
from tests.factories import PASSWORD, make_store


def test_resolve_caller_reads_role_directly(db, admin, user):
    assert resolve_caller(db, admin.account_id).role == UserRole.admin
    assert resolve_caller(db, user.account_id).role == UserRole.normal_user
    assert resolve_caller(db, None) is ANONYMOUS


def test_resolve_caller_without_profile_has_no_role(db):
    caller = resolve_caller(db, uuid.uuid4())
    assert caller.is_authenticated
    assert caller.profile_id is None
    assert not caller.is_admin


def test_users_only_see_their_own_profile(db, admin, owner, user):
    seen = [profile.id for profile in visible(db, user, Profile).all()]
    assert seen == [user.profile_id]


def test_admins_see_every_profile(db, admin, owner, user):
    assert visible(db, admin, Profile).count() == 3


def test_anonymous_sees_no_profiles(db, admin):
    assert visible(db, ANONYMOUS, Profile).count() == 0


def test_profile_of_someone_else_is_not_found(db, owner, user):
    with pytest.raises(NotFound):
        profiles.get_profile(db, user, owner.profile_id)


def test_user_updates_own_name(db, user):
    profile = profiles.update_profile(db, user, user.profile_id, {"name": "Renamed Normal User Person"})
    assert profile.name == "Renamed Normal User Person"


def test_user_cannot_update_another_profile(db, owner, user):
    with pytest.raises(PermissionDenied):
        profiles.update_profile(db, user, owner.profile_id, {"name": "Hijacked Profile Name Here"})
    db.rollback()
    assert db.get(Profile, owner.profile_id).name != "Hijacked Profile Name Here"


def test_user_cannot_promote_themselves(db, user):
    with pytest.raises(PermissionDenied):
        profiles.update_profile(db, user, user.profile_id, {"role": "admin"})
    assert resolve_caller(db, user.account_id).role == UserRole.normal_user


def test_admin_updates_any_profile(db, admin, user):
    profile = profiles.update_profile(
        db, admin, user.profile_id,
        {"role": "store_owner", "address": "99 New Address Lane"},
    )
    assert profile.role == UserRole.store_owner
    assert profile.address == "99 New Address Lane"


def test_admin_gets_not_found_for_missing_profile(db, admin):
    with pytest.raises(NotFound):
        profiles.update_profile(db, admin, uuid.uuid4(), {"name": "Nobody Lives Here Anymore"})


def test_profile_update_validates_values(db, admin, user):
    with pytest.raises(ValidationError):
        profiles.update_profile(db, admin, user.profile_id, {"name": "short"})
    with pytest.raises(ValidationError):
        profiles.update_profile(db, admin, user.profile_id, {"role": "root"})


def test_list_profiles_filters_and_sorts(db, admin, owner, other_owner, user):
    owners = profiles.list_profiles(db, admin, role="store_owner", sort_by="email", sort_order="desc")
    assert [profile.email for profile in owners] == ["owner@example.com", "otherowner@example.com"]

    matches = profiles.list_profiles(db, admin, email="user@")
    assert [profile.id for profile in matches] == [user.profile_id]


def test_list_profiles_for_non_admin_is_own_row(db, admin, user):
    assert [profile.id for profile in profiles.list_profiles(db, user)] == [user.profile_id]


def test_stats_are_admin_only(db, admin, owner, user):
    store = make_store(db, admin, owner)
    ratings.upsert_rating(db, user, store.id, 4)

    assert profiles.get_stats(db, admin) == {"total_users": 3, "total_stores": 1, "total_ratings": 1}
    with pytest.raises(PermissionDenied):
        profiles.get_stats(db, user)


def test_anonymous_can_read_stores(db, admin, owner):
    make_store(db, admin, owner)
    assert visible(db, ANONYMOUS, Store).count() == 1


def test_only_admins_create_stores(db, owner, user):
    with pytest.raises(PermissionDenied):
        stores.create_store(
            db, owner,
            name="Owner Made This Store Up",
            email="fake@stores.example.com",
            address="1 Nowhere",
            owner_id=owner.profile_id,
        )
    assert db.query(Store).count() == 0


def test_owner_updates_own_store(db, admin, owner):
    store = make_store(db, admin, owner)
    updated = stores.update_store(db, owner, store.id, {"address": "14 Market Street"})
    assert updated.address == "14 Market Street"


def test_owner_cannot_update_another_store(db, admin, owner, other_owner):
    store = make_store(db, admin, owner)
    with pytest.raises(PermissionDenied):
        stores.update_store(db, other_owner, store.id, {"address": "Somewhere Else"})


def test_owner_cannot_hand_store_to_someone_else(db, admin, owner, other_owner):
    store = make_store(db, admin, owner)
    with pytest.raises(PermissionDenied):
        stores.update_store(db, owner, store.id, {"owner_id": str(other_owner.profile_id)})
    db.rollback()
    assert db.get(Store, store.id).owner_id == owner.profile_id


def test_admin_reassigns_store(db, admin, owner, other_owner):
    store = make_store(db, admin, owner)
    updated = stores.update_store(db, admin, store.id, {"owner_id": str(other_owner.profile_id)})
    assert updated.owner_id == other_owner.profile_id


def test_rating_on_behalf_of_someone_else_is_denied(owner, user):
    forged = Rating(user_id=owner.profile_id, store_id=uuid.uuid4(), rating=3)
    with pytest.raises(PermissionDenied):
        authorize(user, PolicyAction.insert, forged)
    assert is_allowed(owner, PolicyAction.insert, forged)


def test_anonymous_cannot_rate():
    forged = Rating(user_id=None, store_id=uuid.uuid4(), rating=3)
    assert not is_allowed(ANONYMOUS, PolicyAction.insert, forged)


def test_profiles_and_stores_have_no_delete_policy(owner, admin):
    assert not is_allowed(admin, PolicyAction.delete, Store(owner_id=owner.profile_id))
    assert not is_allowed(admin, PolicyAction.delete, Profile(user_id=admin.account_id))


def test_only_admins_create_accounts(db, admin, user):
    with pytest.raises(PermissionDenied):
        accounts.create_user_account(db, user, "Someone Created By User", "new@example.com", PASSWORD)

    profile = accounts.create_user_account(
        db, admin, "Someone Created By Admin", "new@example.com", PASSWORD, role="store_owner",
    )
    assert profile.role == UserRole.store_owner


def test_delete_account_rules(db, admin, user):
    with pytest.raises(PermissionDenied):
        accounts.delete_account(db, user, admin.profile_id)
    with pytest.raises(ValidationError):
        accounts.delete_account(db, admin, admin.profile_id)
    with pytest.raises(NotFound):
        accounts.delete_account(db, admin, uuid.uuid4())

    accounts.delete_account(db, admin, user.profile_id)
    assert db.query(Profile).filter(Profile.id == user.profile_id).count() == 0


def test_caller_properties():
    caller = Caller(account_id=uuid.uuid4(), profile_id=uuid.uuid4(), role=UserRole.admin)
    assert caller.is_authenticated and caller.is_admin
    assert not ANONYMOUS.is_authenticated


def test_admin_only_writes_are_policy_entries(admin, owner, user):
    assert is_allowed(admin, PolicyAction.insert, Profile())
    assert not is_allowed(owner, PolicyAction.insert, Profile())
    assert is_allowed(admin, PolicyAction.delete, User(id=user.account_id))
    assert not is_allowed(user, PolicyAction.delete, User(id=user.account_id))
    assert is_allowed(admin, PolicyAction.select, SystemStats())
    assert not is_allowed(owner, PolicyAction.select, SystemStats())


def test_user_cannot_delete_own_account(db, user):
    with pytest.raises(PermissionDenied):
        accounts.delete_account(db, user, user.profile_id)
    assert db.query(User).filter(User.id == user.account_id).count() == 1


def test_store_owner_cannot_create_accounts(db, owner):
    with pytest.raises(PermissionDenied):
        accounts.create_user_account(db, owner, "x", "not-an-email", PASSWORD, role="admin")
    assert db.query(User).filter(User.email == "not-an-email").count() == 0


def test_denied_store_update_wins_over_bad_input(db, admin, owner, other_owner):
    store = make_store(db, admin, owner)
    with pytest.raises(PermissionDenied):
        stores.update_store(db, other_owner, store.id, {"name": "short", "address": ""})


def test_denied_store_create_wins_over_bad_input(db, owner):
    with pytest.raises(PermissionDenied):
        stores.create_store(db, owner, name="short", email="bad", address="", owner_id=owner.profile_id)
