import uuid
from fastapi import APIRouter, Query, Request, Depends
from sqlalchemy.orm import Session
from app.db.get_db import get_db
from app.core.policies import Caller
from app.models.enums import UserRole
from app.services import accounts, profiles
from app.utils.auth import get_current_caller
from app.utils.helpers import profile_to_dict, read_body, success_response

router = APIRouter()


# Administrator dashboard totals
@router.get("/stats")
def get_stats(db: Session = Depends(get_db), caller: Caller = Depends(get_current_caller)):
    return success_response(data=profiles.get_stats(db, caller), message="Statistics retrieved successfully")


# List users visible to the caller (admins see everyone)
@router.get("/")
def list_users(
    name: str = Query(None),
    email: str = Query(None),
    address: str = Query(None),
    role: str = Query(None),
    sort_by: str = Query("name"),
    sort_order: str = Query("asc"),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    users = profiles.list_profiles(
        db, caller,
        name=name, email=email, address=address, role=role,
        sort_by=sort_by, sort_order=sort_order,
    )
    return success_response(
        data=[profile_to_dict(profile) for profile in users],
        message="Users retrieved successfully"
    )


@router.post("/", status_code=201)
async def create_user(
    request: Request,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    body = await read_body(request)
    profile = accounts.create_user_account(
        db, caller,
        name=body.get("name"),
        email=body.get("email"),
        password=body.get("password"),
        role=body.get("role", UserRole.normal_user.value),
        address=body.get("address"),
    )
    return success_response(data=profile_to_dict(profile), message="User created successfully")


@router.get("/{profile_id}")
def get_user(profile_id: uuid.UUID, db: Session = Depends(get_db), caller: Caller = Depends(get_current_caller)):
    profile = profiles.get_profile(db, caller, profile_id)
    return success_response(data=profile_to_dict(profile))


@router.put("/{profile_id}")
async def update_user(
    profile_id: uuid.UUID,
    request: Request,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    body = await read_body(request)
    profile = profiles.update_profile(db, caller, profile_id, body)
    return success_response(data=profile_to_dict(profile), message="User updated successfully")


@router.delete("/{profile_id}")
def delete_user(profile_id: uuid.UUID, db: Session = Depends(get_db), caller: Caller = Depends(get_current_caller)):
    accounts.delete_account(db, caller, profile_id)
    return success_response(message="User deleted successfully")
