from fastapi import APIRouter, Request, Depends, Response
from sqlalchemy.orm import Session
from app.db.get_db import get_db
from app.models.user import User
from app.core.config import ACCESS_TOKEN_EXPIRE_MINUTES, COOKIE_DOMAIN, IS_PRODUCTION, MAX_COOKIE_AGE
from app.core.policies import Caller, resolve_caller
from app.services import accounts, profiles
from app.utils.helpers import profile_to_dict, read_body, success_response
from app.utils.auth import create_access_token, get_current_caller, get_current_user

router = APIRouter()


def _issue_token(response: Response, user_id) -> str:
    access_token = create_access_token({"user_id": str(user_id)})
    response.set_cookie(
        key="access_token",
        value=access_token,
        httponly=True,
        max_age=MAX_COOKIE_AGE,
        samesite="lax",
        secure=IS_PRODUCTION,
        domain=COOKIE_DOMAIN
    )
    return access_token


@router.post("/register")
async def register(request: Request, response: Response, db: Session = Depends(get_db)):
    body = await read_body(request)

    profile = accounts.sign_up(
        db,
        email=body.get("email"),
        password=body.get("password"),
        name=body.get("name"),
        address=body.get("address"),
    )
    access_token = _issue_token(response, profile.user_id)

    return success_response(
        data={
            "user": profile_to_dict(profile),
            "access_token": access_token,
            "expires_in": ACCESS_TOKEN_EXPIRE_MINUTES * 60
        },
        message="Registration successful"
    )


@router.post("/login")
async def login(request: Request, response: Response, db: Session = Depends(get_db)):
    body = await read_body(request)

    user = accounts.authenticate(db, body.get("email"), body.get("password"))
    caller = resolve_caller(db, user.id)
    profile = profiles.get_own_profile(db, caller)
    access_token = _issue_token(response, user.id)

    return success_response(
        data={
            "user": profile_to_dict(profile),
            "access_token": access_token,
            "expires_in": ACCESS_TOKEN_EXPIRE_MINUTES * 60
        },
        message="Login successful"
    )


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(
        key="access_token",
        path="/",
        samesite="lax",
        httponly=True
    )
    return success_response(message="Logged out successfully")


@router.get("/me")
def me(caller: Caller = Depends(get_current_caller), db: Session = Depends(get_db)):
    profile = profiles.get_own_profile(db, caller)
    return success_response(data=profile_to_dict(profile))


@router.put("/me")
async def update_me(
    request: Request,
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db)
):
    body = await read_body(request)
    own = profiles.get_own_profile(db, caller)
    profile = profiles.update_profile(db, caller, own.id, body)
    return success_response(data=profile_to_dict(profile), message="Profile updated successfully")


@router.post("/change-password")
async def change_password(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    body = await read_body(request)
    accounts.change_password(db, current_user, body.get("current_password"), body.get("new_password"))
    return success_response(message="Password changed successfully")
