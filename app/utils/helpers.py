# app/utils/helpers.py
import hashlib
from app.core.errors import ValidationError


def success_response(data=None, message="Operation successful"):
    return {"success": True, "data": data, "message": message}


def error_response(code, message, details=None):
    return {"success": False, "error": {"code": code, "message": message, "details": details}}


async def read_body(request) -> dict:
    try:
        body = await request.json()
    except ValueError:
        raise ValidationError("body", "Request body must be valid JSON")
    if not isinstance(body, dict):
        raise ValidationError("body", "Request body must be a JSON object")
    return body


def hash_password(password: str) -> str:
    return hashlib.sha256(password.encode()).hexdigest()


def mask_email(email: str) -> str:
    try:
        local, domain = email.split("@")
        if len(local) <= 2:
            local_masked = local[0] + "***"
        else:
            local_masked = local[0] + "***" + local[-1]
        return f"{local_masked}@{domain}"
    except (ValueError, IndexError):
        return "***"


def _iso(value):
    return value.isoformat() if value else None


def profile_to_dict(profile) -> dict:
    return {
        "id": str(profile.id),
        "user_id": str(profile.user_id),
        "name": profile.name,
        "email": profile.email,
        "address": profile.address,
        "role": profile.role.value,
        "created_at": _iso(profile.created_at),
        "updated_at": _iso(profile.updated_at),
    }


def store_to_dict(store) -> dict:
    return {
        "id": str(store.id),
        "owner_id": str(store.owner_id),
        "name": store.name,
        "email": store.email,
        "address": store.address,
        "created_at": _iso(store.created_at),
        "updated_at": _iso(store.updated_at),
    }


def store_summary_to_dict(summary) -> dict:
    data = store_to_dict(summary)
    data["average_rating"] = round(float(summary.average_rating), 2)
    data["total_ratings"] = int(summary.total_ratings)
    return data


def rating_to_dict(rating) -> dict:
    return {
        "id": str(rating.id),
        "user_id": str(rating.user_id),
        "store_id": str(rating.store_id),
        "rating": rating.rating,
        "created_at": _iso(rating.created_at),
        "updated_at": _iso(rating.updated_at),
    }
