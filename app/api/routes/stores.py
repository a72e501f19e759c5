# app/api/routes/stores.py

import uuid
from fastapi import APIRouter, Query, Request, Depends
from sqlalchemy.orm import Session
from app.db.get_db import get_db
from app.core.errors import ValidationError
from app.core.policies import Caller
from app.services import ratings, stores
from app.utils.auth import get_current_caller, get_optional_caller
from app.utils.helpers import rating_to_dict, read_body, store_summary_to_dict, success_response

router = APIRouter()


# Public store listing with live average rating and rating count
@router.get("/")
def list_stores(
    name: str = Query(None),
    email: str = Query(None),
    address: str = Query(None),
    search: str = Query(None),
    owner_id: uuid.UUID = Query(None),
    sort_by: str = Query("name"),
    sort_order: str = Query("asc"),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_optional_caller)
):
    rows = stores.list_stores_with_summary(
        db, caller,
        name=name, email=email, address=address, search=search, owner_id=owner_id,
        sort_by=sort_by, sort_order=sort_order,
    )
    return success_response(
        data=[store_summary_to_dict(row) for row in rows],
        message="Stores retrieved successfully"
    )


@router.post("/", status_code=201)
async def create_store(
    request: Request,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    body = await read_body(request)

    owner_id = body.get("owner_id")
    if owner_id is not None:
        try:
            owner_id = uuid.UUID(str(owner_id))
        except ValueError:
            raise ValidationError("owner_id", "Invalid owner id")

    store = stores.create_store(
        db, caller,
        name=body.get("name"),
        email=body.get("email"),
        address=body.get("address"),
        owner_id=owner_id,
        owner_email=body.get("owner_email"),
    )
    summary = stores.get_store_with_summary(db, caller, store.id)
    return success_response(data=store_summary_to_dict(summary), message="Store created successfully")


# Store owner dashboard
@router.get("/mine")
def get_my_store(db: Session = Depends(get_db), caller: Caller = Depends(get_current_caller)):
    summary = stores.get_own_store_with_summary(db, caller)
    return success_response(data=store_summary_to_dict(summary), message="Store retrieved successfully")


@router.get("/{store_id}")
def get_store(store_id: uuid.UUID, db: Session = Depends(get_db), caller: Caller = Depends(get_optional_caller)):
    summary = stores.get_store_with_summary(db, caller, store_id)
    return success_response(data=store_summary_to_dict(summary), message="Store retrieved successfully")


@router.put("/{store_id}")
async def update_store(
    store_id: uuid.UUID,
    request: Request,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    body = await read_body(request)
    stores.update_store(db, caller, store_id, body)
    summary = stores.get_store_with_summary(db, caller, store_id)
    return success_response(data=store_summary_to_dict(summary), message="Store updated successfully")


@router.get("/{store_id}/ratings")
def list_store_ratings(
    store_id: uuid.UUID,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_optional_caller)
):
    rows = ratings.list_ratings_for_store(db, caller, store_id)
    data = []
    for row in rows:
        item = rating_to_dict(row["rating"])
        item["rater"] = {"name": row["rater_name"], "email": row["rater_email"]}
        data.append(item)
    return success_response(data=data, message="Ratings retrieved successfully")
