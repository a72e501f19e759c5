import uuid
from fastapi import APIRouter, Request, Depends
from sqlalchemy.orm import Session
from app.db.get_db import get_db
from app.core.policies import Caller
from app.services import ratings
from app.utils.auth import get_current_caller
from app.utils.helpers import rating_to_dict, read_body, success_response

router = APIRouter()


@router.get("/mine")
def list_my_ratings(db: Session = Depends(get_db), caller: Caller = Depends(get_current_caller)):
    rows = ratings.list_own_ratings(db, caller)
    return success_response(data=[rating_to_dict(rating) for rating in rows], message="Ratings retrieved successfully")


# Submit or change the caller's rating of a store
@router.put("/stores/{store_id}")
async def rate_store(
    store_id: uuid.UUID,
    request: Request,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    body = await read_body(request)
    rating = ratings.upsert_rating(db, caller, store_id, body.get("rating"))
    return success_response(data=rating_to_dict(rating), message="Rating submitted successfully")


@router.delete("/{rating_id}")
def delete_rating(rating_id: uuid.UUID, db: Session = Depends(get_db), caller: Caller = Depends(get_current_caller)):
    ratings.delete_rating(db, caller, rating_id)
    return success_response(message="Rating deleted successfully")
