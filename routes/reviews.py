import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from database import create_document, get_db, get_document, get_documents, to_serializable
from errors import InternalError, InvalidInput, NotFound
from identity import get_current_user
from schemas import Review
from validation import Payload, missing_fields, payload

logger = logging.getLogger(__name__)

router = APIRouter()


class ReviewRequest(Payload):
    vehicle_id: Optional[int] = None
    rating: Optional[float] = None
    title: Optional[str] = None
    comment: Optional[str] = None


def valid_rating(rating: float) -> bool:
    return float(rating).is_integer() and 1 <= rating <= 5


@router.get("/vehicle/{vehicle_id}")
def list_vehicle_reviews(vehicle_id: int):
    try:
        reviews = get_documents("review", {"vehicleId": vehicle_id}, sort_by="createdAt")
        return {"reviews": to_serializable(reviews)}
    except Exception as e:
        logger.exception("Error fetching reviews for vehicle %s", vehicle_id)
        raise InternalError(str(e), error=str(e))


@router.post("", status_code=201)
@router.post("/", status_code=201, include_in_schema=False)
def add_review(body: ReviewRequest = payload(ReviewRequest), user: dict = Depends(get_current_user)):
    if missing_fields(body, ("vehicle_id", "rating", "title", "comment")):
        raise InvalidInput("All fields are required")
    if not valid_rating(body.rating):
        raise InvalidInput("Rating must be between 1 and 5")

    try:
        review = Review(
            vehicle_id=body.vehicle_id,
            user_id=user["_id"],
            user_name=user.get("name"),
            rating=int(body.rating),
            title=body.title,
            comment=body.comment,
        )
        review_id = create_document("review", review)
        return {"message": "Review added successfully", "review": to_serializable(get_document("review", review_id))}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error adding review")
        raise InternalError(str(e), error=str(e))


@router.get("/user/{vehicle_id}")
def get_own_review(vehicle_id: int, user: dict = Depends(get_current_user)):
    try:
        review = get_db()["review"].find_one({"vehicleId": vehicle_id, "userId": user["_id"]})
        if not review:
            raise NotFound("Review not found")
        return {"review": to_serializable(review)}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error fetching user review")
        raise InternalError(str(e), error=str(e))
