import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pymongo.errors import DuplicateKeyError

from database import create_document, get_db, get_document, get_documents, to_serializable
from errors import Conflict, InternalError, InvalidInput, NotFound
from identity import get_current_user
from schemas import Favorite
from validation import Payload, missing_fields, payload

logger = logging.getLogger(__name__)

router = APIRouter()

VEHICLE_FIELDS = ("vehicle_id", "vehicle_name", "vehicle_brand", "vehicle_price", "vehicle_image")


class FavoriteRequest(Payload):
    vehicle_id: Optional[int] = None
    vehicle_name: Optional[str] = None
    vehicle_brand: Optional[str] = None
    vehicle_price: Optional[float] = None
    vehicle_image: Optional[str] = None


def favorites():
    return get_db()["favorite"]


def require_vehicle(body: FavoriteRequest, fields=VEHICLE_FIELDS) -> None:
    missing = missing_fields(body, fields)
    if missing:
        raise InvalidInput(f"Missing required fields: {', '.join(missing)}")


def insert_favorite(user: dict, body: FavoriteRequest) -> dict:
    favorite = Favorite(
        user_id=user["_id"],
        vehicle_id=body.vehicle_id,
        vehicle_name=body.vehicle_name,
        vehicle_brand=body.vehicle_brand,
        vehicle_price=body.vehicle_price,
        vehicle_image=body.vehicle_image,
    )
    try:
        favorite_id = create_document("favorite", favorite, timestamps=False)
    except DuplicateKeyError:
        # lost a race with another request for the same pair
        raise Conflict("Vehicle already in favorites")
    return get_document("favorite", favorite_id)


@router.post("/add")
def add_favorite(body: FavoriteRequest = payload(FavoriteRequest), user: dict = Depends(get_current_user)):
    require_vehicle(body)
    try:
        if favorites().find_one({"userId": user["_id"], "vehicleId": body.vehicle_id}):
            raise Conflict("Vehicle already in favorites")

        favorite = insert_favorite(user, body)
        return {"success": True, "message": "Vehicle added to favorites", "favorite": to_serializable(favorite)}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error adding to favorites")
        raise InternalError("Server error", error=str(e))


@router.delete("/remove/{vehicle_id}")
def remove_favorite(vehicle_id: int, user: dict = Depends(get_current_user)):
    try:
        removed = favorites().find_one_and_delete({"userId": user["_id"], "vehicleId": vehicle_id})
        if not removed:
            raise NotFound("Favorite not found")
        return {"success": True, "message": "Vehicle removed from favorites"}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error removing from favorites")
        raise InternalError("Server error", error=str(e))


@router.get("/user")
def list_favorites(user: dict = Depends(get_current_user)):
    try:
        docs = get_documents("favorite", {"userId": user["_id"]}, sort_by="addedAt")
        return {"success": True, "favorites": to_serializable(docs)}
    except Exception as e:
        logger.exception("Error fetching favorites")
        raise InternalError("Server error", error=str(e))


@router.get("/check/{vehicle_id}")
def check_favorite(vehicle_id: int, user: dict = Depends(get_current_user)):
    try:
        exists = favorites().find_one({"userId": user["_id"], "vehicleId": vehicle_id}) is not None
        return {"success": True, "isFavorited": exists}
    except Exception as e:
        logger.exception("Error checking favorite status")
        raise InternalError("Server error", error=str(e))


@router.post("/toggle")
def toggle_favorite(body: FavoriteRequest = payload(FavoriteRequest), user: dict = Depends(get_current_user)):
    require_vehicle(body, fields=("vehicle_id",))
    try:
        # find_one_and_delete reports whether the pair existed in the same step
        removed = favorites().find_one_and_delete({"userId": user["_id"], "vehicleId": body.vehicle_id})
        if removed:
            return {"success": True, "message": "Vehicle removed from favorites", "isFavorited": False}

        require_vehicle(body)
        favorite = insert_favorite(user, body)
        return {
            "success": True,
            "message": "Vehicle added to favorites",
            "isFavorited": True,
            "favorite": to_serializable(favorite),
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error toggling favorite")
        raise InternalError("Server error", error=str(e))
