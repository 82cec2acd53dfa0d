import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from database import create_document, get_document, get_documents, to_serializable, update_document
from errors import InternalError, InvalidInput, NotFound
from identity import get_current_user, require_owner
from schemas import TEST_RIDE_STATUSES, TestRide
from validation import Payload, is_valid_email, is_valid_phone, missing_fields, optional_user_id, payload

logger = logging.getLogger(__name__)

router = APIRouter()

REQUIRED_FIELDS = ("name", "email", "phone", "vehicle_id", "date", "time", "showroom")


class BookingRequest(Payload):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    vehicle_id: Optional[int] = None
    date: Optional[datetime] = None
    time: Optional[str] = None
    showroom: Optional[str] = None
    user_id: Optional[str] = None


class StatusUpdate(Payload):
    status: Optional[str] = None


@router.post("/book", status_code=201)
def book_test_ride(body: BookingRequest = payload(BookingRequest)):
    if missing_fields(body, REQUIRED_FIELDS):
        raise InvalidInput("All fields are required")
    if not is_valid_email(body.email):
        raise InvalidInput("Invalid email format")
    if not is_valid_phone(body.phone):
        raise InvalidInput("Phone number must be 10 digits")

    user_id = optional_user_id(body.user_id)

    try:
        ride = TestRide(
            name=body.name,
            email=body.email,
            phone=body.phone,
            vehicle_id=body.vehicle_id,
            date=body.date,
            time=body.time,
            showroom=body.showroom,
            user_id=user_id,
        )
        ride_id = create_document("testride", ride)
        logger.info("Test ride %s booked for vehicle %s", ride_id, body.vehicle_id)
        return {
            "success": True,
            "message": "Test ride booked successfully",
            "testRide": to_serializable(get_document("testride", ride_id)),
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error booking test ride")
        raise InternalError("Error booking test ride", error=str(e))


@router.get("/all")
def list_test_rides():
    try:
        docs = get_documents("testride", sort_by="createdAt")
        return {"success": True, "testRides": to_serializable(docs)}
    except Exception as e:
        logger.exception("Error fetching test rides")
        raise InternalError("Error fetching test rides", error=str(e))


@router.get("/user/{user_id}")
def list_user_test_rides(user_id: str, user: dict = Depends(get_current_user)):
    require_owner(user, user_id)
    try:
        docs = get_documents("testride", {"userId": user["_id"]}, sort_by="createdAt")
        return {"success": True, "testRides": to_serializable(docs)}
    except Exception as e:
        logger.exception("Error fetching user test rides")
        raise InternalError("Error fetching user test rides", error=str(e))


@router.get("/{ride_id}")
def get_test_ride(ride_id: str):
    try:
        ride = get_document("testride", ride_id)
        if not ride:
            raise NotFound("Test ride not found")
        return {"success": True, "testRide": to_serializable(ride)}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error fetching test ride")
        raise InternalError("Error fetching test ride", error=str(e))


@router.put("/{ride_id}/status")
def update_test_ride_status(ride_id: str, body: StatusUpdate = payload(StatusUpdate)):
    if body.status not in TEST_RIDE_STATUSES:
        raise InvalidInput("Invalid status")

    try:
        ride = update_document("testride", ride_id, {"status": body.status})
        if not ride:
            raise NotFound("Test ride not found")
        return {"success": True, "message": "Test ride status updated successfully", "testRide": to_serializable(ride)}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error updating test ride status")
        raise InternalError("Error updating test ride status", error=str(e))


@router.delete("/{ride_id}")
def cancel_test_ride(ride_id: str):
    """Bookings are kept for the record; deleting one only marks it cancelled"""
    try:
        ride = update_document("testride", ride_id, {"status": "cancelled"})
        if not ride:
            raise NotFound("Test ride not found")
        return {"success": True, "message": "Test ride cancelled successfully", "testRide": to_serializable(ride)}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error cancelling test ride")
        raise InternalError("Error cancelling test ride", error=str(e))
