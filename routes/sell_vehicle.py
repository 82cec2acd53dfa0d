import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from database import create_document, get_db, get_document, get_documents, parse_object_id, to_serializable, update_document
from errors import InternalError, InvalidInput, NotFound
from identity import get_current_user, require_owner
from schemas import SALE_STATUSES, VEHICLE_CONDITIONS, SellVehicle
from validation import Payload, is_blank, is_valid_email, is_valid_phone, missing_fields, payload

logger = logging.getLogger(__name__)

router = APIRouter()

REQUIRED_FIELDS = ("name", "email", "phone", "vehicle_brand", "vehicle_model", "year", "km_driven", "expected_price")
MIN_YEAR = 1990
MIN_EXPECTED_PRICE = 1000


class SaleRequest(Payload):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    vehicle_brand: Optional[str] = None
    vehicle_model: Optional[str] = None
    year: Optional[int] = None
    km_driven: Optional[float] = None
    expected_price: Optional[float] = None
    condition: Optional[str] = None
    description: Optional[str] = None


class StatusUpdate(Payload):
    status: Optional[str] = None


def submissions():
    return get_db()["sellvehicle"]


def validate_submission(body: SaleRequest) -> None:
    """Raise on the first rule the submission breaks"""
    missing = missing_fields(body, REQUIRED_FIELDS)
    if missing:
        raise InvalidInput(f"Missing required fields: {', '.join(missing)}")
    if not is_valid_email(body.email):
        raise InvalidInput("Invalid email format")
    if not is_valid_phone(body.phone):
        raise InvalidInput("Phone number must be 10 digits")

    current_year = datetime.now().year
    if body.year < MIN_YEAR or body.year > current_year:
        raise InvalidInput(f"Year must be between {MIN_YEAR} and {current_year}")
    if body.km_driven < 0:
        raise InvalidInput("Kilometers driven cannot be negative")
    if body.expected_price < MIN_EXPECTED_PRICE:
        raise InvalidInput(f"Expected price must be at least ₹{MIN_EXPECTED_PRICE}")
    if not is_blank(body.condition) and body.condition not in VEHICLE_CONDITIONS:
        raise InvalidInput("Invalid condition")


@router.post("/submit", status_code=201)
def submit_vehicle(body: SaleRequest = payload(SaleRequest), user: dict = Depends(get_current_user)):
    logger.debug("Vehicle submission from user %s: %s", user["_id"], body.model_dump(exclude_none=True))
    validate_submission(body)

    try:
        sale = SellVehicle(
            name=body.name,
            email=body.email,
            phone=body.phone,
            vehicle_brand=body.vehicle_brand,
            vehicle_model=body.vehicle_model,
            year=body.year,
            km_driven=body.km_driven,
            expected_price=body.expected_price,
            condition=body.condition or "good",
            description=body.description or "",
            user_id=user["_id"],
        )
        sale_id = create_document("sellvehicle", sale)
        logger.info("Saved vehicle submission %s", sale_id)
        return {
            "success": True,
            "message": "Vehicle submission received successfully. Our team will contact you within 24 hours.",
            "sellVehicle": to_serializable(get_document("sellvehicle", sale_id)),
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error submitting vehicle for sale")
        raise InternalError("Error submitting vehicle for sale", error=str(e))


@router.get("/all")
def list_submissions(user: dict = Depends(get_current_user)):
    try:
        docs = get_documents("sellvehicle", sort_by="createdAt")
        return {"success": True, "sellVehicles": to_serializable(docs)}
    except Exception as e:
        logger.exception("Error fetching vehicle submissions")
        raise InternalError("Error fetching vehicle submissions", error=str(e))


@router.get("/user/{user_id}")
def list_user_submissions(user_id: str, user: dict = Depends(get_current_user)):
    require_owner(user, user_id)
    try:
        docs = get_documents("sellvehicle", {"userId": user["_id"]}, sort_by="createdAt")
        return {"success": True, "sellVehicles": to_serializable(docs)}
    except Exception as e:
        logger.exception("Error fetching user vehicle submissions")
        raise InternalError("Error fetching user vehicle submissions", error=str(e))


@router.get("/user/{user_id}/sold")
def list_sold_vehicles(user_id: str, user: dict = Depends(get_current_user)):
    require_owner(user, user_id)
    try:
        docs = get_documents("sellvehicle", {"userId": user["_id"], "status": "sold"}, sort_by="createdAt")
        return {"success": True, "soldVehicles": to_serializable(docs)}
    except Exception as e:
        logger.exception("Error fetching sold vehicles")
        raise InternalError("Error fetching sold vehicles", error=str(e))


@router.get("/{sale_id}")
def get_submission(sale_id: str):
    try:
        sale = get_document("sellvehicle", sale_id)
        if not sale:
            raise NotFound("Vehicle submission not found")
        return {"success": True, "sellVehicle": to_serializable(sale)}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error fetching vehicle submission")
        raise InternalError("Error fetching vehicle submission", error=str(e))


@router.put("/{sale_id}/status")
def update_submission_status(sale_id: str, body: StatusUpdate = payload(StatusUpdate), user: dict = Depends(get_current_user)):
    if body.status not in SALE_STATUSES:
        raise InvalidInput("Invalid status")

    try:
        sale = update_document("sellvehicle", sale_id, {"status": body.status})
        if not sale:
            raise NotFound("Vehicle submission not found")
        return {
            "success": True,
            "message": "Vehicle submission status updated successfully",
            "sellVehicle": to_serializable(sale),
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error updating vehicle submission status")
        raise InternalError("Error updating vehicle submission status", error=str(e))


@router.delete("/{sale_id}")
def delete_submission(sale_id: str, user: dict = Depends(get_current_user)):
    try:
        oid = parse_object_id(sale_id)
        sale = submissions().find_one_and_delete({"_id": oid}) if oid is not None else None
        if not sale:
            raise NotFound("Vehicle submission not found")
        logger.info("User %s deleted vehicle submission %s", user["_id"], sale_id)
        return {"success": True, "message": "Vehicle submission deleted successfully"}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error deleting vehicle submission")
        raise InternalError("Error deleting vehicle submission", error=str(e))
