import logging
from typing import Optional

from fastapi import APIRouter, HTTPException

from database import create_document, get_document, get_documents, to_serializable
from errors import InternalError, InvalidInput, NotFound
from schemas import FEEDBACK_TYPES, Feedback
from validation import Payload, missing_fields, optional_user_id, payload

logger = logging.getLogger(__name__)

router = APIRouter()


class FeedbackRequest(Payload):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None
    feedback_type: Optional[str] = None
    user_id: Optional[str] = None


@router.post("/submit", status_code=201)
def submit_feedback(body: FeedbackRequest = payload(FeedbackRequest)):
    missing = missing_fields(body, ("name", "email", "subject", "message"))
    if missing:
        raise InvalidInput(f"Missing required fields: {', '.join(missing)}")

    feedback_type = body.feedback_type if body.feedback_type in FEEDBACK_TYPES else "suggestion"

    user_id = optional_user_id(body.user_id)

    try:
        feedback = Feedback(
            name=body.name,
            email=body.email,
            phone=body.phone,
            subject=body.subject,
            message=body.message,
            feedback_type=feedback_type,
            user_id=user_id,
        )
        feedback_id = create_document("feedback", feedback, timestamps=False)
        return {
            "success": True,
            "message": "Feedback submitted successfully",
            "feedback": to_serializable(get_document("feedback", feedback_id)),
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error submitting feedback")
        raise InternalError("Error submitting feedback", error=str(e))


@router.get("/all")
def list_feedback():
    try:
        docs = get_documents("feedback", sort_by="createdAt")
        return {"success": True, "feedbacks": to_serializable(docs)}
    except Exception as e:
        logger.exception("Error fetching feedback")
        raise InternalError("Error fetching feedback", error=str(e))


@router.get("/{feedback_id}")
def get_feedback(feedback_id: str):
    try:
        feedback = get_document("feedback", feedback_id)
        if not feedback:
            raise NotFound("Feedback not found")
        return {"success": True, "feedback": to_serializable(feedback)}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error fetching feedback")
        raise InternalError("Error fetching feedback", error=str(e))
