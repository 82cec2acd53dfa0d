"""
Credential store: user accounts, password checks and login history.

Email and phone uniqueness is enforced by unique indexes on the "user"
collection. The lookups done before writing only pick the nicer error
message; a DuplicateKeyError from the write is the authoritative answer.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from database import create_document, get_db, utcnow
from errors import DuplicateField, InvalidCredentials
from schemas import LoginEvent, User
from security import describe_user_agent, hash_password, verify_password

logger = logging.getLogger(__name__)

EMAIL_TAKEN = "Email already exists"
PHONE_TAKEN = "Phone number already exists"


def users():
    return get_db()["user"]


def normalize_email(email: Optional[str]) -> Optional[str]:
    return email.strip().lower() if email else email


def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of the user document without the password hash"""
    doc = dict(user)
    doc.pop("password", None)
    return doc


def _duplicate_field(exc: DuplicateKeyError) -> DuplicateField:
    details = exc.details or {}
    key = details.get("keyPattern") or details.get("keyValue") or {}
    if "phone" in key or ("email" not in key and "phone" in str(exc)):
        return DuplicateField(PHONE_TAKEN)
    return DuplicateField(EMAIL_TAKEN)


def register(name: str, phone: str, email: str, password: str) -> Dict[str, Any]:
    email = normalize_email(email)
    phone = phone.strip()

    if users().find_one({"email": email}):
        raise DuplicateField(EMAIL_TAKEN)
    if users().find_one({"phone": phone}):
        raise DuplicateField(PHONE_TAKEN)

    user = User(name=name.strip(), phone=phone, email=email, password=hash_password(password))
    try:
        user_id = create_document("user", user)
    except DuplicateKeyError as exc:
        raise _duplicate_field(exc)

    logger.info("Registered user %s", user_id)
    return public_user(users().find_one({"_id": ObjectId(user_id)}))


def find_by_login(email: Optional[str] = None, phone: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Email wins when both identifiers are supplied"""
    if email:
        return users().find_one({"email": normalize_email(email)})
    if phone:
        return users().find_one({"phone": phone.strip()})
    return None


def authenticate(email: Optional[str], phone: Optional[str], password: str,
                 ip: Optional[str] = None, user_agent: Optional[str] = None) -> Dict[str, Any]:
    user = find_by_login(email, phone)
    if not user or not verify_password(password, user.get("password")):
        raise InvalidCredentials("Invalid credentials")

    event = LoginEvent(ip=ip, user_agent=user_agent, **describe_user_agent(user_agent))
    entry = {"_id": ObjectId(), **event.model_dump(by_alias=True)}

    updated = users().find_one_and_update(
        {"_id": user["_id"]},
        {"$push": {"loginHistory": entry}, "$set": {"updatedAt": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    logger.info("Login for user %s from %s (%s)", user["_id"], ip, entry["device"])
    return public_user(updated or user)


def update_profile(user: Dict[str, Any], fields: Dict[str, Any]) -> Dict[str, Any]:
    """Apply only the name/email/phone values the caller actually sent"""
    changes: Dict[str, Any] = {}
    if "name" in fields:
        changes["name"] = fields["name"].strip()
    if "phone" in fields:
        changes["phone"] = fields["phone"].strip()
        if changes["phone"] != user.get("phone"):
            if users().find_one({"phone": changes["phone"], "_id": {"$ne": user["_id"]}}):
                raise DuplicateField(PHONE_TAKEN)
    if "email" in fields:
        changes["email"] = normalize_email(fields["email"])
        if changes["email"] != user.get("email"):
            if users().find_one({"email": changes["email"], "_id": {"$ne": user["_id"]}}):
                raise DuplicateField(EMAIL_TAKEN)

    if not changes:
        return public_user(user)

    changes["updatedAt"] = utcnow()
    try:
        updated = users().find_one_and_update(
            {"_id": user["_id"]},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
    except DuplicateKeyError as exc:
        raise _duplicate_field(exc)
    return public_user(updated or {**user, **changes})


def change_password(user: Dict[str, Any], current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.get("password")):
        raise InvalidCredentials("Current password is incorrect")

    users().update_one(
        {"_id": user["_id"]},
        {"$set": {"password": hash_password(new_password), "updatedAt": utcnow()}},
    )
    logger.info("Password changed for user %s", user["_id"])


def _timestamp_key(entry: Dict[str, Any]) -> datetime:
    ts = entry.get("timestamp")
    if not isinstance(ts, datetime):
        return datetime.min.replace(tzinfo=timezone.utc)
    # pymongo hands back naive UTC datetimes
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def get_login_history(user: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Newest first, whatever order the entries were stored in"""
    return sorted(user.get("loginHistory") or [], key=_timestamp_key, reverse=True)
