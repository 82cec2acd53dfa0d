import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import EmailStr, TypeAdapter, ValidationError

import credentials
from database import to_serializable
from errors import InternalError, InvalidInput
from identity import get_current_user
from security import client_ip
from validation import Payload, is_blank, payload

logger = logging.getLogger(__name__)

router = APIRouter()

MIN_PASSWORD_LENGTH = 6

_email_adapter = TypeAdapter(EmailStr)


class RegisterRequest(Payload):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(Payload):
    email: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = None


class ProfileUpdate(Payload):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class ChangePasswordRequest(Payload):
    current_password: Optional[str] = None
    new_password: Optional[str] = None


def field_error(path: str, msg: str, value=None) -> dict:
    return {"path": path, "msg": msg, "value": value, "location": "body"}


def email_is_valid(value: Optional[str]) -> bool:
    if is_blank(value):
        return False
    try:
        _email_adapter.validate_python(value.strip())
    except ValidationError:
        return False
    return True


def reject(errors: list) -> None:
    if errors:
        raise InvalidInput("Validation failed", errors=errors)


@router.post("/register", status_code=201)
def register(body: RegisterRequest = payload(RegisterRequest)):
    errors = []
    if is_blank(body.name):
        errors.append(field_error("name", "Name is required", body.name))
    if is_blank(body.phone):
        errors.append(field_error("phone", "Phone number is required", body.phone))
    if not email_is_valid(body.email):
        errors.append(field_error("email", "Valid email is required", body.email))
    if body.password is None or len(body.password) < MIN_PASSWORD_LENGTH:
        errors.append(field_error("password", "Password must be at least 6 characters"))
    reject(errors)

    try:
        user = credentials.register(body.name, body.phone, body.email, body.password)
        return {"message": "User registered successfully", "user": to_serializable(user)}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Registration error")
        raise InternalError("Server error during registration", error=str(e))


@router.post("/login")
def login(request: Request, body: LoginRequest = payload(LoginRequest)):
    if is_blank(body.password):
        reject([field_error("password", "Password is required")])
    if is_blank(body.email) and is_blank(body.phone):
        raise InvalidInput("Email or phone number is required")

    try:
        user = credentials.authenticate(
            body.email,
            body.phone,
            body.password,
            ip=client_ip(request),
            user_agent=request.headers.get("user-agent"),
        )
        return {"message": "Login successful", "user": to_serializable(user)}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Login error")
        raise InternalError("Server error during login", error=str(e))


@router.put("/profile")
def update_profile(body: ProfileUpdate = payload(ProfileUpdate), user: dict = Depends(get_current_user)):
    fields = {name: getattr(body, name) for name in body.model_fields_set}

    errors = []
    if "name" in fields and is_blank(fields["name"]):
        errors.append(field_error("name", "Name is required", fields["name"]))
    if "phone" in fields and is_blank(fields["phone"]):
        errors.append(field_error("phone", "Phone number is required", fields["phone"]))
    if "email" in fields and not email_is_valid(fields["email"]):
        errors.append(field_error("email", "Valid email is required", fields["email"]))
    reject(errors)

    try:
        updated = credentials.update_profile(user, fields)
        return {"message": "Profile updated successfully", "user": to_serializable(updated)}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Profile update error")
        raise InternalError(str(e), error=str(e))


@router.put("/change-password")
def change_password(body: ChangePasswordRequest = payload(ChangePasswordRequest), user: dict = Depends(get_current_user)):
    errors = []
    if is_blank(body.current_password):
        errors.append(field_error("currentPassword", "Current password is required"))
    if body.new_password is None or len(body.new_password) < MIN_PASSWORD_LENGTH:
        errors.append(field_error("newPassword", "Password must be at least 6 characters"))
    reject(errors)

    try:
        credentials.change_password(user, body.current_password, body.new_password)
        return {"message": "Password changed successfully"}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Change password error")
        raise InternalError(str(e), error=str(e))


@router.get("/login-history")
def login_history(user: dict = Depends(get_current_user)):
    return {"loginHistory": to_serializable(credentials.get_login_history(user))}
