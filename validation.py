"""
Request payload helpers shared by the route modules.

Bodies arrive either as JSON or as urlencoded forms; `payload(Model)` turns
either into the given Pydantic model so handlers only deal with one shape.
"""

import os
import re
from typing import Any, Iterable, List, Optional, Type, TypeVar

from bson import ObjectId
from fastapi import Depends, Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from database import parse_object_id
from errors import InvalidInput, PayloadTooLarge

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\d{10}$")

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

MAX_BODY_BYTES = int(os.getenv("MAX_BODY_BYTES", str(10 * 1024 * 1024)))

ModelT = TypeVar("ModelT", bound=BaseModel)


class Payload(BaseModel):
    """Incoming body. Fields are optional so handlers can report what is missing themselves."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, coerce_numbers_to_str=True)


async def _read_body(request: Request) -> Any:
    # chunked uploads carry no Content-Length, so the middleware cannot catch them
    raw = await request.body()
    if len(raw) > MAX_BODY_BYTES:
        raise PayloadTooLarge("Request entity too large")

    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        return dict(form)
    if not raw:
        return {}
    try:
        return await request.json()
    except ValueError:
        raise RequestValidationError([{"loc": ("body",), "msg": "Malformed JSON body", "type": "json_invalid"}])


def payload(model: Type[ModelT]) -> Any:
    async def parse(request: Request) -> ModelT:
        data = await _read_body(request)
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise RequestValidationError(
                [{**err, "loc": ("body", *err["loc"])} for err in exc.errors(include_url=False, include_context=False)]
            )
    return Depends(parse)


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def missing_fields(body: BaseModel, names: Iterable[str]) -> List[str]:
    """Aliases (wire names) of the required fields that were omitted or empty"""
    fields = type(body).model_fields
    return [fields[name].alias or name for name in names if is_blank(getattr(body, name))]


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value or ""))


def is_valid_phone(value: str) -> bool:
    return bool(PHONE_PATTERN.match(value or ""))


def optional_user_id(value: Any) -> Optional[ObjectId]:
    """Submitter id on public forms: absent is fine, malformed is not"""
    if is_blank(value):
        return None
    oid = parse_object_id(value)
    if oid is None:
        raise InvalidInput("Invalid user id")
    return oid
