"""
Pydantic schemas for listing payloads and API responses.

Insert and update payloads are checked with the ``validate_*`` functions,
which return a ``ValidationResult`` listing every failing field instead of
raising on the first one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from listings.errors import FieldError, ValidationError

PropertyType = Literal["house", "apartment", "condo", "townhouse"]
PropertyStatus = Literal["available", "sold", "rented"]

# bcrypt only looks at the first 72 bytes of a password.
MAX_PASSWORD_BYTES = 72

ModelT = TypeVar("ModelT", bound=BaseModel)


class _Payload(BaseModel):
    # No str -> number coercion and no bool -> int; unknown keys are dropped.
    model_config = ConfigDict(strict=True, extra="ignore")


class InsertUser(_Payload):
    """New user payload.

    The password must be non-empty and at most 72 bytes once UTF-8 encoded,
    since bcrypt ignores anything past that.
    """

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        return value


def _whole_bedrooms(value: Optional[float]) -> Optional[int]:
    # JSON has one number type, so 2.0 counts as a whole number of bedrooms.
    if value is None:
        return None
    if not float(value).is_integer():
        raise ValueError("Bedrooms must be a whole number")
    return int(value)


class InsertProperty(_Payload):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    price: float = Field(..., gt=0, allow_inf_nan=False)
    location: str = Field(..., min_length=1)
    bedrooms: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    bathrooms: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    area: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)
    type: PropertyType = "house"
    status: PropertyStatus = "available"

    check_bedrooms = field_validator("bedrooms")(_whole_bedrooms)


class PropertyUpdate(_Payload):
    """Partial property payload. Only keys that were sent are applied.

    Defaults are never validated, so an explicit ``null`` for any field is
    rejected while an omitted field is left untouched.
    """

    title: str = Field(default=None, min_length=1)
    description: str = None
    price: float = Field(default=None, gt=0, allow_inf_nan=False)
    location: str = Field(default=None, min_length=1)
    bedrooms: float = Field(default=None, ge=0, allow_inf_nan=False)
    bathrooms: float = Field(default=None, ge=0, allow_inf_nan=False)
    area: float = Field(default=None, gt=0, allow_inf_nan=False)
    type: PropertyType = None
    status: PropertyStatus = None

    check_bedrooms = field_validator("bedrooms")(_whole_bedrooms)

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


@dataclass
class ValidationResult(Generic[ModelT]):
    value: Optional[ModelT] = None
    errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> ModelT:
        if self.errors:
            raise ValidationError(self.errors)
        return self.value


def _field_name(loc: tuple) -> str:
    return ".".join(str(part) for part in loc) or "payload"


def _validate(model: type[ModelT], payload: Any) -> ValidationResult[ModelT]:
    try:
        return ValidationResult(value=model.model_validate(payload))
    except PydanticValidationError as exc:
        return ValidationResult(
            errors=[
                FieldError(_field_name(err["loc"]), err["msg"])
                for err in exc.errors()
            ]
        )


def validate_insert_user(payload: Any) -> ValidationResult[InsertUser]:
    return _validate(InsertUser, payload)


def validate_insert_property(payload: Any) -> ValidationResult[InsertProperty]:
    return _validate(InsertProperty, payload)


def validate_property_update(payload: Any) -> ValidationResult[PropertyUpdate]:
    return _validate(PropertyUpdate, payload)


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str


class PropertyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: Optional[str] = None
    price: float
    location: str
    bedrooms: Optional[int] = None
    bathrooms: Optional[float] = None
    area: Optional[float] = None
    type: PropertyType
    status: PropertyStatus
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")


class FieldErrorResponse(BaseModel):
    field: str
    message: str


class ErrorResponse(BaseModel):
    message: str
    errors: Optional[list[FieldErrorResponse]] = None


class HealthResponse(BaseModel):
    status: Literal["ok"]
    backend: Literal["mongo", "memory"]
