"""
User and order schemas.

Pydantic models describing the wire shape of a user document, the partial
update payload and an order line-item. Field names are snake_case in Python
and camelCase on the wire (``userId``, ``fullName``, ``productName``).

Scalar fields use pydantic's strict types so that "1" is never accepted as
an integer and 1 is never accepted as a boolean. Integers are bounded to the
64-bit range MongoDB can store, and prices must be finite. Unknown keys are
ignored.
"""

from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr, field_validator, model_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError


USERNAME_MAX_LENGTH = 20

# BSON integers are signed 64-bit
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

# Keeps price * quantity and its sums far from float overflow
MAX_PRICE = 1e15

Int64 = Annotated[StrictInt, Field(ge=INT64_MIN, le=INT64_MAX)]


class WireModel(BaseModel):
    """Base for models exchanged as camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        extra="ignore",
    )

    def to_document(self, **kwargs: Any) -> dict:
        """Dump to the camelCase document shape stored in MongoDB."""
        return self.model_dump(by_alias=True, **kwargs)


class FullName(WireModel):
    first_name: StrictStr
    last_name: StrictStr


class Address(WireModel):
    street: StrictStr
    city: StrictStr
    country: StrictStr


def check_username(value: str) -> str:
    if not value[:1].isascii() or not value[:1].isupper():
        raise PydanticCustomError(
            "username_capital",
            "Username must start with a capital letter",
        )
    return value


class UserCreate(WireModel):
    """Full user record as submitted on create."""

    user_id: Int64
    username: StrictStr = Field(min_length=1, max_length=USERNAME_MAX_LENGTH)
    password: StrictStr
    full_name: FullName
    age: Int64
    email: StrictStr
    is_active: StrictBool
    hobbies: List[StrictStr]
    address: Address

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        return check_username(v)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "userId": 1,
                "username": "Ann",
                "password": "secret",
                "fullName": {"firstName": "Ann", "lastName": "Smith"},
                "age": 20,
                "email": "ann@example.com",
                "isActive": True,
                "hobbies": ["chess"],
                "address": {"street": "1 Main St", "city": "Springfield", "country": "US"},
            }
        }
    )


class UserUpdate(WireModel):
    """
    Partial user payload.

    Every field is optional, but a field that is present must satisfy the
    same constraints as on create; an explicit null is rejected. Nested
    objects are replaced as a whole.
    """

    user_id: Optional[Int64] = None
    username: Optional[StrictStr] = Field(default=None, min_length=1, max_length=USERNAME_MAX_LENGTH)
    password: Optional[StrictStr] = None
    full_name: Optional[FullName] = None
    age: Optional[Int64] = None
    email: Optional[StrictStr] = None
    is_active: Optional[StrictBool] = None
    hobbies: Optional[List[StrictStr]] = None
    address: Optional[Address] = None

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return check_username(v)

    @model_validator(mode="after")
    def reject_explicit_nulls(self) -> "UserUpdate":
        fields = type(self).model_fields
        for name in fields:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise PydanticCustomError(
                    "null_field",
                    "{field}: Field may not be null",
                    {"field": fields[name].alias or name},
                )
        return self

    def changes(self) -> dict:
        """Only the fields the client actually sent, in document shape."""
        return self.to_document(exclude_unset=True)


class OrderCreate(WireModel):
    """Order line-item; every field required."""

    product_name: StrictStr
    price: float = Field(allow_inf_nan=False, ge=-MAX_PRICE, le=MAX_PRICE)
    quantity: Int64

    @field_validator("price", mode="before")
    @classmethod
    def validate_price(cls, v: Any) -> Any:
        # bool is an int subclass and str would be coerced in lax mode
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise PydanticCustomError("number_type", "Input should be a valid number")
        return v

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"productName": "Pen", "price": 2, "quantity": 3}
        }
    )
