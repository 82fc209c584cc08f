from datetime import datetime
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, ValidationError, field_validator

from bookrent.domain.value_objects import RentStatus, UserRole
from bookrent.exceptions import InvalidArgumentsError

SchemaT = TypeVar('SchemaT', bound=BaseModel)


# Request Schemas
class BookCreate(BaseModel):
    """Payload for adding a title to the catalog"""
    title: str = Field(min_length=1)
    content: str = ''
    stock: int = Field(default=0, ge=0)

    @field_validator('title')
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('title must not be blank')
        return v.strip()


class UserCreate(BaseModel):
    firstname: str = ''
    lastname: str = ''
    email: str = Field(pattern=r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
    password: str = Field(min_length=1)
    role: UserRole = UserRole.CUSTOMER

    @field_validator('email', mode='before')
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class RentRequest(BaseModel):
    """Payload for renting one copy of a book"""
    user_id: PositiveInt
    book_id: PositiveInt


class StockUpdate(BaseModel):
    # Setting stock to zero goes through renting, not through the catalog
    stock: PositiveInt


# Read Schemas
class BookRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    content: str
    stock: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserRead(BaseModel):
    """User without credentials"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    firstname: str
    lastname: str
    email: str
    role: UserRole
    created_at: Optional[datetime] = None


class RentDetailsRead(BaseModel):
    """Rental record, with the joined book and user when they were loaded"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    book_id: int
    status: RentStatus
    created_at: datetime
    return_deadline: datetime
    returned_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    book: Optional[BookRead] = None
    user: Optional[UserRead] = None


def parse_request(schema: Type[SchemaT], data: Any) -> SchemaT:
    """
    Validate caller input against a request schema.

    Args:
        schema: Pydantic model class
        data: Mapping or model instance to validate

    Returns:
        Validated schema instance

    Raises:
        InvalidArgumentsError: If validation fails
    """
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        invalid_fields = {
            ".".join(str(part) for part in error['loc']) or '__root__': error['msg']
            for error in e.errors()
        }
        raise InvalidArgumentsError(
            f"Invalid {schema.__name__}: {', '.join(sorted(invalid_fields))}",
            invalid_fields=invalid_fields,
        ) from e
