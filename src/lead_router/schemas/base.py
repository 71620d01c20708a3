"""
Base schema classes
"""
from typing import Optional
from pydantic import BaseModel as PydanticBaseModel
from pydantic.alias_generators import to_camel
from datetime import datetime

def lower_email(value: Optional[str]) -> Optional[str]:
    """Email addresses are stored lower-cased; ``EmailStr`` has already checked the syntax"""
    return value.lower() if value is not None else value


class BaseSchema(PydanticBaseModel):
    """Base schema with common configuration; fields are camelCase on the wire"""

    class Config:
        from_attributes = True  # Allows ORM mode (formerly orm_mode)
        populate_by_name = True
        alias_generator = to_camel


class TimestampSchema(BaseSchema):
    """Schema with timestamp fields"""
    created_at: datetime
    updated_at: datetime


class IDSchema(BaseSchema):
    """Schema with ID field"""
    id: int


class BaseResponseSchema(TimestampSchema, IDSchema):
    """Base response schema with common fields"""
    pass
