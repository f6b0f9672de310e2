"""
Base schemas with standardized field types for the calendar core.

All timestamps crossing into the core are UTC. Persisted rows sometimes come
back naive, so `UTCDateTime` treats naive values as UTC and normalizes aware
values to UTC.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic_core import core_schema


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UTCDateTime = Annotated[datetime, AfterValidator(ensure_utc)]


class StandardizedModel(BaseModel):  # type: ignore[misc]
    """Base model with standardized JSON encoding"""

    model_config = ConfigDict(use_enum_values=False, populate_by_name=True, from_attributes=True)


class StrictModel(BaseModel):  # type: ignore[misc]
    """Strict base: forbid extras, validate defaults and assignments."""

    model_config = ConfigDict(
        extra="forbid",
        validate_default=True,
        validate_assignment=True,
    )


class Money(Decimal):
    """Money field that always serializes as float"""

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> core_schema.CoreSchema:
        def validate_money(value: Any) -> Decimal:
            if isinstance(value, (int, float)):
                return cls(str(value))
            if isinstance(value, str):
                return cls(value)
            if isinstance(value, Decimal):
                return value
            raise ValueError(f"Cannot convert {type(value)} to Money")

        return core_schema.no_info_after_validator_function(
            validate_money,
            core_schema.union_schema(
                [
                    core_schema.int_schema(),
                    core_schema.float_schema(),
                    core_schema.str_schema(),
                    core_schema.is_instance_schema(Decimal),
                ]
            ),
            serialization=core_schema.plain_serializer_function_ser_schema(
                float,
                info_arg=False,
                return_schema=core_schema.float_schema(),
            ),
        )
