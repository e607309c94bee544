import datetime
import uuid
from typing import Annotated, Any, Dict

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utc_now() -> datetime.datetime:
    # MongoDB keeps UTC datetimes without tzinfo; values are stored and queried naive.
    return datetime.datetime.now(datetime.UTC).replace(tzinfo=None)


def as_naive_utc(value: datetime.datetime) -> datetime.datetime:
    if value.tzinfo is not None:
        return value.astimezone(datetime.UTC).replace(tzinfo=None)
    return value


UtcDatetime = Annotated[datetime.datetime, AfterValidator(as_naive_utc)]


class CamelModel(BaseModel):
    """Python attributes in snake_case, documents and JSON payloads in camelCase."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        str_strip_whitespace=True,
        coerce_numbers_to_str=True,
        validate_default=True,
        extra="ignore",
    )

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class DocumentBase(CamelModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    version: int = 0 # bumped on every full update
    created_at: datetime.datetime = Field(default_factory=utc_now)
    updated_at: datetime.datetime = Field(default_factory=utc_now)


# Shared validation patterns
PHONE_PATTERN = r"^\+?[0-9]{10,15}$"
INTERNATIONAL_PHONE_PATTERN = r"^\+[0-9]{10,14}$"
EMAIL_PATTERN = r"^[\w\-.]+@([\w-]+\.)+[\w-]{2,4}$"
