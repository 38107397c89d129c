"""Typed payloads carried by the email queues."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
    ValidationError,
    field_serializer,
    field_validator,
)

from greencity_mailer.errors import MessageDecodeError


class PlaceStatus(str, Enum):
    PROPOSED = "PROPOSED"
    DECLINED = "DECLINED"
    APPROVED = "APPROVED"
    DELETED = "DELETED"


class EmailNotification(str, Enum):
    """How often a user wants the new places report."""

    DISABLED = "DISABLED"
    IMMEDIATELY = "IMMEDIATELY"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"


def describe_errors(error: ValidationError) -> str:
    """Flatten a pydantic error into `loc: msg` pairs using the wire field names."""
    parts = []
    for e in error.errors():
        location = ".".join(str(p) for p in e["loc"]) or "payload"
        parts.append(f"{location}: {e['msg']}")
    return "; ".join(parts)


def _upper(value: Any) -> Any:
    return value.upper() if isinstance(value, str) else value


class QueueMessage(BaseModel):
    """Base for queue payloads: immutable, camelCase on the wire, snake_case in code."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @classmethod
    def from_payload(cls, payload: Any):
        """
        Decode a JSON object taken off a queue.

        Raises:
            MessageDecodeError if a field is missing, mistyped or out of range
        """
        try:
            return cls.model_validate(payload)
        except ValidationError as e:
            raise MessageDecodeError(f"Invalid {cls.__name__}: {describe_errors(e)}") from e


class PasswordRecoveryMessage(QueueMessage):
    user_id: StrictInt = Field(alias="userId")
    user_first_name: StrictStr = Field(alias="userFirstName")
    user_email: StrictStr = Field(alias="userEmail")
    recovery_token: StrictStr = Field(alias="recoveryToken")


class ChangePlaceStatusMessage(QueueMessage):
    author_first_name: StrictStr = Field(alias="authorFirstName")
    place_name: StrictStr = Field(alias="placeName")
    place_status: PlaceStatus = Field(alias="placeStatus")
    author_email: StrictStr = Field(alias="authorEmail")

    @field_validator("place_status", mode="before")
    @classmethod
    def normalize_status(cls, value: Any) -> Any:
        return _upper(value)


class AddEcoNewsMessage(QueueMessage):
    id: StrictInt
    title: StrictStr
    text: StrictStr
    creation_date: datetime = Field(alias="creationDate")
    image_path: Optional[StrictStr] = Field(default=None, alias="imagePath")

    @field_serializer("creation_date")
    def serialize_creation_date(self, value: datetime) -> str:
        return value.isoformat()

    def with_title(self, title: str) -> "AddEcoNewsMessage":
        """Return a copy carrying another title."""
        return self.model_copy(update={"title": title})

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class VerifyEmailMessage(QueueMessage):
    id: StrictInt
    name: StrictStr
    email: StrictStr
    token: StrictStr


class ReportSubscriber(QueueMessage):
    """Recipient of the new places report."""

    id: StrictInt
    name: StrictStr
    email: StrictStr

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump()


class PlaceEntry(QueueMessage):
    """A place listed under a category in the report. Unknown keys are kept as-is."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    id: StrictInt
    name: StrictStr

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump()


class SendReportMessage(QueueMessage):
    subscribers: Tuple[ReportSubscriber, ...]
    categories_with_places: Mapping[str, Tuple[PlaceEntry, ...]] = Field(alias="categoriesDtoWithPlacesDtoMap")
    email_notification: EmailNotification = Field(alias="emailNotification")

    @field_validator("email_notification", mode="before")
    @classmethod
    def normalize_notification(cls, value: Any) -> Any:
        return _upper(value)

    @field_validator("categories_with_places")
    @classmethod
    def freeze_categories(cls, value: Mapping[str, Tuple[PlaceEntry, ...]]) -> Mapping[str, Tuple[PlaceEntry, ...]]:
        return MappingProxyType(dict(value))
