from datetime import datetime, timezone
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MessageCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    from_: str = Field(alias="from", min_length=1)
    to: str = Field(min_length=1)
    msg: str = Field(min_length=1)

    @field_validator("from_", "to", "msg", mode="before")
    @classmethod
    def coerce_scalar(cls, v: Any) -> Any:
        # truthy numbers and booleans are stored as text; falsy ones stay
        # non-strings and fail validation
        if isinstance(v, bool):
            return "true" if v else v
        if isinstance(v, (int, float)) and v:
            if isinstance(v, float) and v.is_integer():
                v = int(v)
            return str(v)
        return v


class Message(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    from_: str = Field(alias="from")
    to: str
    msg: str
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        # drivers without tz_aware hand back naive UTC datetimes
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "Message":
        return cls(
            id=str(doc["_id"]),
            from_=doc["from"],
            to=doc["to"],
            msg=doc["msg"],
            timestamp=doc["timestamp"],
        )


class DeleteResponse(BaseModel):
    success: bool = True
    deleted: Message


class ErrorResponse(BaseModel):
    error: str
