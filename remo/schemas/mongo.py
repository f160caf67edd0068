from datetime import datetime
from typing import Any

from bson import ObjectId
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ConfigDict, Field, field_validator


class FromMongo(BaseModel):
    id: str | ObjectId = Field(alias="_id")
    model_config = ConfigDict(arbitrary_types_allowed=True, extra="allow", populate_by_name=True)

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, id: str | ObjectId) -> str:
        if isinstance(id, ObjectId):
            return str(id)
        return id


def to_object_id(id: str) -> ObjectId | str:
    """Path ids that look like an ObjectId are cast, anything else is kept as a string _id."""
    if ObjectId.is_valid(id) and len(id) == 24:
        return ObjectId(id)
    return id


def serialize_document(document: dict[str, Any] | None) -> Any:
    return jsonable_encoder(
        document,
        custom_encoder={ObjectId: str, datetime: lambda dt: dt.isoformat()},
    )
