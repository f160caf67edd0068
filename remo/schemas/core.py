from datetime import datetime
from typing import Any, Literal, Type

from pydantic import BaseModel, ConfigDict, Field, create_model, field_serializer

from remo.schemas.mongo import FromMongo


class Timestamp(BaseModel):
    """Stamps written by ``Model(make_time_stamps=True)``; read back as stored, never invented."""

    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_serializer("created_at", "updated_at")
    def serialize_stamp(self, stamp: datetime | None) -> str | None:
        return stamp.isoformat() if stamp is not None else None


class SoftDeletion(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    destroyed: bool = Field(default=False, alias="_destroy")


class RequestOptions(BaseModel):
    """Everything an action reads from the request.

    Access rules receive this and may hand back a narrowed copy, e.g.
    ``options.with_query(select="name")``.
    """

    model_config = ConfigDict(frozen=True)

    query: tuple[tuple[str, str], ...] = ()
    id: str | None = None
    body: dict[str, Any] | None = None

    def get(self, key: str, default: str | None = None) -> str | None:
        for k, v in reversed(self.query):
            if k == key:
                return v
        return default

    def with_query(self, **params: str) -> "RequestOptions":
        """Return a copy with the given query keys replaced (all earlier values of a key are dropped)."""
        kept = tuple((k, v) for k, v in self.query if k not in params)
        return self.model_copy(update={"query": kept + tuple(params.items())})


class SchemaGenerator:
    """Builds the base classes for a model's request and response schemas.

    Read schemas accept what is stored (string or ObjectId ``_id``, the
    ``_destroy`` flag, stamps); create schemas keep unknown attributes so a
    body can carry fields the schema does not declare.
    """

    def __init__(self, soft_delete: bool = False, time_stamp: bool = True) -> None:
        self.soft_delete = soft_delete
        self.time_stamp = time_stamp

    @classmethod
    def make_model(
        cls,
        kind: Literal["read", "create"],
        soft_delete: bool = False,
        time_stamp: bool = True,
    ) -> Type[BaseModel]:
        generator = cls(soft_delete, time_stamp)
        match kind:
            case "read":
                return generator.read_base()
            case "create":
                return generator.create_base()
            case _:
                raise ValueError(f"Unknown schema kind {kind!r}, expected 'read' or 'create'")

    def read_base(self) -> Type[BaseModel]:
        mixins: list[type[BaseModel]] = [FromMongo]
        if self.soft_delete:
            mixins.append(SoftDeletion)
        if self.time_stamp:
            mixins.append(Timestamp)
        return create_model("ReadBase", __base__=tuple(mixins), __module__=__name__)

    def create_base(self) -> Type[BaseModel]:
        # stamps are written by the model on insert, never taken from the body
        return create_model("CreateBase", __config__=ConfigDict(extra="allow"), __module__=__name__)
