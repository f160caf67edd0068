from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Generic, Mapping, Type, TypeVar

from pydantic import BaseModel
from pymongo import ReturnDocument

from remo.local_typing import AgnosticCollection, AgnosticDatabase, DBDeleteResult, DBInsertOneResult, Document
from remo.schemas.mongo import serialize_document, to_object_id

if TYPE_CHECKING:
    from remo.core.query import Query
    from remo.core.registry import ModelRegistry

CreateSchema = TypeVar("CreateSchema", bound=BaseModel)
ReadSchema = TypeVar("ReadSchema", bound=BaseModel)


class Model(Generic[CreateSchema, ReadSchema]):
    """A document model registered under ``name`` and stored in ``collection``.

    ``references`` maps a field to the name of the model its ids point at,
    which is what ``populate`` follows. Subclass and override the ``on_*``
    hooks to run code around persistence; ``on_delete`` only runs when a
    document is removed through :meth:`remove`.
    """

    def __init__(
        self,
        name: str,
        collection: str | None = None,
        create_model: Type[CreateSchema] | None = None,
        read_model: Type[ReadSchema] | None = None,
        references: Mapping[str, str] | None = None,
        make_time_stamps: bool = False,
    ):
        self.name = name
        self._collection = collection or name.lower() + "s"
        self._create_model = create_model
        self._read_model = read_model
        self.references = dict(references or {})
        self._make_time_stamps = make_time_stamps

    def __repr__(self) -> str:
        return f"<Model {self.name} collection={self._collection!r}>"

    async def on_create(self, document: Document) -> None:
        pass

    async def on_update(self, document: Document) -> None:
        pass

    async def on_delete(self, document: Document) -> None:
        pass

    def collection(self, db: AgnosticDatabase) -> AgnosticCollection:
        return db.get_collection(self._collection)

    def query(self, db: AgnosticDatabase, registry: "ModelRegistry") -> "Query":
        from remo.core.query import Query

        return Query(self, db, registry)

    def serialize(self, document: Document | None, partial: bool = False) -> Any:
        """Render a document as JSON-ready data.

        ``partial`` documents come from a projection and skip the read model,
        which would reject or fill in the fields that were left out.
        """
        if document is not None and self._read_model is not None and not partial:
            document = self._read_model.model_validate(document).model_dump(by_alias=True)
        return serialize_document(document)

    async def find_by_id(self, id: str, db: AgnosticDatabase) -> Document | None:
        return await self.collection(db).find_one({"_id": to_object_id(id)})

    async def create(self, attributes: dict[str, Any], db: AgnosticDatabase) -> Document:
        if self._create_model is not None:
            attributes = self._create_model.model_validate(attributes).model_dump(by_alias=True)
        document = dict(attributes)
        if isinstance(document.get("_id"), str):
            # same cast as the id lookups, so a created document can be read back
            document["_id"] = to_object_id(document["_id"])
        result = await self._create(document, db)
        document["_id"] = result.inserted_id
        await self.on_create(document)
        return document

    async def update_by_id(self, id: str, patch: dict[str, Any], db: AgnosticDatabase) -> Document | None:
        patch = {k: v for k, v in patch.items() if k != "_id"}
        if self._make_time_stamps:
            patch["updated_at"] = datetime.now(timezone.utc)
        if not patch:
            return await self.find_by_id(id, db)
        document = await self.collection(db).find_one_and_update(
            {"_id": to_object_id(id)},
            {"$set": patch},
            return_document=ReturnDocument.AFTER,
        )
        if document is not None:
            await self.on_update(document)
        return document

    async def remove(self, document: Document, db: AgnosticDatabase) -> Document:
        await self.__delete(document["_id"], db)
        await self.on_delete(document)
        return document

    async def find_by_id_and_remove(self, id: str, db: AgnosticDatabase) -> Document | None:
        # Straight to the collection: on_delete is not run on this path.
        return await self.collection(db).find_one_and_delete({"_id": to_object_id(id)})

    # Would invoke time stamps if enabled
    async def _create(self, item_dict: dict[str, Any], db: AgnosticDatabase) -> DBInsertOneResult:
        if self._make_time_stamps:
            item_dict["created_at"] = item_dict["updated_at"] = datetime.now(timezone.utc)
        return await self.__create(item_dict, db)

    # Won't invoke time stamps or hooks no matter what
    async def __create(self, item_dict: dict[str, Any], db: AgnosticDatabase) -> DBInsertOneResult:
        return await self.collection(db).insert_one(item_dict)

    async def __delete(self, id: Any, db: AgnosticDatabase) -> DBDeleteResult:
        return await self.collection(db).delete_one({"_id": id})
