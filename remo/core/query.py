"""Query builder over a motor collection plus the query-string translator.

The builder is order-insensitive: ``find`` merges conditions and the scalar
options (sort, skip, limit, select) keep the last value they were given, so
the order in which a request lists its keys only matters for repeated keys.
"""

import json
import re
from typing import TYPE_CHECKING, Any, Iterable

from remo.core.errors import ModelNotFoundError, QueryParamError, StoreError
from remo.local_typing import AgnosticDatabase, Document
from remo.schemas.mongo import to_object_id

if TYPE_CHECKING:
    from remo.core.handlers.base import Model
    from remo.core.registry import ModelRegistry

# query-string synonyms -> builder method
QUERY_ALIASES = {
    "where": "find",
    "q": "find",
    "lim": "limit",
    "pop": "populate",
    "fields": "select",
}

LIST_KEYS = frozenset({"find", "sort", "skip", "limit", "populate", "select"})
COUNT_KEYS = frozenset({"find"})
GET_KEYS = frozenset({"find", "populate", "select"})

_SPLIT = re.compile(r"[\s,]+")


def _tokens(value: str) -> list[str]:
    return [t for t in _SPLIT.split(value.strip()) if t]


def _json_object(value: str, key: str) -> dict[str, Any]:
    try:
        parsed = json.loads(value)
    except ValueError as err:
        raise QueryParamError(f"{key} must be a JSON object, got {value!r}") from err
    if not isinstance(parsed, dict):
        raise QueryParamError(f"{key} must be a JSON object, got {value!r}")
    return parsed


def parse_sort(value: str) -> list[tuple[str, int]]:
    """``-name age`` / ``-name,age`` / ``{"name": -1, "age": "asc"}`` -> pymongo sort list."""
    if value.lstrip().startswith("{"):
        spec = []
        for field, direction in _json_object(value, "sort").items():
            if direction in (1, "1", "asc", "ascending"):
                spec.append((field, 1))
            elif direction in (-1, "-1", "desc", "descending"):
                spec.append((field, -1))
            else:
                raise QueryParamError(f"Invalid sort direction {direction!r} for {field!r}")
        return spec
    return [(t[1:], -1) if t.startswith("-") else (t.lstrip("+"), 1) for t in _tokens(value)]


def parse_select(value: str) -> dict[str, Any]:
    """``name -secret`` / ``name,age`` / ``{"name": 1}`` -> projection document."""
    if value.lstrip().startswith("{"):
        # booleans become 0/1, operator projections like {"$slice": 1} pass through
        return {
            field: int(flag) if isinstance(flag, bool) else flag
            for field, flag in _json_object(value, "select").items()
        }
    projection = {}
    for t in _tokens(value):
        if t.startswith("-"):
            projection[t[1:]] = 0
        else:
            projection[t.lstrip("+")] = 1
    return projection


def _mentions(conditions: dict[str, Any], field: str) -> bool:
    if field in conditions:
        return True
    for op in ("$and", "$or", "$nor"):
        clauses = conditions.get(op)
        if isinstance(clauses, list) and any(isinstance(c, dict) and _mentions(c, field) for c in clauses):
            return True
    return False


def _ref_key(value: Any) -> Any:
    # ids arrive as strings from JSON bodies
    return to_object_id(value) if isinstance(value, str) else value


def parse_count(value: str, key: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as err:
        raise QueryParamError(f"{key} must be an integer, got {value!r}") from err
    if number < 0:
        raise QueryParamError(f"{key} must not be negative, got {number}")
    return number


class Query:
    def __init__(self, model: "Model", db: AgnosticDatabase, registry: "ModelRegistry") -> None:
        self._model = model
        self._db = db
        self._registry = registry
        self._conditions: dict[str, Any] = {}
        self._sort: list[tuple[str, int]] = []
        self._skip = 0
        self._limit = 0
        self._projection: dict[str, Any] | None = None
        self._populate: list[str] = []

    @property
    def conditions(self) -> dict[str, Any]:
        return dict(self._conditions)

    def find(self, conditions: str | dict[str, Any]) -> "Query":
        if isinstance(conditions, str):
            conditions = _json_object(conditions, "find")
        self._conditions.update(conditions)
        return self

    def sort(self, spec: str | list[tuple[str, int]]) -> "Query":
        self._sort = parse_sort(spec) if isinstance(spec, str) else list(spec)
        return self

    def skip(self, n: str | int) -> "Query":
        self._skip = parse_count(n, "skip") if isinstance(n, str) else n
        return self

    def limit(self, n: str | int) -> "Query":
        self._limit = parse_count(n, "limit") if isinstance(n, str) else n
        return self

    def select(self, spec: str | dict[str, Any]) -> "Query":
        projection = parse_select(spec) if isinstance(spec, str) else dict(spec)
        self._projection = projection or None
        return self

    def populate(self, paths: str | Iterable[str]) -> "Query":
        for path in _tokens(paths) if isinstance(paths, str) else paths:
            if path not in self._populate:
                self._populate.append(path)
        return self

    @property
    def projection(self) -> dict[str, Any] | None:
        return dict(self._projection) if self._projection else None

    def has_condition(self, field: str) -> bool:
        """True if ``field`` is constrained at the top level or inside $and, $or or $nor."""
        return _mentions(self._conditions, field)

    async def exec(self) -> list[Document]:
        cursor = self._model.collection(self._db).find(
            self._conditions,
            self._projection,
            sort=self._sort or None,
            skip=self._skip,
            limit=self._limit,
        )
        documents = await cursor.to_list(length=None)
        return await self.populate_documents(documents)

    async def one(self) -> Document | None:
        document = await self._model.collection(self._db).find_one(self._conditions, self._projection)
        if document is None:
            return None
        return (await self.populate_documents([document]))[0]

    async def count(self) -> int:
        return await self._model.collection(self._db).count_documents(self._conditions)

    async def populate_documents(self, documents: list[Document]) -> list[Document]:
        """Replace referenced ids with the documents they point at.

        Paths with no reference declared on the model are left alone. A
        dangling single reference becomes None; dangling ids are dropped from
        reference lists.
        """
        for path in self._populate:
            target_name = self._model.references.get(path)
            if target_name is None:
                continue
            try:
                target = self._registry.get(target_name)
            except ModelNotFoundError as err:
                raise StoreError(f"Cannot populate {path!r}: {err}") from err

            ids = []
            for document in documents:
                value = document.get(path)
                values = value if isinstance(value, list) else [value] if value is not None else []
                ids.extend(_ref_key(v) for v in values)
            if not ids:
                continue
            cursor = target.collection(self._db).find({"_id": {"$in": ids}})
            found = {related["_id"]: related for related in await cursor.to_list(length=None)}

            for document in documents:
                value = document.get(path)
                if isinstance(value, list):
                    document[path] = [found[_ref_key(i)] for i in value if _ref_key(i) in found]
                elif value is not None:
                    document[path] = found.get(_ref_key(value))
        return documents


def apply_query_params(query: Query, params: Iterable[tuple[str, str]], allowed: frozenset[str]) -> Query:
    """Chain the recognised query-string keys onto ``query`` in the order given."""
    for key, value in params:
        method = QUERY_ALIASES.get(key, key)
        if method in allowed:
            query = getattr(query, method)(value)
    return query


def exclude_destroyed(query: Query, field: str | None) -> Query:
    if field and not query.has_condition(field):
        query.find({field: {"$ne": True}})
    return query
