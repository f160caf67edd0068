from typing import TYPE_CHECKING, Any, Awaitable, Callable, Literal, Mapping, Union

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.results import DeleteResult, InsertOneResult

if TYPE_CHECKING:
    from fastapi import Request, Response

    from remo.core.access import AccessDecision
    from remo.schemas.core import RequestOptions

AgnosticDatabase = AsyncIOMotorDatabase
AgnosticCollection = AsyncIOMotorCollection

DBInsertOneResult = InsertOneResult
DBDeleteResult = DeleteResult

Document = dict[str, Any]

Action = Literal["list", "count", "get", "create", "update", "delete"]
DeleteMode = Literal["find_and_remove", "load_then_remove"]

AccessRuleResult = Union["AccessDecision", bool]
AccessRule = Union[
    Literal["*"],
    Callable[["Request", "Response", "RequestOptions"], Union[AccessRuleResult, Awaitable[AccessRuleResult]]],
]
AccessRules = Mapping[str, Mapping[str, AccessRule]]
