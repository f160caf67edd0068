"""
core/config.py
--------------
Startup options for remo. Built once, frozen, and handed to ``serve``.
``RemoConfig.from_env`` reads the plain options from the environment / .env.
"""

import os
from typing import Any, Callable, Mapping

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from remo.core.errors import ConfigError
from remo.core.registry import ModelRegistry, default_registry
from remo.local_typing import DeleteMode


def default_alias_to_name(alias: str) -> str:
    """'mymodel' -> 'Mymodel', 'my_model' -> 'My_model', 'MyModel' -> 'MyModel'"""
    return alias[:1].upper() + alias[1:]


class RemoConfig(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    url: str = "/remo"
    debug: bool = False
    # an existing motor database wins over mongo_uri
    database: Any = None
    mongo_uri: Any = None
    alias_to_name: Callable[[str], str] = default_alias_to_name
    access: Mapping[str, Mapping[str, Any]] = Field(default_factory=dict)
    callbacks: Mapping[str, Mapping[str, Callable[..., Any]]] = Field(default_factory=dict)
    count_action: str = "count"
    delete_mode: DeleteMode = "find_and_remove"
    soft_delete_field: str | None = "_destroy"
    registry: ModelRegistry = Field(default_factory=lambda: default_registry)

    @field_validator("url")
    @classmethod
    def check_url(cls, url: str) -> str:
        url = url.rstrip("/")
        if url and not url.startswith("/"):
            raise ConfigError(f"url must start with '/', got {url!r}")
        return url

    @field_validator("count_action")
    @classmethod
    def check_count_action(cls, count_action: str) -> str:
        if not count_action or "/" in count_action:
            raise ConfigError(f"count_action must be a single path segment, got {count_action!r}")
        return count_action

    @model_validator(mode="after")
    def check_store(self) -> "RemoConfig":
        if self.database is not None:
            if not hasattr(self.database, "get_collection"):
                raise ConfigError("database must be a motor database (an object with get_collection)")
            return self
        if self.mongo_uri is None or self.mongo_uri == "":
            raise ConfigError('Either "database" or "mongo_uri" option is required.')
        if not isinstance(self.mongo_uri, str):
            raise ConfigError("mongo_uri must be a string")
        return self

    @classmethod
    def from_env(cls, **overrides: Any) -> "RemoConfig":
        load_dotenv(override=False)
        values: dict[str, Any] = {}
        env = {
            "url": "REMO_URL",
            "mongo_uri": "REMO_MONGO_URI",
            "count_action": "REMO_COUNT_ACTION",
            "delete_mode": "REMO_DELETE_MODE",
        }
        for field, var in env.items():
            if (value := os.getenv(var)) is not None:
                values[field] = value
        if (debug := os.getenv("REMO_DEBUG")) is not None:
            values["debug"] = debug.lower() in ("1", "true", "yes", "on")
        values.update(overrides)
        return cls(**values)
