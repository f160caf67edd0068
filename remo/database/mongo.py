from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import ConfigurationError

from remo.core.config import RemoConfig
from remo.core.errors import ConfigError
from remo.local_typing import AgnosticDatabase


def connect(config: RemoConfig) -> AgnosticDatabase:
    """Return the configured database handle, opening a client from mongo_uri if there is none."""
    if config.database is not None:
        return config.database
    try:
        client = AsyncIOMotorClient(config.mongo_uri)
        return client.get_default_database()
    except ConfigurationError as err:
        raise ConfigError(
            f"mongo_uri must name a database, e.g. mongodb://localhost/test (got {config.mongo_uri!r})"
        ) from err
