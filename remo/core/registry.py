from typing import Iterator, TypeVar

from remo.core.errors import ModelNotFoundError
from remo.core.handlers.base import Model

M = TypeVar("M", bound=Model)


class ModelRegistry:
    """Name -> model lookup, the counterpart of an ODM's model registry."""

    def __init__(self, *models: Model) -> None:
        self._models: dict[str, Model] = {}
        for model in models:
            self.register(model)

    def register(self, model: M) -> M:
        self._models[model.name] = model
        return model

    def get(self, name: str) -> Model:
        try:
            return self._models[name]
        except KeyError:
            raise ModelNotFoundError(f"Model {name!r} is not registered") from None

    def __contains__(self, name: object) -> bool:
        return name in self._models

    def __iter__(self) -> Iterator[Model]:
        return iter(self._models.values())

    def __len__(self) -> int:
        return len(self._models)


default_registry = ModelRegistry()
register = default_registry.register
